# config.py
# 전역 설정 (CLI 옵션 / 웹 요청 필드로 실행마다 덮어쓸 수 있음)

# === 타이머 / 퀀텀 ===
TIME_QUANTUM = 2            # 타임 퀀텀 (작업 단위 수, 1 틱 = 1 작업 단위)
TIMER_MODE = "cooperative"  # cooperative | thread | signal
STRICT_PREEMPTION = False   # True면 타이머가 고정 주기로 동작 (디스패치 시 재시작하지 않음)

# === 실시간(realism) 모드 ===
WORK_UNIT_MS = 100          # 작업 단위 하나를 처리하는 데 걸리는 시간 (밀리초)

# === 워크로드 ===
MAX_PROCESS_COUNT = 10      # 최대 프로세스 수

# === 출력 ===
OUTPUT_DIR = "simulation_results"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
