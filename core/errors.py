"""
시뮬레이터 예외 정의
"""


class SchedulerError(Exception):
    """스케줄러 시뮬레이터의 모든 예외의 기본 클래스"""


class InvalidWorkload(SchedulerError, ValueError):
    """
    잘못된 워크로드 (프로세스 0개, 작업량 0 이하, 잘못된 입력 라인 등)
    루프가 시작되기 전, 초기화 단계에서만 발생한다.
    """


class TimerSetupFailure(SchedulerError, RuntimeError):
    """주기 타이머를 설정(arm)할 수 없음 - 시뮬레이션 진행 불가"""


class InvariantViolation(SchedulerError, AssertionError):
    """내부 불변식 위반 (프로그램 로직 오류)"""
