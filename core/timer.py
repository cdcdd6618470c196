"""
타이머 / 인터럽트 소스

타임 퀀텀이 끝났음을 알리는 틱(tick)을 만들어 스케줄러 루프에 전달한다.
- CooperativeTimer: 논리 클럭 기반 (기본, 결정적)
- ThreadedTimer: 별도 스레드에서 주기적으로 인터럽트 발생
- SignalTimer: SIGALRM + setitimer (POSIX, 메인 스레드 전용)

틱 하나는 acknowledge()로 정확히 한 번만 소비되며, 소비된 틱만 ticks_delivered에 집계된다.
클럭은 적용된 작업 단위마다 advance()로 1씩 증가한다 (1 틱 = 1 작업 단위).
"""

import logging
import signal
import threading
import time
from typing import Optional

from .errors import TimerSetupFailure

logger = logging.getLogger(__name__)


class TimerSource:
    """타이머 소스 공통 인터페이스"""

    def __init__(self, quantum: int, periodic: bool = False):
        """
        Args:
            quantum: 타임 퀀텀 (작업 단위 수)
            periodic: True면 디스패치와 무관하게 고정 주기로 틱 발생 (strict 선점)
        """
        if isinstance(quantum, bool) or not isinstance(quantum, int) or quantum <= 0:
            raise TimerSetupFailure(f"타임 퀀텀은 양의 정수여야 합니다: {quantum!r}")
        self._quantum = quantum
        self.periodic = periodic
        self._clock = 0
        self._armed = False
        self.ticks_delivered = 0

    @property
    def quantum(self) -> int:
        return self._quantum

    @property
    def clock(self) -> int:
        return self._clock

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self):
        if self._armed:
            return
        self._setup()
        self._armed = True
        logger.debug("%s armed (quantum=%d, periodic=%s)", type(self).__name__, self._quantum, self.periodic)

    def disarm(self):
        if not self._armed:
            return
        self._armed = False
        self._teardown()
        logger.debug("%s disarmed at clock=%d", type(self).__name__, self._clock)

    def restart(self):
        """새 퀀텀 시작 (디스패치 시 호출)"""
        raise NotImplementedError

    def run_work_unit(self) -> bool:
        """
        실행 중인 프로세스의 작업 단위 하나를 수행

        Returns:
            인터럽트 없이 작업 단위를 끝냈으면 True (False면 이 단위는 적용하지 않음)
        """
        raise NotImplementedError

    def advance(self):
        """적용된 작업 단위 하나만큼 클럭 진행"""
        self._clock += 1

    def acknowledge(self) -> bool:
        """대기 중인 틱을 소비. 틱이 있었으면 True"""
        raise NotImplementedError

    def _setup(self):
        pass

    def _teardown(self):
        pass

    def __enter__(self):
        self.arm()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disarm()


class CooperativeTimer(TimerSource):
    """
    협력형 타이머 (기본)
    실제 시간과 무관하게 클럭이 퀀텀만큼 진행되면 만료 플래그를 세운다.
    """

    def __init__(self, quantum: int, periodic: bool = False):
        super().__init__(quantum, periodic)
        self._elapsed = 0
        self._expired = False

    def restart(self):
        if self.periodic:
            return
        self._elapsed = 0
        self._expired = False

    def run_work_unit(self) -> bool:
        return True

    def advance(self):
        super().advance()
        if not self._armed:
            return
        if self.periodic:
            fired = self._clock % self._quantum == 0
        else:
            self._elapsed += 1
            fired = self._elapsed >= self._quantum
            if fired:
                self._elapsed = 0
        if fired:
            # 지연되더라도 소비 전까지는 틱 하나로 취급
            self._expired = True

    def acknowledge(self) -> bool:
        fired = self._expired
        self._expired = False
        if fired:
            self.ticks_delivered += 1
        return fired


class _WallClockTimer(TimerSource):
    """
    실제 시간 기반 타이머의 공통 부분
    작업 단위는 unit_duration초 동안의 바쁜 대기이며, 인터럽트 플래그를 잘게 확인한다.
    디스패치 직후의 첫 작업 단위는 취소되지 않는다. 그 사이 도착한 틱은 남아 있다가
    단위가 끝난 뒤 선점으로 처리되므로, 디스패치마다 최소 한 단위는 진행된다.
    """

    # 바쁜 대기 중 플래그 확인 간격 (초)
    POLL_INTERVAL = 0.001

    def __init__(self, quantum: int, interval: float, unit_duration: float, periodic: bool = False):
        super().__init__(quantum, periodic)
        if interval <= 0 or unit_duration <= 0:
            raise TimerSetupFailure("타이머 주기와 작업 단위 시간은 양수여야 합니다")
        if unit_duration >= interval:
            raise TimerSetupFailure(
                f"작업 단위 시간({unit_duration}s)이 타이머 주기({interval}s)보다 짧아야 합니다")
        self.interval = interval
        self.unit_duration = unit_duration
        self._fresh_dispatch = False

    def restart(self):
        self._fresh_dispatch = True
        if not self.periodic:
            self._reset_deadline()

    def _reset_deadline(self):
        """새 퀀텀의 인터럽트 시점을 지금부터 interval 뒤로 재설정"""
        raise NotImplementedError

    # "switch requested" 플래그 접근자 (하위 클래스가 저장 방식을 정함)
    def _requested(self) -> bool:
        raise NotImplementedError

    def _set_requested(self):
        raise NotImplementedError

    def _clear_requested(self):
        raise NotImplementedError

    def _fire(self):
        """인터럽트 핸들러: 플래그만 세운다"""
        self._set_requested()

    def run_work_unit(self) -> bool:
        cancellable = not self._fresh_dispatch
        self._fresh_dispatch = False

        deadline = time.monotonic() + self.unit_duration
        while time.monotonic() < deadline:
            if cancellable and self._requested():
                return False
            time.sleep(self.POLL_INTERVAL)
        return not (cancellable and self._requested())

    def acknowledge(self) -> bool:
        fired = self._requested()
        self._clear_requested()
        if fired:
            self.ticks_delivered += 1
        return fired


class ThreadedTimer(_WallClockTimer):
    """별도 스레드에서 interval초마다 인터럽트를 발생시키는 타이머"""

    def __init__(self, quantum: int, interval: float, unit_duration: float, periodic: bool = False):
        super().__init__(quantum, interval, unit_duration, periodic)
        self._switch_requested = threading.Event()
        self._cond = threading.Condition()
        self._stopped = False
        self._deadline = 0.0
        self._thread: Optional[threading.Thread] = None

    def _requested(self) -> bool:
        return self._switch_requested.is_set()

    def _set_requested(self):
        self._switch_requested.set()

    def _clear_requested(self):
        self._switch_requested.clear()

    def _setup(self):
        with self._cond:
            self._stopped = False
            self._deadline = time.monotonic() + self.interval
        self._thread = threading.Thread(target=self._run, name="timer-interrupt", daemon=True)
        try:
            self._thread.start()
        except RuntimeError as e:
            raise TimerSetupFailure(f"타이머 스레드를 시작할 수 없습니다: {e}") from e

    def _teardown(self):
        with self._cond:
            self._stopped = True
            self._cond.notify_all()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        self._switch_requested.clear()

    def _run(self):
        with self._cond:
            while not self._stopped:
                remaining = self._deadline - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                self._fire()
                self._deadline = time.monotonic() + self.interval

    def acknowledge(self) -> bool:
        with self._cond:
            return super().acknowledge()

    def _reset_deadline(self):
        with self._cond:
            self._deadline = time.monotonic() + self.interval
            self._switch_requested.clear()
            self._cond.notify_all()


class SignalTimer(_WallClockTimer):
    """
    SIGALRM 기반 타이머 (POSIX 전용)
    signal.setitimer(ITIMER_REAL)로 주기 인터럽트를 설정한다.
    시그널 핸들러는 메인 스레드에서만 설치할 수 있다.
    """

    def __init__(self, quantum: int, interval: float, unit_duration: float, periodic: bool = False):
        super().__init__(quantum, interval, unit_duration, periodic)
        self._previous_handler = None
        # 핸들러는 메인 스레드의 바이트코드 사이에서 실행되므로 락 없는 플래그만 사용
        self._flag = False

    def _requested(self) -> bool:
        return self._flag

    def _set_requested(self):
        self._flag = True

    def _clear_requested(self):
        self._flag = False

    def _handle(self, signum, frame):
        self._fire()

    def _setup(self):
        if not hasattr(signal, "SIGALRM") or not hasattr(signal, "setitimer"):
            raise TimerSetupFailure("이 플랫폼은 SIGALRM / setitimer를 지원하지 않습니다")
        try:
            self._previous_handler = signal.signal(signal.SIGALRM, self._handle)
        except ValueError as e:
            # 메인 스레드가 아닌 곳에서 호출된 경우
            raise TimerSetupFailure(f"SIGALRM 핸들러를 설치할 수 없습니다: {e}") from e
        try:
            signal.setitimer(signal.ITIMER_REAL, self.interval, self.interval)
        except signal.ItimerError as e:
            signal.signal(signal.SIGALRM, self._previous_handler)
            raise TimerSetupFailure(f"setitimer 실패: {e}") from e

    def _teardown(self):
        signal.setitimer(signal.ITIMER_REAL, 0)
        if self._previous_handler is not None:
            signal.signal(signal.SIGALRM, self._previous_handler)
            self._previous_handler = None
        self._flag = False

    def _reset_deadline(self):
        self._flag = False
        if self._armed:
            signal.setitimer(signal.ITIMER_REAL, self.interval, self.interval)


TIMER_MODES = ("cooperative", "thread", "signal")


def create_timer(mode: str, quantum: int, periodic: bool = False,
                 interval: Optional[float] = None, unit_duration: Optional[float] = None) -> TimerSource:
    """
    타이머 생성

    Args:
        mode: cooperative | thread | signal
        quantum: 타임 퀀텀 (작업 단위 수)
        periodic: 고정 주기 (strict 선점) 여부
        interval: 실시간 모드의 인터럽트 주기 (초)
        unit_duration: 실시간 모드의 작업 단위 시간 (초)
    """
    if mode == "cooperative":
        return CooperativeTimer(quantum, periodic=periodic)

    if unit_duration is None:
        raise TimerSetupFailure(f"{mode} 타이머에는 작업 단위 시간이 필요합니다")
    if interval is None:
        # 퀀텀의 마지막 작업 단위가 끝날 수 있도록 반 단위의 여유를 둔다
        interval = (quantum + 0.5) * unit_duration
    if mode == "thread":
        return ThreadedTimer(quantum, interval, unit_duration, periodic=periodic)
    if mode == "signal":
        return SignalTimer(quantum, interval, unit_duration, periodic=periodic)
    raise TimerSetupFailure(f"알 수 없는 타이머 모드: {mode} (가능: {', '.join(TIMER_MODES)})")
