"""
Round Robin 스케줄링
- RoundRobinSelector: 커서 다음 위치부터 원형으로 Ready 프로세스 탐색
- RoundRobinScheduler: 타이머 인터럽트로 선점하는 시분할 스케줄러
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import config
from core.errors import InvariantViolation
from core.process import ProcessState, ProcessTable
from core.scheduler_base import BaseScheduler
from core.timer import TimerSource, create_timer

logger = logging.getLogger(__name__)

Workload = Union[ProcessTable, Sequence[Tuple[str, int]]]


class RoundRobinSelector:
    """원형 순서 선택기"""

    def __init__(self, table: ProcessTable):
        self.table = table

    def select_next(self, cursor_start: int) -> Optional[int]:
        """
        cursor_start+1, cursor_start+2, ..., cursor_start (mod N) 순서로 탐색하여
        처음 만나는 Ready 프로세스의 인덱스 반환

        Returns:
            프로세스 인덱스 또는 None (Ready 프로세스 없음)
        """
        count = len(self.table)
        if not 0 <= cursor_start < count:
            raise InvariantViolation(f"커서가 범위를 벗어났습니다: {cursor_start} (N={count})")

        for offset in range(1, count + 1):
            index = (cursor_start + offset) % count
            if self.table.get(index).state == ProcessState.READY:
                return index
        return None


class RoundRobinScheduler(BaseScheduler):
    """
    Round Robin 스케줄러
    각 프로세스에게 동일한 타임 퀀텀을 할당하고 순환 실행
    """

    def __init__(self, workload: Workload, time_slice: int = config.TIME_QUANTUM,
                 strict_preemption: bool = config.STRICT_PREEMPTION,
                 timer: Optional[TimerSource] = None):
        """
        Args:
            workload: (이름, 작업량) 목록 또는 ProcessTable
            time_slice: 타임 퀀텀 (작업 단위 수)
            strict_preemption: True면 디스패치와 무관하게 고정 주기 타이머 사용
            timer: 직접 구성한 타이머 (None이면 협력형 타이머)

        Raises:
            InvalidWorkload: 워크로드가 잘못된 경우 (루프 시작 전)
        """
        table = workload if isinstance(workload, ProcessTable) else ProcessTable(workload)
        if timer is None:
            timer = create_timer("cooperative", time_slice, periodic=strict_preemption)
        super().__init__(table, timer, f"Round Robin (q={timer.quantum})")
        self.time_slice = timer.quantum
        self.selector = RoundRobinSelector(table)

    def select_next_process(self) -> Optional[int]:
        """이전에 실행한 프로세스 바로 다음부터 원형 탐색"""
        index = self.selector.select_next(self.cursor)
        if index is not None:
            logger.debug("selector: cursor=%d → P%d", self.cursor, self.table.get(index).pid)
        return index
