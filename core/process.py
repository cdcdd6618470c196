"""
프로세스 및 PCB (Process Control Block) 관리 모듈
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple
from copy import deepcopy

import config
from .errors import InvalidWorkload, InvariantViolation


class ProcessState(Enum):
    """프로세스 상태"""
    READY = "Ready"
    RUNNING = "Running"
    TERMINATED = "Terminated"


# 허용되는 상태 전이
_TRANSITIONS = {
    ProcessState.READY: {ProcessState.RUNNING},
    ProcessState.RUNNING: {ProcessState.READY, ProcessState.TERMINATED},
    ProcessState.TERMINATED: set(),
}


class Process:
    """
    프로세스 제어 블록 (PCB)
    각 프로세스의 정보와 상태를 관리
    """

    def __init__(self, pid: int, name: str, work_total: int, arrival_time: int = 0):
        """
        프로세스 초기화

        Args:
            pid: 프로세스 ID (워크로드 내 1부터 시작하는 순번)
            name: 표시용 이름
            work_total: 필요한 총 작업 단위 (버스트 시간)
            arrival_time: 도착 시간 (이 모델에서는 항상 0)
        """
        self.pid = pid
        self.name = name
        self.work_total = work_total
        self.arrival_time = arrival_time

        # 실행 상태 추적
        self.state = ProcessState.READY
        self.work_remaining = work_total

        # 통계 정보 (종료 시점에 한 번만 계산)
        self.start_time: Optional[int] = None  # 첫 실행 시간
        self.completion_time: Optional[int] = None
        self.turnaround_time: Optional[int] = None
        self.waiting_time: Optional[int] = None
        self.response_time: Optional[int] = None

        # Ready 상태로 보낸 틱 수 (대기 시간을 틱마다 누적하는 방식)
        self.ready_ticks = 0
        self.dispatch_count = 0
        self.preempt_count = 0

    @property
    def burst_time(self) -> int:
        return self.work_total

    @property
    def work_done(self) -> int:
        return self.work_total - self.work_remaining

    def __repr__(self):
        return f"P{self.pid}[{self.state.value}]"

    def __str__(self):
        return f"Process {self.pid} ({self.name}): State={self.state.value}, " \
               f"Progress={self.work_done}/{self.work_total}"


@dataclass(frozen=True)
class ProcessSnapshot:
    """상태 피드용 읽기 전용 프로세스 레코드"""
    pid: int
    name: str
    state: ProcessState
    work_done: int
    work_total: int
    work_remaining: int
    completion_time: Optional[int]
    turnaround_time: Optional[int]
    waiting_time: Optional[int]
    dispatch_count: int = 0
    preempt_count: int = 0

    def to_dict(self) -> dict:
        return {
            'pid': self.pid,
            'name': self.name,
            'state': self.state.value,
            'work_done': self.work_done,
            'work_total': self.work_total,
            'work_remaining': self.work_remaining,
            'completion_time': self.completion_time,
            'turnaround_time': self.turnaround_time,
            'waiting_time': self.waiting_time,
            'dispatch_count': self.dispatch_count,
            'preempt_count': self.preempt_count,
        }


def validate_workload(workload: Sequence[Tuple[str, int]],
                      max_processes: int = config.MAX_PROCESS_COUNT):
    """
    워크로드 검증

    Raises:
        InvalidWorkload: 프로세스가 없거나, 작업량이 0 이하이거나, 이름이 비어있는 경우
    """
    if not workload:
        raise InvalidWorkload("워크로드에 프로세스가 하나도 없습니다")
    if max_processes and len(workload) > max_processes:
        raise InvalidWorkload(f"프로세스는 최대 {max_processes}개까지 허용됩니다: {len(workload)}개")

    for position, entry in enumerate(workload, 1):
        try:
            name, work_units = entry
        except (TypeError, ValueError):
            raise InvalidWorkload(f"{position}번째 항목은 (이름, 작업량) 쌍이어야 합니다: {entry!r}")
        if not isinstance(name, str) or not name.strip():
            raise InvalidWorkload(f"{position}번째 프로세스의 이름이 비어있습니다")
        if isinstance(work_units, bool) or not isinstance(work_units, int):
            raise InvalidWorkload(f"{name}: 작업량은 정수여야 합니다: {work_units!r}")
        if work_units <= 0:
            raise InvalidWorkload(f"{name}: 작업량은 양수여야 합니다: {work_units}")


class ProcessTable:
    """
    PCB 저장소
    고정 길이의 프로세스 시퀀스. 초기화 이후 삽입/삭제 불가.
    모든 변경은 락 안에서 수행되어 다른 스레드(타이머, 상태 조회)가
    반쯤 갱신된 레코드를 볼 수 없다.
    """

    def __init__(self, workload: Sequence[Tuple[str, int]],
                 max_processes: int = config.MAX_PROCESS_COUNT):
        validate_workload(workload, max_processes)
        self._processes: List[Process] = [
            Process(pid, name.strip(), work_units)
            for pid, (name, work_units) in enumerate(workload, 1)
        ]
        self._by_id = {p.pid: index for index, p in enumerate(self._processes)}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def __len__(self) -> int:
        return len(self._processes)

    def __iter__(self) -> Iterator[Process]:
        return iter(self._processes)

    def get(self, index: int) -> Process:
        return self._processes[index]

    def index_of(self, pid: int) -> int:
        try:
            return self._by_id[pid]
        except KeyError:
            raise KeyError(f"알 수 없는 PID: {pid}") from None

    def by_id(self, pid: int) -> Process:
        return self._processes[self.index_of(pid)]

    def set_state(self, index: int, new_state: ProcessState):
        """상태 전이 (허용된 전이만 가능)"""
        with self._lock:
            process = self._processes[index]
            if new_state not in _TRANSITIONS[process.state]:
                raise InvariantViolation(
                    f"P{process.pid}: {process.state.value} → {new_state.value} 전이는 허용되지 않습니다")
            if new_state == ProcessState.RUNNING:
                running = self.running_index()
                if running is not None:
                    raise InvariantViolation(
                        f"P{self._processes[running].pid}가 이미 실행 중입니다")
            if new_state == ProcessState.TERMINATED and process.work_remaining != 0:
                raise InvariantViolation(
                    f"P{process.pid}: 남은 작업({process.work_remaining})이 있는 상태로 종료할 수 없습니다")
            process.state = new_state

    def decrement_work(self, index: int, amount: int = 1) -> int:
        """
        실행 중인 프로세스의 남은 작업량 감소

        Returns:
            감소 후 남은 작업량
        """
        with self._lock:
            process = self._processes[index]
            if process.state != ProcessState.RUNNING:
                raise InvariantViolation(f"P{process.pid}는 실행 중이 아니므로 작업을 진행할 수 없습니다")
            if amount <= 0 or amount > process.work_remaining:
                raise InvariantViolation(
                    f"P{process.pid}: 잘못된 작업량 감소 {amount} (남은 작업 {process.work_remaining})")
            process.work_remaining -= amount
            return process.work_remaining

    def record_ready_tick(self):
        """한 틱 동안 Ready 상태였던 모든 프로세스의 대기 틱 누적"""
        with self._lock:
            for process in self._processes:
                if process.state == ProcessState.READY:
                    process.ready_ticks += 1

    def running_index(self) -> Optional[int]:
        for index, process in enumerate(self._processes):
            if process.state == ProcessState.RUNNING:
                return index
        return None

    def ready_indices(self) -> List[int]:
        return [i for i, p in enumerate(self._processes) if p.state == ProcessState.READY]

    def all_terminated(self) -> bool:
        return all(p.state == ProcessState.TERMINATED for p in self._processes)

    def total_work(self) -> int:
        return sum(p.work_total for p in self._processes)

    def applied_work(self) -> int:
        return sum(p.work_done for p in self._processes)

    def snapshot(self) -> List[ProcessSnapshot]:
        """모든 프로세스의 읽기 전용 스냅샷 (상태를 변경하지 않음)"""
        with self._lock:
            return [
                ProcessSnapshot(
                    pid=p.pid,
                    name=p.name,
                    state=p.state,
                    work_done=p.work_done,
                    work_total=p.work_total,
                    work_remaining=p.work_remaining,
                    completion_time=p.completion_time,
                    turnaround_time=p.turnaround_time,
                    waiting_time=p.waiting_time,
                    dispatch_count=p.dispatch_count,
                    preempt_count=p.preempt_count,
                )
                for p in self._processes
            ]


def create_process_copy(process: Process) -> Process:
    """
    프로세스의 깊은 복사본 생성
    리포트 등에서 원본 PCB를 건드리지 않기 위함
    """
    return deepcopy(process)
