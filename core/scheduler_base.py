"""
스케줄러 기본 프레임워크 및 이벤트 관리

선점형 시분할 스케줄러 루프(상태 기계)를 제공한다.
하위 클래스는 select_next_process()로 다음 프로세스 선택 정책만 구현한다.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .errors import InvariantViolation
from .metrics import FinalReport, MetricsReporter
from .process import Process, ProcessState, ProcessTable, create_process_copy
from .timer import TimerSource

logger = logging.getLogger(__name__)


class SchedulerPhase(Enum):
    """스케줄러 루프 상태"""
    NOT_STARTED = "Not Started"
    DISPATCHING = "Dispatching"
    RUNNING_QUANTUM = "Running Quantum"
    PREEMPTING = "Preempting"
    COMPLETING = "Completing"
    ALL_DONE = "All Done"


class InterruptType(Enum):
    """이벤트 타입"""
    DISPATCH = "Dispatch"  # 프로세스에 CPU 할당
    TIMER = "Timer"  # 타임 퀀텀 만료로 인한 선점
    COMPLETION = "Completion"  # 작업 완료
    STOP = "Stop"  # 외부 중지 요청


@dataclass
class Event:
    """시뮬레이션 이벤트"""
    time: int
    event_type: InterruptType
    pid: Optional[int] = None
    description: str = ""


@dataclass
class GanttEntry:
    """Gantt Chart 엔트리"""
    pid: int
    start_time: int
    end_time: int
    state: ProcessState


class SchedulerStats:
    """스케줄링 통계"""

    def __init__(self):
        self.context_switches = 0
        self.preemptions = 0
        self.cpu_busy_time = 0
        self.total_simulation_time = 0

    def calculate_averages(self, report: Optional[FinalReport] = None) -> Dict:
        """평균 계산 (리포트가 없으면 0)"""
        stats = {
            'avg_waiting_time': 0.0,
            'avg_turnaround_time': 0.0,
            'avg_response_time': 0.0,
            'cpu_utilization': 0.0,
            'throughput': 0.0,
            'context_switches': self.context_switches,
            'preemptions': self.preemptions,
            'total_time': self.total_simulation_time,
        }
        if report is not None:
            stats.update({
                'avg_waiting_time': report.avg_waiting_time,
                'avg_turnaround_time': report.avg_turnaround_time,
                'avg_response_time': report.avg_response_time,
                'cpu_utilization': report.cpu_utilization,
                'throughput': report.throughput,
            })
        return stats


Listener = Callable[[Dict], None]


class BaseScheduler:
    """
    기본 스케줄러 클래스

    상태 전이:
        NOT_STARTED → DISPATCHING → RUNNING_QUANTUM → (PREEMPTING | COMPLETING)
        → DISPATCHING → ... → ALL_DONE
    """

    def __init__(self, table: ProcessTable, timer: TimerSource, name: str = "Base Scheduler"):
        self.table = table
        self.timer = timer
        self.name = name
        self.phase = SchedulerPhase.NOT_STARTED

        self.cursor = 0
        self.previous_process: Optional[Process] = None  # 이전 실행 프로세스 추적
        self.execution_start: Optional[int] = None

        self.gantt_chart: List[GanttEntry] = []
        self.stats = SchedulerStats()
        self.event_log: List[str] = []
        self.events: List[Event] = []
        self.report: Optional[FinalReport] = None

        self._listeners: List[Listener] = []
        self._stop_requested = threading.Event()

    @property
    def current_time(self) -> int:
        return self.timer.clock

    @property
    def running_process(self) -> Optional[Process]:
        index = self.table.running_index()
        return self.table.get(index) if index is not None else None

    @property
    def dispatch_trace(self) -> List[Tuple[int, int]]:
        """(pid, 디스패치 시각) 목록"""
        return [(e.pid, e.time) for e in self.events if e.event_type == InterruptType.DISPATCH]

    def log_event(self, message: str):
        """이벤트 로그 기록"""
        log_entry = f"[T={self.current_time:3d}] {message}"
        self.event_log.append(log_entry)
        logger.debug(log_entry)

    def record_event(self, event_type: InterruptType, pid: Optional[int], message: str):
        self.events.append(Event(self.current_time, event_type, pid, message))
        self.log_event(message)

    def add_to_gantt_chart(self, pid: int, start: int, end: int, state: ProcessState):
        """Gantt Chart에 엔트리 추가"""
        if start < end:  # 유효한 시간 구간만 추가
            self.gantt_chart.append(GanttEntry(pid, start, end, state))

    def add_listener(self, callback: Listener):
        """상태 전이마다 스냅샷을 받을 콜백 등록"""
        self._listeners.append(callback)

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self.get_current_snapshot()
        for callback in self._listeners:
            callback(snapshot)

    def select_next_process(self) -> Optional[int]:
        """
        다음 실행할 프로세스 선택 (하위 클래스에서 구현)

        Returns:
            선택된 프로세스 인덱스 또는 None
        """
        raise NotImplementedError("Subclasses must implement select_next_process()")

    def initial_process(self) -> int:
        """시작 시 강제로 실행할 프로세스 인덱스"""
        return 0

    def is_simulation_complete(self) -> bool:
        """시뮬레이션 완료 여부 확인"""
        return self.phase == SchedulerPhase.ALL_DONE

    def stop(self):
        """외부 중지 요청 (다른 스레드에서 호출 가능). 루프가 다음 안전 지점에서 타이머를 해제한다."""
        self._stop_requested.set()

    # ------------------------------------------------------------------
    # 상태 기계
    # ------------------------------------------------------------------

    def _start(self):
        self.log_event(f"===== {self.name} Scheduling Started =====")
        logger.info("%s started with %d processes (quantum=%d)", self.name, len(self.table), self.timer.quantum)
        self.timer.arm()
        self.phase = SchedulerPhase.DISPATCHING
        self.cursor = self.initial_process()
        self.dispatch(self.cursor)

    def dispatch(self, index: int):
        """DISPATCHING → RUNNING_QUANTUM"""
        with self.table.lock:
            self.table.set_state(index, ProcessState.RUNNING)
            process = self.table.get(index)
            self.cursor = index
            process.dispatch_count += 1
            if process.start_time is None:
                process.start_time = self.current_time
                process.response_time = self.current_time - process.arrival_time

        # 문맥 전환: 실행 프로세스가 바뀔 때만 카운트 (상태로 저장하지 않음)
        if self.previous_process is not None and self.previous_process.pid != process.pid:
            self.stats.context_switches += 1
            self.log_event(f"Context Switch: P{self.previous_process.pid} → P{process.pid}")
        self.previous_process = process

        self.timer.restart()
        self.execution_start = self.current_time
        self.phase = SchedulerPhase.RUNNING_QUANTUM
        self.record_event(InterruptType.DISPATCH, process.pid, f"P{process.pid} ({process.name}) → Running")
        self._notify()

    def _run_work_unit(self) -> bool:
        """
        RUNNING_QUANTUM: 실행 중인 프로세스의 작업 단위 하나 처리

        Returns:
            작업 단위가 적용되었는지 여부
        """
        index = self.cursor
        if not self.timer.run_work_unit():
            # 작업 단위 도중 인터럽트: 이 단위는 버리고 선점
            self.timer.acknowledge()
            self.preempt(index)
            return False

        with self.table.lock:
            remaining = self.table.decrement_work(index, 1)
            self.table.record_ready_tick()
            self.timer.advance()
        self.stats.cpu_busy_time += 1

        # 같은 경계에서 틱이 와도 완료가 우선하며, 그 틱은 소비된다
        fired = self.timer.acknowledge()
        if remaining == 0:
            self.complete(index)
        elif fired:
            self.preempt(index)
        return True

    def preempt(self, index: int):
        """RUNNING_QUANTUM → PREEMPTING → DISPATCHING"""
        self.phase = SchedulerPhase.PREEMPTING
        process = self.table.get(index)
        self._close_gantt_entry(process)
        with self.table.lock:
            self.table.set_state(index, ProcessState.READY)
            process.preempt_count += 1
        self.stats.preemptions += 1
        self.record_event(InterruptType.TIMER, process.pid,
                          f"P{process.pid} time slice expired → Ready "
                          f"({process.work_remaining} unit(s) left)")
        self._notify()
        self.phase = SchedulerPhase.DISPATCHING

    def complete(self, index: int):
        """RUNNING_QUANTUM → COMPLETING → DISPATCHING"""
        self.phase = SchedulerPhase.COMPLETING
        process = self.table.get(index)
        self._close_gantt_entry(process)
        self.terminate_process(index)
        self._notify()
        self.phase = SchedulerPhase.DISPATCHING

    def terminate_process(self, index: int):
        """프로세스 종료 처리 및 지표 계산 (종료 시점에 한 번만)"""
        with self.table.lock:
            self.table.set_state(index, ProcessState.TERMINATED)
            process = self.table.get(index)
            process.completion_time = self.current_time
            process.turnaround_time = process.completion_time - process.arrival_time
            process.waiting_time = process.turnaround_time - process.burst_time

        if process.waiting_time != process.ready_ticks:
            raise InvariantViolation(
                f"P{process.pid}: 대기 시간 불일치 (계산={process.waiting_time}, 누적={process.ready_ticks})")

        self.record_event(InterruptType.COMPLETION, process.pid,
                          f"P{process.pid} → Terminated "
                          f"(WT={process.waiting_time}, TT={process.turnaround_time})")
        logger.info("P%d (%s) completed at t=%d", process.pid, process.name, process.completion_time)

    def _close_gantt_entry(self, process: Process):
        if self.execution_start is not None:
            self.add_to_gantt_chart(process.pid, self.execution_start,
                                    self.current_time, ProcessState.RUNNING)
            self.execution_start = None

    def _finish(self, stopped: bool = False):
        """DISPATCHING → ALL_DONE: 타이머를 먼저 해제한 뒤 마무리"""
        self.timer.disarm()
        self.stats.total_simulation_time = self.current_time

        if stopped:
            running = self.table.running_index()
            if running is not None:
                self._close_gantt_entry(self.table.get(running))
                self.table.set_state(running, ProcessState.READY)
            self.phase = SchedulerPhase.ALL_DONE
            self.record_event(InterruptType.STOP, None, f"===== {self.name} Scheduling Stopped =====")
            logger.warning("%s stopped before completion at t=%d", self.name, self.current_time)
            self._notify()
            return

        if not self.table.all_terminated():
            raise InvariantViolation("실행 가능한 프로세스가 없지만 종료되지 않은 프로세스가 남아 있습니다")
        if self.table.applied_work() != self.table.total_work():
            raise InvariantViolation("적용된 작업량이 전체 작업량과 다릅니다")

        self.phase = SchedulerPhase.ALL_DONE
        self.report = MetricsReporter(self.table).build_report(self.stats.cpu_busy_time)
        self.log_event(f"===== {self.name} Scheduling Completed =====")
        logger.info("%s completed at t=%d (avg WT=%.2f, avg TT=%.2f)", self.name, self.current_time,
                    self.report.avg_waiting_time, self.report.avg_turnaround_time)
        self._notify()

    def execute_one_step(self) -> bool:
        """
        작업 단위 하나가 적용될 때까지 상태 기계 진행 (실시간 피드용)

        Returns:
            시뮬레이션 완료 여부
        """
        if self.phase == SchedulerPhase.ALL_DONE:
            return True
        if self.phase == SchedulerPhase.NOT_STARTED:
            self._start()

        try:
            while self.phase != SchedulerPhase.ALL_DONE:
                if self._stop_requested.is_set():
                    self._finish(stopped=True)
                    break

                if self.phase == SchedulerPhase.DISPATCHING:
                    index = self.select_next_process()
                    if index is None:
                        self._finish()
                        break
                    self.dispatch(index)
                elif self.phase == SchedulerPhase.RUNNING_QUANTUM:
                    if self._run_work_unit() and not self.table.all_terminated():
                        return False
                else:
                    raise InvariantViolation(f"잘못된 루프 상태: {self.phase.name}")
        except BaseException:
            self.timer.disarm()
            raise

        return True

    def run(self, verbose: bool = False) -> Dict:
        """
        스케줄링 시뮬레이션 실행

        Args:
            verbose: 상세 로그 출력 여부

        Returns:
            시뮬레이션 결과 딕셔너리
        """
        while not self.execute_one_step():
            pass

        if verbose:
            for log in self.event_log:
                print(log)

        return self.get_results()

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_current_snapshot(self) -> Dict:
        """
        현재 시뮬레이션 상태 스냅샷 반환 (상태를 변경하지 않음)

        Returns:
            현재 상태 딕셔너리
        """
        running = self.running_process
        return {
            'time': self.current_time,
            'phase': self.phase.value,
            'running': running.pid if running else None,
            'cursor': self.cursor,
            'processes': [s.to_dict() for s in self.table.snapshot()],
            'context_switches': self.stats.context_switches,
            'preemptions': self.stats.preemptions,
            'cpu_busy_time': self.stats.cpu_busy_time,
            'latest_log': self.event_log[-1] if self.event_log else ""
        }

    def get_results(self) -> Dict:
        """
        시뮬레이션 결과 반환

        Returns:
            결과 딕셔너리 (통계, Gantt Chart, 로그 등)
        """
        return {
            'algorithm': self.name,
            'statistics': self.stats.calculate_averages(self.report),
            'gantt_chart': self.gantt_chart,
            'event_log': self.event_log,
            'dispatch_trace': self.dispatch_trace,
            'processes': [create_process_copy(p) for p in self.table],
            'report': self.report,
            'stopped': self.report is None and self.is_simulation_complete(),
        }
