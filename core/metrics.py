"""
성능 지표 집계 모듈
모든 프로세스가 종료된 뒤 PCB 저장소를 읽기 전용으로 사용해 최종 리포트를 만든다.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

from .errors import InvariantViolation
from .process import ProcessState, ProcessTable


@dataclass(frozen=True)
class ProcessMetrics:
    """프로세스 하나의 최종 지표"""
    pid: int
    name: str
    arrival_time: int
    burst_time: int
    completion_time: int
    turnaround_time: int
    waiting_time: int
    response_time: Optional[int]
    dispatch_count: int = 0
    preempt_count: int = 0


@dataclass(frozen=True)
class FinalReport:
    """최종 리포트"""
    processes: List[ProcessMetrics] = field(default_factory=list)
    avg_waiting_time: float = 0.0
    avg_turnaround_time: float = 0.0
    avg_response_time: float = 0.0
    total_time: int = 0
    throughput: float = 0.0
    cpu_utilization: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)


class MetricsReporter:
    """대기/반환/완료 시간 집계"""

    def __init__(self, table: ProcessTable):
        self.table = table

    def build_report(self, cpu_busy_time: Optional[int] = None) -> FinalReport:
        """
        최종 리포트 생성

        Args:
            cpu_busy_time: CPU가 실제로 작업한 시간 (None이면 전체 작업량과 같다고 본다)

        Raises:
            InvariantViolation: 아직 종료되지 않은 프로세스가 있는 경우
        """
        rows = []
        for process in self.table:
            if process.state != ProcessState.TERMINATED or process.completion_time is None:
                raise InvariantViolation(f"P{process.pid}가 아직 종료되지 않았습니다")
            rows.append(ProcessMetrics(
                pid=process.pid,
                name=process.name,
                arrival_time=process.arrival_time,
                burst_time=process.burst_time,
                completion_time=process.completion_time,
                turnaround_time=process.turnaround_time,
                waiting_time=process.waiting_time,
                response_time=process.response_time,
                dispatch_count=process.dispatch_count,
                preempt_count=process.preempt_count,
            ))

        count = len(rows)
        total_time = max(r.completion_time for r in rows)
        if cpu_busy_time is None:
            cpu_busy_time = self.table.total_work()
        responses = [r.response_time for r in rows if r.response_time is not None]

        return FinalReport(
            processes=rows,
            avg_waiting_time=sum(r.waiting_time for r in rows) / count,
            avg_turnaround_time=sum(r.turnaround_time for r in rows) / count,
            avg_response_time=sum(responses) / len(responses) if responses else 0.0,
            total_time=total_time,
            throughput=count / total_time if total_time > 0 else 0.0,
            cpu_utilization=(cpu_busy_time / total_time * 100) if total_time > 0 else 0.0,
        )
