import pytest

from core.errors import InvariantViolation
from core.metrics import MetricsReporter
from schedulers.round_robin import RoundRobinScheduler

from conftest import terminate


def test_report_requires_all_terminated(table):
    terminate(table, 0)
    with pytest.raises(InvariantViolation):
        MetricsReporter(table).build_report()


def test_report_values_quantum_one(abcd_workload):
    scheduler = RoundRobinScheduler(abcd_workload, time_slice=1)
    scheduler.run()
    report = MetricsReporter(scheduler.table).build_report()

    assert [row.completion_time for row in report.processes] == [9, 16, 19, 15]
    assert [row.response_time for row in report.processes] == [0, 1, 2, 3]
    assert report.avg_waiting_time == pytest.approx(10.0)
    assert report.avg_turnaround_time == pytest.approx(14.75)
    assert report.avg_response_time == pytest.approx(1.5)
    assert report.total_time == 19
    assert report.throughput == pytest.approx(4 / 19)
    assert report.cpu_utilization == pytest.approx(100.0)


def test_report_matches_scheduler_statistics(abcd_workload):
    result = RoundRobinScheduler(abcd_workload, time_slice=2).run()
    report = result['report']
    stats = result['statistics']

    assert stats['avg_waiting_time'] == report.avg_waiting_time
    assert stats['avg_turnaround_time'] == report.avg_turnaround_time
    # 디스패치: A 0,8 / B 2,9,15 / C 4,11,16,18 / D 6,13
    assert [row.dispatch_count for row in report.processes] == [2, 3, 4, 2]
    assert [row.preempt_count for row in report.processes] == [1, 2, 3, 1]
    assert sum(row.preempt_count for row in report.processes) == stats['preemptions']
    as_dict = report.to_dict()
    assert as_dict['total_time'] == 19
    assert as_dict['processes'][0]['name'] == "A"
