import pytest

from core.process import ProcessState, ProcessTable


@pytest.fixture
def abcd_workload():
    return [("A", 3), ("B", 5), ("C", 7), ("D", 4)]


@pytest.fixture
def table(abcd_workload):
    return ProcessTable(abcd_workload)


def terminate(table, index):
    """테스트용: 프로세스를 실행시켜 끝까지 작업을 적용하고 종료"""
    table.set_state(index, ProcessState.RUNNING)
    table.decrement_work(index, table.get(index).work_remaining)
    table.set_state(index, ProcessState.TERMINATED)


def assert_round_robin_fair(trace, processes):
    """
    같은 프로세스가 두 번 디스패치되는 사이에, 두 번째 디스패치 시점까지
    살아 있던 다른 모든 프로세스가 최소 한 번은 실행되었는지 확인
    """
    completion = {p.pid: p.completion_time for p in processes}
    for i, (pid, _) in enumerate(trace):
        for j in range(i + 1, len(trace)):
            if trace[j][0] != pid:
                continue
            t_j = trace[j][1]
            between = {other for other, _ in trace[i + 1:j]}
            for other, done in completion.items():
                if other != pid and done > t_j:
                    assert other in between, f"P{other} skipped between dispatches {i} and {j} of P{pid}"
            break
