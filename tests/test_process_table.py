import dataclasses

import pytest

from core.errors import InvalidWorkload, InvariantViolation
from core.process import ProcessState, ProcessTable, validate_workload

from conftest import terminate


@pytest.mark.parametrize('workload', [
    [],
    [("A", 0)],
    [("A", 3), ("B", -1)],
    [("A", 2.5)],
    [("A", True)],
    [("", 3)],
    [("   ", 3)],
    [("A",)],
    [("P%d" % i, 1) for i in range(11)],
])
def test_invalid_workloads_rejected(workload):
    with pytest.raises(InvalidWorkload):
        ProcessTable(workload)


def test_invalid_workload_is_value_error():
    with pytest.raises(ValueError):
        validate_workload([("A", 0)])


def test_pids_are_ordinal_and_indexable(table):
    assert len(table) == 4
    assert [p.pid for p in table] == [1, 2, 3, 4]
    assert table.get(2).name == "C"
    assert table.by_id(4).name == "D"
    assert table.index_of(1) == 0
    with pytest.raises(KeyError):
        table.by_id(99)


def test_initial_state(table):
    for p in table:
        assert p.state == ProcessState.READY
        assert p.work_remaining == p.work_total
        assert p.arrival_time == 0
        assert p.completion_time is None
        assert p.waiting_time is None
    assert table.running_index() is None
    assert table.ready_indices() == [0, 1, 2, 3]
    assert table.total_work() == 19
    assert table.applied_work() == 0
    assert not table.all_terminated()


def test_only_one_process_may_run(table):
    table.set_state(0, ProcessState.RUNNING)
    with pytest.raises(InvariantViolation):
        table.set_state(1, ProcessState.RUNNING)
    assert table.running_index() == 0


def test_illegal_transitions(table):
    with pytest.raises(InvariantViolation):
        table.set_state(0, ProcessState.TERMINATED)

    table.set_state(0, ProcessState.RUNNING)
    with pytest.raises(InvariantViolation):
        # 남은 작업이 있으면 종료 불가
        table.set_state(0, ProcessState.TERMINATED)


def test_terminated_is_final(table):
    terminate(table, 0)
    assert table.get(0).work_remaining == 0
    for state in (ProcessState.READY, ProcessState.RUNNING):
        with pytest.raises(InvariantViolation):
            table.set_state(0, state)


def test_decrement_work(table):
    with pytest.raises(InvariantViolation):
        # 실행 중이 아닌 프로세스
        table.decrement_work(0, 1)

    table.set_state(0, ProcessState.RUNNING)
    assert table.decrement_work(0, 1) == 2
    assert table.get(0).work_done == 1
    with pytest.raises(InvariantViolation):
        table.decrement_work(0, 3)
    with pytest.raises(InvariantViolation):
        table.decrement_work(0, 0)
    assert table.get(0).work_remaining == 2


def test_record_ready_tick_counts_only_ready(table):
    table.set_state(0, ProcessState.RUNNING)
    table.record_ready_tick()
    assert [p.ready_ticks for p in table] == [0, 1, 1, 1]


def test_all_terminated(table):
    for index in range(len(table)):
        terminate(table, index)
    assert table.all_terminated()
    assert table.applied_work() == table.total_work()


def test_snapshot_is_read_only_copy(table):
    table.set_state(1, ProcessState.RUNNING)
    table.decrement_work(1, 2)

    snapshot = table.snapshot()
    assert [s.state for s in snapshot] == [
        ProcessState.READY, ProcessState.RUNNING, ProcessState.READY, ProcessState.READY]
    assert snapshot[1].work_done == 2
    assert snapshot[1].to_dict()['state'] == "Running"

    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot[1].work_done = 0

    table.decrement_work(1, 1)
    assert snapshot[1].work_remaining == 3
    assert table.get(1).work_remaining == 2
