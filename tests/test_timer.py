import signal
import threading
import time

import pytest

from core.errors import TimerSetupFailure
from core.timer import CooperativeTimer, SignalTimer, ThreadedTimer, create_timer
from schedulers.round_robin import RoundRobinScheduler


@pytest.mark.parametrize('quantum', [0, -1, 1.5, True, "2"])
def test_bad_quantum(quantum):
    with pytest.raises(TimerSetupFailure):
        CooperativeTimer(quantum)


def test_cooperative_fires_after_quantum():
    with CooperativeTimer(2) as timer:
        timer.restart()
        timer.advance()
        assert not timer.acknowledge()
        timer.advance()
        assert timer.acknowledge()
        # 같은 틱은 한 번만 전달된다
        assert not timer.acknowledge()
        assert timer.ticks_delivered == 1
        assert timer.clock == 2
    assert not timer.armed


def test_cooperative_delayed_tick_counted_once():
    timer = CooperativeTimer(1)
    timer.arm()
    timer.advance()
    timer.advance()
    assert timer.ticks_delivered == 0
    assert timer.acknowledge()
    assert not timer.acknowledge()
    assert timer.ticks_delivered == 1


def test_cooperative_restart_resets_quantum():
    timer = CooperativeTimer(3)
    timer.arm()
    timer.advance()
    timer.advance()
    timer.restart()
    timer.advance()
    assert not timer.acknowledge()
    timer.advance()
    timer.advance()
    assert timer.acknowledge()


def test_cooperative_periodic_ignores_restart():
    timer = CooperativeTimer(3, periodic=True)
    timer.arm()
    timer.advance()
    timer.advance()
    timer.restart()
    timer.advance()
    assert timer.clock == 3
    assert timer.acknowledge()


def test_disarmed_timer_never_fires():
    timer = CooperativeTimer(1)
    timer.advance()
    assert not timer.acknowledge()
    assert timer.ticks_delivered == 0


def test_create_timer_modes():
    assert isinstance(create_timer("cooperative", 2), CooperativeTimer)
    timer = create_timer("thread", 2, unit_duration=0.01)
    assert isinstance(timer, ThreadedTimer)
    assert timer.interval == pytest.approx(0.025)


@pytest.mark.parametrize('kwargs', [
    {'mode': "interrupt", 'quantum': 2, 'unit_duration': 0.01},
    {'mode': "thread", 'quantum': 2},
    {'mode': "thread", 'quantum': 2, 'interval': 0.01, 'unit_duration': 0.01},
    {'mode': "signal", 'quantum': 2, 'interval': 0.01, 'unit_duration': 0.02},
    {'mode': "thread", 'quantum': 0, 'unit_duration': 0.01},
])
def test_create_timer_rejects(kwargs):
    with pytest.raises(TimerSetupFailure):
        create_timer(**kwargs)


def test_threaded_timer_cancels_interrupted_unit():
    timer = ThreadedTimer(1, interval=0.2, unit_duration=0.15)
    with timer:
        timer.restart()
        assert timer.run_work_unit()
        # 두 번째 단위 도중 (t=0.2) 인터럽트 발생
        assert not timer.run_work_unit()
        assert timer.acknowledge()
        assert not timer.acknowledge()
    assert timer._thread is None


def test_first_unit_after_dispatch_is_not_cancelled():
    timer = ThreadedTimer(1, interval=1.0, unit_duration=0.01)
    with timer:
        timer.restart()
        timer._fire()
        # 디스패치 직후 단위는 끝까지 진행되고, 틱은 남아 있다가 선점으로 이어진다
        assert timer.run_work_unit()
        assert timer.acknowledge()

        timer._fire()
        assert not timer.run_work_unit()
        assert timer.acknowledge()
        assert timer.ticks_delivered == 2


def test_tick_cleared_by_restart_is_not_counted():
    timer = ThreadedTimer(1, interval=0.02, unit_duration=0.01)
    with timer:
        time.sleep(0.05)
        timer.restart()
        assert not timer.acknowledge()
        assert timer.ticks_delivered == 0


@pytest.mark.parametrize('periodic', [False, True])
def test_tight_interval_still_makes_progress(periodic):
    # 주기가 작업 단위보다 아주 조금 길어도 디스패치마다 한 단위는 적용된다
    timer = ThreadedTimer(1, interval=0.0101, unit_duration=0.01, periodic=periodic)
    scheduler = RoundRobinScheduler([("A", 2), ("B", 2)], timer=timer)
    result = scheduler.run()

    assert scheduler.table.applied_work() == 4
    assert not result['stopped']
    assert result['statistics']['preemptions'] <= len(result['dispatch_trace'])
    assert len(result['dispatch_trace']) <= 4


def test_threaded_timer_silent_after_disarm():
    timer = ThreadedTimer(1, interval=0.02, unit_duration=0.01)
    timer.arm()
    timer.disarm()
    time.sleep(0.06)
    assert not timer.acknowledge()


def test_scheduler_with_threaded_timer():
    timer = ThreadedTimer(1, interval=0.06, unit_duration=0.02)
    scheduler = RoundRobinScheduler([("A", 2), ("B", 3)], timer=timer)
    result = scheduler.run()

    assert not timer.armed
    assert scheduler.table.applied_work() == 5
    for p in result['report'].processes:
        assert p.waiting_time + p.burst_time == p.turnaround_time


posix_only = pytest.mark.skipif(not hasattr(signal, "SIGALRM"), reason="SIGALRM not available")


@posix_only
def test_signal_timer_requires_main_thread():
    errors = []

    def arm_in_worker():
        try:
            SignalTimer(1, interval=0.05, unit_duration=0.01).arm()
        except TimerSetupFailure as e:
            errors.append(e)

    worker = threading.Thread(target=arm_in_worker)
    worker.start()
    worker.join()
    assert len(errors) == 1


@posix_only
def test_scheduler_with_signal_timer():
    previous = signal.getsignal(signal.SIGALRM)
    timer = SignalTimer(1, interval=0.06, unit_duration=0.02)
    scheduler = RoundRobinScheduler([("A", 2), ("B", 1), ("C", 2)], timer=timer)
    result = scheduler.run()

    assert signal.getsignal(signal.SIGALRM) == previous
    assert signal.getitimer(signal.ITIMER_REAL) == (0.0, 0.0)
    assert scheduler.table.all_terminated()
    assert result['report'].total_time == 5
