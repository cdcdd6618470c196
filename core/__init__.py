"""
Core modules for Round-Robin Time-Sharing Simulator
"""

from .errors import SchedulerError, InvalidWorkload, TimerSetupFailure, InvariantViolation
from .process import Process, ProcessState, ProcessTable, ProcessSnapshot, validate_workload, create_process_copy
from .timer import TimerSource, CooperativeTimer, ThreadedTimer, SignalTimer, create_timer
from .metrics import MetricsReporter, FinalReport, ProcessMetrics
from .scheduler_base import BaseScheduler, SchedulerPhase, SchedulerStats, GanttEntry, InterruptType, Event

__all__ = [
    'SchedulerError',
    'InvalidWorkload',
    'TimerSetupFailure',
    'InvariantViolation',
    'Process',
    'ProcessState',
    'ProcessTable',
    'ProcessSnapshot',
    'validate_workload',
    'create_process_copy',
    'TimerSource',
    'CooperativeTimer',
    'ThreadedTimer',
    'SignalTimer',
    'create_timer',
    'MetricsReporter',
    'FinalReport',
    'ProcessMetrics',
    'BaseScheduler',
    'SchedulerPhase',
    'SchedulerStats',
    'GanttEntry',
    'InterruptType',
    'Event'
]
