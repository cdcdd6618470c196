"""
CPU Scheduling Algorithms
"""

from .round_robin import RoundRobinScheduler, RoundRobinSelector

__all__ = [
    'RoundRobinScheduler',
    'RoundRobinSelector'
]
