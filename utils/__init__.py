"""
Utility modules
"""

from .input_parser import InputParser, DEFAULT_WORKLOAD, CLASSIC_WORKLOAD
from .visualization import Visualizer

__all__ = ['InputParser', 'DEFAULT_WORKLOAD', 'CLASSIC_WORKLOAD', 'Visualizer']
