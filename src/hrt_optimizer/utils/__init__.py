"""
Utility modules for the HRT optimizer
"""

from .logging_system import IterationRecord, RunHistory, setup_logger
from .formatters import format_dose, format_number
from .reporting import concentration_to_frame, doses_to_frame, history_to_frame

__all__ = [
    'IterationRecord', 'RunHistory', 'setup_logger',
    'format_dose', 'format_number',
    'concentration_to_frame', 'doses_to_frame', 'history_to_frame'
]
