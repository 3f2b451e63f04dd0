"""
Objective evaluation and schedule optimization
"""

from .objective import ObjectiveEvaluator, ScoreBreakdown, expand_steady_state, simplicity_penalties
from .candidates import generate_candidate_days, nearest_discrete_amount, placement_allowed, starting_amount
from .schedule_optimizer import (
    OptimizationResult, OptimizationState, ScheduleOptimizer, optimize, optimize_async
)
from .sweep import best_sweep_result, sweep_injection_counts, sweep_summary

__all__ = [
    'ObjectiveEvaluator', 'ScoreBreakdown', 'expand_steady_state', 'simplicity_penalties',
    'generate_candidate_days', 'nearest_discrete_amount', 'placement_allowed', 'starting_amount',
    'OptimizationResult', 'OptimizationState', 'ScheduleOptimizer', 'optimize', 'optimize_async',
    'best_sweep_result', 'sweep_injection_counts', 'sweep_summary'
]
