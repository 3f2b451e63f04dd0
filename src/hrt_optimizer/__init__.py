"""
HRT Optimizer Package
Dose-schedule optimization for injectable estradiol and non-injectable
progesterone against reference menstrual-cycle hormone levels.
"""

__version__ = "1.0.0"
__author__ = "HRT Schedule Optimizer Team"

# Import main modules
from . import data
from . import optimization
from . import pkpd
from . import utils

from .config import OptimizationOptions, OptimizerConfig
from .errors import ConfigurationError, NonConvergenceWarning
from .optimization import OptimizationResult, ScheduleOptimizer, optimize, optimize_async
from .pkpd import Dose, evaluate_concentration

__all__ = [
    "data",
    "optimization",
    "pkpd",
    "utils",
    "OptimizationOptions", "OptimizerConfig",
    "ConfigurationError", "NonConvergenceWarning",
    "OptimizationResult", "ScheduleOptimizer", "optimize", "optimize_async",
    "Dose", "evaluate_concentration",
]
