"""
Exception and warning types raised by the schedule optimizer.
"""


class ConfigurationError(ValueError):
    """Invalid optimizer input (no medications, bad bounds, unknown reference cycle)."""


class NonConvergenceWarning(RuntimeWarning):
    """Emitted when a run stops at the safety iteration ceiling instead of converging."""
