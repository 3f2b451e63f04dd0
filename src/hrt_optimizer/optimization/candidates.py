"""
Candidate generation and placement-constraint helpers for the schedule search.
"""

from typing import List, Optional, Sequence

from ..config import ConstraintConfig, OptimizationOptions, SearchConfig
from ..pkpd.medications import Dose, HormoneClass, Medication, is_injectable


def generate_candidate_days(schedule_length: int, max_injections: int) -> List[int]:
    """Injection days spread evenly across the schedule.

    A single injection is placed on day 0. Rounded days are clamped to the
    last schedule day and de-duplicated, so short schedules can yield fewer
    days than ``max_injections``.
    """
    if max_injections == 1:
        return [0]

    step = schedule_length / max_injections
    days: List[int] = []
    for i in range(max_injections):
        # Round half up
        day = min(int(i * step + 0.5), schedule_length - 1)
        if day not in days:
            days.append(day)
    return days


def nearest_discrete_amount(amount: float, allowed: Sequence[float]) -> float:
    """Closest allowed amount; ties resolve to the earlier entry."""
    best = allowed[0]
    for candidate in allowed[1:]:
        if abs(candidate - amount) < abs(best - amount):
            best = candidate
    return best


def starting_amount(medication: Medication, options: OptimizationOptions, search: SearchConfig) -> float:
    """Default amount (mg) for a newly placed dose of ``medication``."""
    if is_injectable(medication):
        concentration = options.concentration_for(medication.name, search.default_concentration_mg_ml)
        return search.starting_volume_ml * concentration
    return options.allowed_discrete_amounts[0]


def placement_allowed(medication: Medication,
                      day: int,
                      doses: Sequence[Dose],
                      max_injections: int,
                      constraints: ConstraintConfig,
                      exclude_index: Optional[int] = None) -> bool:
    """Whether ``medication`` may be given on ``day`` alongside ``doses``.

    Args:
        medication: Medication to place
        day: Schedule day
        doses: Current schedule
        max_injections: Cap on injectable doses per cycle
        constraints: Per-day route limits
        exclude_index: Dose being replaced (switch phase); ignored when counting

    Returns:
        False when the placement would violate a per-day or per-cycle rule
    """
    others = [d for i, d in enumerate(doses) if i != exclude_index]

    if medication.hormone is HormoneClass.ESTRADIOL:
        # One injection of each ester per day
        if any(d.day == day and d.medication.name == medication.name for d in others):
            return False
        return sum(1 for d in others if is_injectable(d.medication)) < max_injections

    elif medication.hormone is HormoneClass.PROGESTERONE:
        group = medication.route.limit_group
        limit = constraints.daily_limit(group)
        if limit is None:
            return True
        used = sum(
            1 for d in others
            if d.day == day
            and d.medication.hormone is HormoneClass.PROGESTERONE
            and d.medication.route.limit_group == group
        )
        return used < limit

    raise TypeError(f"Unsupported medication class: {medication.hormone!r}")
