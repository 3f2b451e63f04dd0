"""
Reference menstrual-cycle hormone profiles used as optimization targets.

Cycles are standardized to 29 days with ovulation at day 15. Estradiol is in
pg/mL (converted from pmol/L by / 3.67), progesterone in ng/mL (converted from
nmol/L by / 3.18).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import ConfigurationError

CYCLE_LENGTH_DAYS = 29


@dataclass(frozen=True)
class ReferencePoint:
    """Target levels for one schedule day."""
    day: int
    estradiol: float                     # pg/mL
    progesterone: Optional[float] = None  # ng/mL


@dataclass(frozen=True)
class ReferenceCycleInfo:
    """A selectable reference cycle and where its numbers come from."""
    id: str
    name: str
    description: str
    source: str
    source_url: Optional[str]
    cycle_length: int
    data: Tuple[ReferencePoint, ...]


def _points(rows: Sequence[Tuple[int, float, float]]) -> Tuple[ReferencePoint, ...]:
    return tuple(ReferencePoint(day=d, estradiol=float(e), progesterone=float(p)) for d, e, p in rows)


# Median levels of 23 cycles (PMC8042396)
_TYPICAL = _points([
    # Early follicular
    (1, 34, 0.6), (2, 36, 0.6), (3, 38, 0.65), (4, 42, 0.65), (5, 45, 0.67),
    # Intermediate follicular
    (6, 47, 0.67), (7, 50, 0.67), (8, 55, 0.67), (9, 65, 0.70), (10, 85, 0.75),
    # Late follicular
    (11, 110, 0.80), (12, 126, 0.85), (13, 175, 0.92), (14, 210, 1.00),
    # Ovulation
    (15, 223, 1.05),
    # Early luteal
    (16, 200, 2.5), (17, 150, 5.0), (18, 106, 6.92),
    # Intermediate luteal
    (19, 100, 9.5), (20, 115, 12.0), (21, 125, 13.5), (22, 138, 14.5), (23, 135, 13.8),
    (24, 125, 12.0), (25, 115, 9.0),
    # Late luteal
    (26, 108, 6.5), (27, 85, 3.58), (28, 55, 1.5), (29, 40, 0.8),
])

# Natural-cycle equivalent targets for HRT (transfemscience.org)
_HRT_TARGET = _points([
    (1, 50, 0.5), (2, 50, 0.5), (3, 52, 0.5), (4, 55, 0.6), (5, 58, 0.6),
    (6, 62, 0.7), (7, 68, 0.7), (8, 75, 0.7), (9, 85, 0.8), (10, 100, 0.9),
    (11, 125, 1.0), (12, 150, 1.1), (13, 200, 1.2), (14, 250, 1.5),
    (15, 300, 2.0),
    (16, 250, 4.0), (17, 200, 7.0), (18, 200, 10.0),
    (19, 200, 12.0), (20, 200, 14.0), (21, 200, 15.0), (22, 200, 15.0), (23, 195, 14.0),
    (24, 180, 12.0), (25, 160, 9.0),
    (26, 130, 6.0), (27, 100, 3.0), (28, 70, 1.5), (29, 55, 0.8),
])

# 5th percentile (PMC8042396)
_CONSERVATIVE = _points([
    (1, 21, 0.35), (2, 22, 0.35), (3, 23, 0.38), (4, 24, 0.38), (5, 25, 0.40),
    (6, 26, 0.40), (7, 28, 0.40), (8, 32, 0.40), (9, 40, 0.42), (10, 45, 0.45),
    (11, 50, 0.48), (12, 52, 0.50), (13, 55, 0.55), (14, 58, 0.60),
    (15, 60, 0.65),
    (16, 58, 1.5), (17, 54, 3.0), (18, 51, 4.2),
    (19, 52, 5.7), (20, 58, 7.2), (21, 62, 8.1), (22, 66, 8.7), (23, 64, 8.3),
    (24, 60, 7.2), (25, 56, 5.4),
    (26, 48, 3.9), (27, 38, 2.1), (28, 30, 0.9), (29, 24, 0.5),
])

# 95th percentile (PMC8042396)
_HIGH_PHYSIOLOGICAL = _points([
    (1, 63, 0.9), (2, 65, 0.9), (3, 68, 0.95), (4, 72, 0.95), (5, 75, 1.0),
    (6, 80, 1.0), (7, 85, 1.0), (8, 95, 1.0), (9, 120, 1.05), (10, 180, 1.1),
    (11, 234, 1.2), (12, 280, 1.3), (13, 400, 1.4), (14, 480, 1.5),
    (15, 603, 1.6),
    (16, 450, 3.8), (17, 280, 7.5), (18, 179, 10.4),
    (19, 165, 14.3), (20, 220, 18.0), (21, 270, 20.3), (22, 306, 21.8), (23, 295, 20.7),
    (24, 260, 18.0), (25, 220, 13.5),
    (26, 200, 9.8), (27, 150, 5.4), (28, 100, 2.3), (29, 75, 1.2),
])

_PMC_URL = 'https://www.ncbi.nlm.nih.gov/pmc/articles/PMC8042396/'

REFERENCE_CYCLES: List[ReferenceCycleInfo] = [
    ReferenceCycleInfo('typical', 'Typical Cycle', 'Median levels from 23 cis women (PMC8042396)',
                       'PMC8042396', _PMC_URL, CYCLE_LENGTH_DAYS, _TYPICAL),
    ReferenceCycleInfo('hrt-target', 'HRT Target Ranges', 'Natural cycle equivalent targets for HRT',
                       'Transfeminine Science', 'https://transfemscience.org/articles/e2-equivalent-doses/',
                       CYCLE_LENGTH_DAYS, _HRT_TARGET),
    ReferenceCycleInfo('conservative', 'Conservative Range', 'Lower bound (5th percentile) of natural variation',
                       'PMC8042396', _PMC_URL, CYCLE_LENGTH_DAYS, _CONSERVATIVE),
    ReferenceCycleInfo('high-physiological', 'High Physiological',
                       'Upper bound (95th percentile) of natural variation',
                       'PMC8042396', _PMC_URL, CYCLE_LENGTH_DAYS, _HIGH_PHYSIOLOGICAL),
]

_CYCLES_BY_ID: Dict[str, ReferenceCycleInfo] = {c.id: c for c in REFERENCE_CYCLES}


def get_reference_cycle(cycle_type: str) -> ReferenceCycleInfo:
    try:
        return _CYCLES_BY_ID[cycle_type]
    except KeyError:
        raise ConfigurationError(f"Unknown cycle type: {cycle_type}") from None


def generate_reference_cycle(total_days: int, cycle_type: str = 'typical') -> List[ReferencePoint]:
    """Target levels for schedule days 0..total_days (inclusive).

    Schedule day ``d`` maps to cycle day ``(d % cycle_length) + 1``; when a
    cycle day has no entry the nearest listed day is used.

    Args:
        total_days: Last schedule day to generate
        cycle_type: Id of one of REFERENCE_CYCLES

    Returns:
        One ReferencePoint per schedule day
    """
    cycle = get_reference_cycle(cycle_type)
    by_day = {p.day: p for p in cycle.data}

    reference = []
    for day in range(total_days + 1):
        cycle_day = (day % cycle.cycle_length) + 1
        point = by_day.get(cycle_day)
        if point is None:
            point = min(cycle.data, key=lambda p: abs(p.day - cycle_day))
        reference.append(ReferencePoint(day=day, estradiol=point.estradiol, progesterone=point.progesterone))

    return reference
