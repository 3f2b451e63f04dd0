"""
Named example schedules for common injectable regimens.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..errors import ConfigurationError
from ..pkpd.medications import Dose
from .medication_catalog import get_medication


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    doses: Tuple[Dose, ...]
    schedule_length: int
    repeat: bool = True


def _doses(medication_name: str, rows: List[Tuple[int, float]]) -> Tuple[Dose, ...]:
    medication = get_medication(medication_name)
    return tuple(Dose(day=day, amount=float(amount), medication=medication) for day, amount in rows)


_EV = 'Estradiol valerate'

PRESETS: List[Preset] = [
    Preset('ev-5day', 'EV Every 5 Days', '3mg valerate every 5 days (common regimen)',
           _doses(_EV, [(0, 3)]), 5),
    Preset('ev-weekly', 'EV Weekly', '5mg valerate once per week',
           _doses(_EV, [(0, 5)]), 7),
    Preset('ec-weekly', 'EC Weekly', '4mg cypionate once per week',
           _doses('Estradiol cypionate', [(0, 4)]), 7),
    Preset('ec-biweekly', 'EC Bi-weekly', '7mg cypionate every 2 weeks',
           _doses('Estradiol cypionate', [(0, 7)]), 14),
    Preset('een-weekly', 'EEn Weekly', '4mg enanthate once per week',
           _doses('Estradiol enanthate', [(0, 4)]), 7),
    Preset('frontload', 'Frontload Start', 'Initial loading dose then maintenance (non-repeating)',
           _doses(_EV, [(0, 6), (3, 3), (7, 3), (11, 3), (15, 3), (19, 3), (23, 3), (27, 3)]),
           30, repeat=False),
    Preset('cycle-mimic', 'Cycle Mimicking', 'Variable doses to mimic natural cycle (with less severe lows)',
           _doses(_EV, [(1, 0.75), (3, 0.75), (5, 1), (7, 1), (9, 1.25), (11, 2), (13, 0.5),
                        (17, 0.5), (19, 0.75), (21, 1), (23, 0.75), (25, 0.5), (27, 0.5)]),
           29),
]

_PRESETS_BY_ID: Dict[str, Preset] = {p.id: p for p in PRESETS}


def get_preset(preset_id: str) -> Preset:
    try:
        return _PRESETS_BY_ID[preset_id]
    except KeyError:
        raise ConfigurationError(f"Unknown preset: {preset_id}") from None


def expand_preset(preset: Preset, total_days: int) -> List[Dose]:
    """Repeat a preset's doses across ``total_days`` (a single pass when non-repeating)."""
    if not preset.repeat:
        return [d for d in preset.doses if d.day <= total_days]

    doses = []
    for cycle_start in range(0, total_days + 1, preset.schedule_length):
        doses.extend(d.shifted(cycle_start) for d in preset.doses if d.day + cycle_start <= total_days)
    return doses
