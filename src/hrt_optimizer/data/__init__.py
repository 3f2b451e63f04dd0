"""
Medication catalog, reference cycles, presets and schedule validation
"""

from .medication_catalog import (
    ALL_MEDICATIONS, ESTRADIOL_ESTERS, PROGESTERONE_ROUTES,
    get_medication, get_progesterone_by_route
)
from .reference_cycles import (
    CYCLE_LENGTH_DAYS, REFERENCE_CYCLES, ReferenceCycleInfo, ReferencePoint,
    generate_reference_cycle, get_reference_cycle
)
from .presets import PRESETS, Preset, expand_preset, get_preset
from .validator import ScheduleValidator, validate_schedule

__all__ = [
    'ALL_MEDICATIONS', 'ESTRADIOL_ESTERS', 'PROGESTERONE_ROUTES',
    'get_medication', 'get_progesterone_by_route',
    'CYCLE_LENGTH_DAYS', 'REFERENCE_CYCLES', 'ReferenceCycleInfo', 'ReferencePoint',
    'generate_reference_cycle', 'get_reference_cycle',
    'PRESETS', 'Preset', 'expand_preset', 'get_preset',
    'ScheduleValidator', 'validate_schedule'
]
