"""
Pharmacokinetic concentration models and medication types
"""

from .medications import (
    AdministrationRoute, Dose, HormoneClass, InjectableMedication, Medication,
    NonInjectableMedication, count_injections, is_injectable
)
from .compartment_models import (
    ConcentrationPoint, calculate_total_concentration, concentration_arrays, evaluate_concentration,
    generate_time_points, medication_concentration, single_dose_curve
)

__all__ = [
    'AdministrationRoute', 'Dose', 'HormoneClass', 'InjectableMedication', 'Medication',
    'NonInjectableMedication', 'count_injections', 'is_injectable',
    'ConcentrationPoint', 'calculate_total_concentration', 'concentration_arrays', 'evaluate_concentration',
    'generate_time_points', 'medication_concentration', 'single_dose_curve'
]
