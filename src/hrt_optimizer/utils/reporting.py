"""
Tabular views of schedules, concentration curves and run histories.
"""

import pandas as pd
from typing import Optional, Sequence

from ..config import OptimizationOptions, SearchConfig
from ..pkpd.compartment_models import ConcentrationPoint
from ..pkpd.medications import Dose, is_injectable
from .formatters import format_dose
from .logging_system import RunHistory

DOSE_COLUMNS = ['day', 'medication', 'hormone', 'amount_mg', 'volume_ml', 'label']


def doses_to_frame(doses: Sequence[Dose],
                   options: Optional[OptimizationOptions] = None,
                   search: Optional[SearchConfig] = None) -> pd.DataFrame:
    """One row per dose, sorted by day.

    Injectable doses also get their volume in mL (using the concentration
    factors of ``options``); non-injectable rows have NaN volume.
    """
    options = options or OptimizationOptions()
    search = search or SearchConfig()

    rows = []
    for dose in doses:
        volume = float('nan')
        if is_injectable(dose.medication):
            volume = dose.amount / options.concentration_for(dose.medication.name,
                                                             search.default_concentration_mg_ml)
        rows.append({
            'day': dose.day,
            'medication': dose.medication.name,
            'hormone': dose.medication.hormone.value,
            'amount_mg': dose.amount,
            'volume_ml': volume,
            'label': format_dose(dose.amount, dose.medication.name),
        })

    df = pd.DataFrame(rows, columns=DOSE_COLUMNS)
    return df.sort_values(['day', 'medication'], kind='stable').reset_index(drop=True)


def concentration_to_frame(points: Sequence[ConcentrationPoint]) -> pd.DataFrame:
    """Concentration curve with columns time, estradiol, progesterone."""
    return pd.DataFrame(
        {
            'time': [p.time for p in points],
            'estradiol': [p.estradiol for p in points],
            'progesterone': [p.progesterone for p in points],
        },
        columns=['time', 'estradiol', 'progesterone'],
    )


def history_to_frame(history: RunHistory) -> pd.DataFrame:
    """One row per optimizer iteration, indexed by iteration number."""
    df = pd.DataFrame(history.to_dicts())
    if df.empty:
        return df
    return df.set_index('iteration')
