"""
Pharmacokinetic parameter tables for the supported medications.

Estradiol ester parameters are fitted three-compartment curves for
intramuscular injection. Progesterone parameters are one-compartment
estimates per route, tuned to reported peak levels (oral ~2 ng/mL,
rectal ~15 ng/mL, vaginal ~12 ng/mL per 100 mg).
"""

from typing import Dict, List, Optional

from ..errors import ConfigurationError
from ..pkpd.medications import (
    AdministrationRoute, InjectableMedication, Medication, NonInjectableMedication
)


ESTRADIOL_ESTERS: List[InjectableMedication] = [
    InjectableMedication(name='Estradiol benzoate', D=1.7050e+08, k1=3.22397192, k2=0.58870148, k3=70721.4018),
    InjectableMedication(name='Estradiol valerate', D=2596.05956, k1=2.38229125, k2=0.23345814, k3=1.37642769),
    InjectableMedication(name='Estradiol cypionate', D=1920.89671, k1=0.10321089, k2=0.89854779, k3=0.89359759),
    InjectableMedication(name='Estradiol cypionate suspension', D=1.5669e+08, k1=0.13586726, k2=2.51772731,
                         k3=74768.1493),
    InjectableMedication(name='Estradiol enanthate', D=333.874181, k1=0.42412968, k2=0.43452980, k3=0.15291485),
    InjectableMedication(name='Estradiol undecylate', D=65.9493374, k1=0.29634323, k2=4799337.57, k3=0.03141554),
    InjectableMedication(name='Polyestradiol phosphate', D=34.46836875, k1=0.02456035, k2=135643.711,
                         k3=0.10582368),
]

PROGESTERONE_ROUTES: List[NonInjectableMedication] = [
    # First-pass metabolism: Tmax ~1.5 h, half-life ~7 h
    NonInjectableMedication(name='Progesterone (oral)', route=AdministrationRoute.ORAL,
                            bioavailability=0.10, absorption_rate=0.75, elimination_rate=0.10,
                            volume_of_distribution=3.0),
    # Bypasses hepatic first pass: Tmax ~6 h, half-life ~9 h
    NonInjectableMedication(name='Progesterone (rectal)', route=AdministrationRoute.RECTAL,
                            bioavailability=0.30, absorption_rate=0.18, elimination_rate=0.08,
                            volume_of_distribution=2.0),
    # Tmax ~5 h, half-life ~9 h
    NonInjectableMedication(name='Progesterone (vaginal)', route=AdministrationRoute.VAGINAL,
                            bioavailability=0.28, absorption_rate=0.20, elimination_rate=0.08,
                            volume_of_distribution=2.0),
]

ALL_MEDICATIONS: List[Medication] = [*ESTRADIOL_ESTERS, *PROGESTERONE_ROUTES]

_BY_NAME: Dict[str, Medication] = {m.name: m for m in ALL_MEDICATIONS}


def get_medication(name: str) -> Medication:
    """Look up a medication by its display name."""
    try:
        return _BY_NAME[name]
    except KeyError:
        raise ConfigurationError(f"Unknown medication: {name}") from None


def get_progesterone_by_route(route: AdministrationRoute) -> Optional[NonInjectableMedication]:
    return next((p for p in PROGESTERONE_ROUTES if p.route is route), None)
