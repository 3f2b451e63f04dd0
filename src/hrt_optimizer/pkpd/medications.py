"""
Medication and dose types for the two modeled hormone classes.

Injectable estradiol esters use a three-compartment absorption/distribution/
elimination curve; non-injectable progesterone uses a one-compartment model
with first-order absorption and a route-specific per-day usage limit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union


class HormoneClass(Enum):
    """Hormone class a medication contributes to."""
    ESTRADIOL = 'estradiol'        # Class A, injectable
    PROGESTERONE = 'progesterone'  # Class B, non-injectable


class AdministrationRoute(Enum):
    """Administration routes for non-injectable medications."""
    ORAL = 'oral'
    RECTAL = 'rectal'
    VAGINAL = 'vaginal'

    @property
    def limit_group(self) -> str:
        """Name of the per-day limit shared by this route.

        Oral and vaginal doses are counted together; rectal doses have
        their own (one suppository per day) limit.
        """
        if self is AdministrationRoute.RECTAL:
            return 'rectal'
        return 'oral_vaginal'


@dataclass(frozen=True)
class InjectableMedication:
    """Estradiol ester for intramuscular injection (three-compartment model)."""
    name: str
    D: float   # Distribution coefficient
    k1: float  # Rate constant 1 (1/day)
    k2: float  # Rate constant 2 (1/day)
    k3: float  # Rate constant 3 (1/day)

    @property
    def hormone(self) -> HormoneClass:
        return HormoneClass.ESTRADIOL


@dataclass(frozen=True)
class NonInjectableMedication:
    """Progesterone preparation (one-compartment model with first-order absorption)."""
    name: str
    route: AdministrationRoute
    bioavailability: float        # F, fraction absorbed (0-1)
    absorption_rate: float        # ka (1/hour)
    elimination_rate: float       # ke (1/hour)
    volume_of_distribution: float  # Vd (liters)

    @property
    def hormone(self) -> HormoneClass:
        return HormoneClass.PROGESTERONE


Medication = Union[InjectableMedication, NonInjectableMedication]


@dataclass(frozen=True)
class Dose:
    """Single administration of a medication on a schedule day."""
    day: int            # Day of administration (>= 0 within a cycle)
    amount: float       # Amount in mg
    medication: Medication

    def shifted(self, offset_days: int) -> 'Dose':
        """Copy of this dose moved by ``offset_days`` (used for steady-state pre-cycles)."""
        return Dose(day=self.day + offset_days, amount=self.amount, medication=self.medication)


def is_injectable(medication: Medication) -> bool:
    """True for class A (injectable estradiol) medications."""
    return medication.hormone is HormoneClass.ESTRADIOL


def count_injections(doses: Sequence[Dose]) -> int:
    """Number of class A doses in a schedule."""
    return sum(1 for d in doses if is_injectable(d.medication))
