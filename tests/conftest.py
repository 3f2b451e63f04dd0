"""
Shared fixtures for the hrt_optimizer test suite
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / 'src'))

from hrt_optimizer.data.medication_catalog import get_medication, get_progesterone_by_route
from hrt_optimizer.data.reference_cycles import ReferencePoint
from hrt_optimizer.pkpd.medications import AdministrationRoute


@pytest.fixture
def valerate():
    """Estradiol valerate (three-compartment injectable)"""
    return get_medication('Estradiol valerate')


@pytest.fixture
def cypionate():
    return get_medication('Estradiol cypionate')


@pytest.fixture
def oral_progesterone():
    return get_progesterone_by_route(AdministrationRoute.ORAL)


@pytest.fixture
def rectal_progesterone():
    return get_progesterone_by_route(AdministrationRoute.RECTAL)


@pytest.fixture
def vaginal_progesterone():
    return get_progesterone_by_route(AdministrationRoute.VAGINAL)


@pytest.fixture
def flat_reference():
    """Seven days of constant estradiol targets, no progesterone"""
    return [ReferencePoint(day=d, estradiol=100.0) for d in range(7)]
