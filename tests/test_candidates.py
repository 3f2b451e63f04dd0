"""
Tests for candidate days and placement constraints
"""

import pytest

from hrt_optimizer.config import ConstraintConfig, OptimizationOptions, SearchConfig
from hrt_optimizer.optimization.candidates import (
    generate_candidate_days, nearest_discrete_amount, placement_allowed, starting_amount
)
from hrt_optimizer.pkpd.medications import Dose


class TestCandidateDays:

    def test_single_injection_on_day_zero(self):
        assert generate_candidate_days(29, 1) == [0]

    def test_one_per_day_when_cap_equals_length(self):
        assert generate_candidate_days(7, 7) == list(range(7))

    def test_evenly_spaced(self):
        assert generate_candidate_days(28, 4) == [0, 7, 14, 21]

    def test_short_schedule_deduplicates(self):
        days = generate_candidate_days(3, 10)
        assert days == sorted(set(days))
        assert all(0 <= d <= 2 for d in days)


class TestAmounts:

    def test_nearest_discrete_amount(self):
        assert nearest_discrete_amount(140.0, (100.0, 200.0)) == 100.0
        assert nearest_discrete_amount(160.0, (100.0, 200.0)) == 200.0
        assert nearest_discrete_amount(150.0, (100.0, 200.0)) == 100.0

    def test_starting_amounts(self, valerate, oral_progesterone):
        options = OptimizationOptions(concentration_factors={'Estradiol valerate': 20.0},
                                      allowed_discrete_amounts=(200.0, 100.0))
        assert starting_amount(valerate, options, SearchConfig()) == pytest.approx(3.0)
        assert starting_amount(oral_progesterone, options, SearchConfig()) == 200.0


class TestPlacement:

    @pytest.fixture
    def constraints(self):
        return ConstraintConfig()

    def test_same_ester_twice_on_one_day_blocked(self, valerate, cypionate, constraints):
        doses = [Dose(2, 3.0, valerate)]
        assert not placement_allowed(valerate, 2, doses, 10, constraints)
        assert placement_allowed(cypionate, 2, doses, 10, constraints)
        assert placement_allowed(valerate, 3, doses, 10, constraints)

    def test_injection_cap(self, valerate, cypionate, constraints):
        doses = [Dose(0, 3.0, valerate), Dose(3, 3.0, valerate)]
        assert not placement_allowed(cypionate, 5, doses, 2, constraints)
        # Replacing one of the counted injections frees a slot
        assert placement_allowed(cypionate, 3, doses, 2, constraints, exclude_index=1)

    def test_one_rectal_dose_per_day(self, rectal_progesterone, oral_progesterone, constraints):
        doses = [Dose(1, 100.0, rectal_progesterone)]
        assert not placement_allowed(rectal_progesterone, 1, doses, 10, constraints)
        assert placement_allowed(rectal_progesterone, 2, doses, 10, constraints)
        assert placement_allowed(oral_progesterone, 1, doses, 10, constraints)

    def test_oral_and_vaginal_share_daily_limit(self, oral_progesterone, vaginal_progesterone, constraints):
        doses = [Dose(4, 100.0, oral_progesterone)] * 2 + [Dose(4, 100.0, vaginal_progesterone)] * 2
        assert not placement_allowed(oral_progesterone, 4, doses, 10, constraints)
        assert not placement_allowed(vaginal_progesterone, 4, doses, 10, constraints)
        assert placement_allowed(vaginal_progesterone, 4, doses[:3], 10, constraints)

    def test_progesterone_ignores_injection_cap(self, valerate, oral_progesterone, constraints):
        doses = [Dose(0, 3.0, valerate)]
        assert placement_allowed(oral_progesterone, 0, doses, 1, constraints)

    def test_custom_route_limits(self, rectal_progesterone):
        constraints = ConstraintConfig(route_daily_limits={'rectal': 2, 'oral_vaginal': 4})
        doses = [Dose(1, 100.0, rectal_progesterone)]
        assert placement_allowed(rectal_progesterone, 1, doses, 10, constraints)
