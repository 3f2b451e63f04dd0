"""
Tests for MSE and multi-objective scoring
"""

import numpy as np
import pytest

from hrt_optimizer.config import OptimizerConfig, PenaltyConfig
from hrt_optimizer.data.reference_cycles import ReferencePoint, generate_reference_cycle
from hrt_optimizer.optimization.objective import (
    ObjectiveEvaluator, expand_steady_state, simplicity_penalties
)
from hrt_optimizer.pkpd.compartment_models import concentration_arrays
from hrt_optimizer.pkpd.medications import Dose


class TestMSE:
    """Normalized error against the reference"""

    def test_empty_schedule_has_unit_error(self, flat_reference):
        evaluator = ObjectiveEvaluator(flat_reference, 7)
        assert evaluator.mse([]) == pytest.approx(1.0)

    def test_zero_target_divides_by_one(self):
        reference = [ReferencePoint(day=d, estradiol=0.0) for d in range(3)]
        evaluator = ObjectiveEvaluator(reference, 3)
        assert evaluator.mse([]) == 0.0

    def test_matches_manual_sampling(self, flat_reference, valerate):
        doses = [Dose(0, 4.0, valerate)]
        evaluator = ObjectiveEvaluator(flat_reference, 7)

        times = np.array([d + i / 4 for d in range(7) for i in range(4)])
        estradiol, _ = concentration_arrays(doses, times)
        expected = np.mean(((estradiol - 100.0) / 100.0) ** 2)

        assert evaluator.mse(doses) == pytest.approx(expected)

    def test_reference_days_outside_schedule_are_ignored(self, valerate):
        reference = [ReferencePoint(day=d, estradiol=100.0) for d in range(7)]
        padded = reference + [ReferencePoint(day=d, estradiol=1e6) for d in range(7, 14)]
        doses = [Dose(0, 4.0, valerate)]

        assert ObjectiveEvaluator(padded, 7).mse(doses) == pytest.approx(ObjectiveEvaluator(reference, 7).mse(doses))

    def test_progesterone_classes_averaged(self, valerate):
        reference = [ReferencePoint(day=d, estradiol=100.0, progesterone=5.0) for d in range(7)]
        evaluator = ObjectiveEvaluator(reference, 7)
        doses = [Dose(0, 4.0, valerate)]

        estradiol_mse, progesterone_mse = evaluator.class_mse(doses)
        assert progesterone_mse == pytest.approx(1.0)
        assert evaluator.mse(doses) == pytest.approx((estradiol_mse + 1.0) / 2)

    def test_progesterone_skipped_without_targets(self, flat_reference, oral_progesterone):
        evaluator = ObjectiveEvaluator(flat_reference, 7)
        estradiol_mse, progesterone_mse = evaluator.class_mse([Dose(0, 100.0, oral_progesterone)])

        assert progesterone_mse is None
        assert estradiol_mse == pytest.approx(1.0)

    def test_zero_progesterone_targets_are_not_scored(self):
        reference = [ReferencePoint(day=d, estradiol=100.0, progesterone=0.0) for d in range(7)]
        _, progesterone_mse = ObjectiveEvaluator(reference, 7).class_mse([])
        assert progesterone_mse is None

    def test_evaluations_are_counted(self, flat_reference):
        evaluator = ObjectiveEvaluator(flat_reference, 7)
        evaluator.mse([])
        evaluator.score([])
        assert evaluator.n_evaluations == 2


class TestPenalties:
    """Simplicity penalties"""

    @pytest.fixture
    def mixed_doses(self, valerate, oral_progesterone):
        return [Dose(0, 3.0, valerate), Dose(3, 3.0, valerate), Dose(1, 100.0, oral_progesterone)]

    def test_default_weights(self, mixed_doses):
        injection, dose_variety, medication_variety = simplicity_penalties(mixed_doses, PenaltyConfig())

        assert injection == pytest.approx(0.04)
        assert dose_variety == pytest.approx(0.002)
        assert medication_variety == pytest.approx(0.02)

    def test_medication_variety_can_be_disabled(self, mixed_doses):
        _, _, medication_variety = simplicity_penalties(mixed_doses, PenaltyConfig(prefer_fewer_medications=False))
        assert medication_variety == 0.0

    def test_amounts_rounded_before_counting(self, valerate):
        doses = [Dose(0, 3.001, valerate), Dose(3, 3.004, valerate)]
        _, dose_variety, _ = simplicity_penalties(doses, PenaltyConfig())
        assert dose_variety == pytest.approx(0.001)

    def test_score_is_mse_plus_penalties(self, flat_reference, mixed_doses):
        evaluator = ObjectiveEvaluator(flat_reference, 7)
        breakdown = evaluator.breakdown(mixed_doses)

        assert breakdown.penalty == pytest.approx(0.062)
        assert evaluator.score(mixed_doses) == pytest.approx(breakdown.total)
        assert breakdown.mse == pytest.approx(evaluator.mse(mixed_doses))


class TestSteadyState:
    """Residual levels from prior cycles"""

    def test_expansion_offsets(self, valerate):
        doses = [Dose(0, 3.0, valerate), Dose(3, 3.0, valerate)]
        expanded = expand_steady_state(doses, 7, 3)
        assert [d.day for d in expanded] == [-21, -18, -14, -11, -7, -4, 0, 3]

    def test_prior_cycles_raise_levels(self, valerate):
        reference = generate_reference_cycle(7)
        doses = [Dose(0, 3.0, valerate)]
        plain = ObjectiveEvaluator(reference, 7)
        steady = ObjectiveEvaluator(reference, 7, steady_state=True)

        # Without prior cycles the level at day 0 is zero, so error there is maximal
        assert steady.mse(doses) != pytest.approx(plain.mse(doses))

    def test_cycle_count_from_config(self, valerate, flat_reference):
        config = OptimizerConfig.from_dict({'evaluation': {'steady_state_cycles': 1}})
        evaluator = ObjectiveEvaluator(flat_reference, 7, steady_state=True, config=config)
        doses = [Dose(0, 3.0, valerate)]

        expected = ObjectiveEvaluator(flat_reference, 7).mse(expand_steady_state(doses, 7, 1))
        assert evaluator.mse(doses) == pytest.approx(expected)
