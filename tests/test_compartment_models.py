"""
Tests for the closed-form concentration models
"""

import numpy as np
import pytest

from hrt_optimizer.config import ModelConfig
from hrt_optimizer.pkpd.compartment_models import (
    calculate_total_concentration, concentration_arrays, evaluate_concentration, generate_time_points,
    injectable_concentration, medication_concentration, non_injectable_concentration,
    single_dose_curve, three_compartment_response
)
from hrt_optimizer.pkpd.medications import (
    AdministrationRoute, Dose, InjectableMedication, NonInjectableMedication
)


class TestInjectableModel:
    """Three-compartment estradiol injection model"""

    def test_single_valerate_dose_curve(self, valerate):
        times, curve = single_dose_curve(valerate, 1.0, 100.0, step=0.25)

        assert curve[0] == pytest.approx(0.0, abs=1e-9)
        peak = int(np.argmax(curve))
        assert 0 < times[peak] < 10
        assert curve[peak] > 0
        # Rises to a single peak, then decays
        assert np.all(np.diff(curve[:peak + 1]) >= -1e-9)
        assert np.all(np.diff(curve[peak:]) <= 1e-9)
        assert curve[-1] == pytest.approx(0.0, abs=1e-3)

    def test_zero_before_administration(self, valerate):
        times = np.array([0.0, 2.0, 4.99])
        assert np.all(injectable_concentration(times, 5.0, 3.0, valerate) == 0.0)

    def test_zero_after_effect_window(self, valerate):
        config = ModelConfig(effect_duration_days=10.0)
        values = injectable_concentration(np.array([9.0, 10.5, 50.0]), 0.0, 3.0, valerate, config)
        assert values[0] > 0
        assert np.all(values[1:] == 0.0)

    def test_scales_linearly_with_amount(self, valerate):
        times = generate_time_points(20)
        single = injectable_concentration(times, 0.0, 1.0, valerate)
        triple = injectable_concentration(times, 0.0, 3.0, valerate)
        np.testing.assert_allclose(triple, 3 * single)

    def test_two_equal_rates_are_finite_and_continuous(self):
        dt = np.linspace(0, 30, 121)
        exact = three_compartment_response(dt, 0.5, 0.5, 0.2)
        nearby = three_compartment_response(dt, 0.5, 0.5 * (1 + 1e-6), 0.2)

        assert np.all(np.isfinite(exact))
        np.testing.assert_allclose(exact, nearby, rtol=1e-4, atol=1e-12)

    @pytest.mark.parametrize("rates", [(0.3, 0.7, 0.7), (0.4, 0.9, 0.4)])
    def test_other_colliding_pairs_match_nearby_rates(self, rates):
        dt = np.linspace(0, 30, 121)
        k1, k2, k3 = rates
        exact = three_compartment_response(dt, k1, k2, k3)
        nearby = three_compartment_response(dt, k1 * (1 + 1e-6), k2, k3 * (1 - 1e-6))
        np.testing.assert_allclose(exact, nearby, rtol=1e-4, atol=1e-12)

    def test_all_equal_rates(self):
        med = InjectableMedication(name='Degenerate', D=100.0, k1=0.5, k2=0.5, k3=0.5)
        values = injectable_concentration(generate_time_points(30), 0.0, 1.0, med)

        assert np.all(np.isfinite(values))
        assert np.all(values >= 0)
        assert values.max() > 0


class TestNonInjectableModel:
    """One-compartment progesterone model"""

    def test_zero_before_administration(self, oral_progesterone):
        values = non_injectable_concentration(np.array([0.0, 0.5, 0.99]), 1.0, 100.0, oral_progesterone)
        assert np.all(values == 0.0)

    def test_rises_then_decays(self, rectal_progesterone):
        times = generate_time_points(3, step=1 / 24)
        values = non_injectable_concentration(times, 0.0, 100.0, rectal_progesterone)

        peak = int(np.argmax(values))
        assert values[0] == 0.0
        assert 0 < peak < len(values) - 1
        assert values[-1] < values[peak]

    def test_decays_to_zero_at_long_horizon(self, rectal_progesterone, oral_progesterone, vaginal_progesterone):
        for medication in (rectal_progesterone, oral_progesterone, vaginal_progesterone):
            values = non_injectable_concentration(np.array([1.0, 10.0, 30.0]), 0.0, 200.0, medication)
            assert values[0] > values[1] > values[2]
            assert values[2] == pytest.approx(0.0, abs=1e-12)

    def test_matches_closed_form(self, oral_progesterone):
        t_hours = 6.0
        F, ka, ke, Vd = 0.10, 0.75, 0.10, 3.0
        expected = F * 100.0 * ka / (Vd * (ka - ke)) * (np.exp(-ke * t_hours) - np.exp(-ka * t_hours))

        value = non_injectable_concentration(np.array([t_hours / 24]), 0.0, 100.0, oral_progesterone)
        assert value[0] == pytest.approx(expected, rel=1e-9)

    def test_equal_absorption_and_elimination(self):
        same = NonInjectableMedication('Same rates', AdministrationRoute.ORAL, 0.5, 0.2, 0.2, 2.0)
        close = NonInjectableMedication('Close rates', AdministrationRoute.ORAL, 0.5, 0.2 * (1 + 1e-7), 0.2, 2.0)
        times = generate_time_points(2, step=0.1)

        limit = non_injectable_concentration(times, 0.0, 100.0, same)
        t = times * 24
        np.testing.assert_allclose(limit, (100.0 * 0.5 * 0.2 * t / 2.0) * np.exp(-0.2 * t), rtol=1e-9)
        np.testing.assert_allclose(limit, non_injectable_concentration(times, 0.0, 100.0, close), rtol=1e-5)


class TestTotalConcentration:
    """Superposition over schedules"""

    def test_empty_schedule_is_zero(self):
        points = calculate_total_concentration([], [0.0, 1.0, 2.0])
        assert [p.estradiol for p in points] == [0.0, 0.0, 0.0]
        assert [p.progesterone for p in points] == [0.0, 0.0, 0.0]

    def test_classes_are_summed_separately(self, valerate, oral_progesterone):
        times = generate_time_points(10)
        e_only, _ = concentration_arrays([Dose(0, 3.0, valerate)], times)
        _, p_only = concentration_arrays([Dose(2, 100.0, oral_progesterone)], times)
        estradiol, progesterone = concentration_arrays(
            [Dose(0, 3.0, valerate), Dose(2, 100.0, oral_progesterone)], times
        )

        np.testing.assert_allclose(estradiol, e_only)
        np.testing.assert_allclose(progesterone, p_only)

    def test_non_negative_and_deterministic(self, valerate, cypionate, vaginal_progesterone):
        doses = [Dose(0, 5.0, valerate), Dose(3, 2.5, cypionate), Dose(1, 200.0, vaginal_progesterone)]
        times = generate_time_points(30)

        first = evaluate_concentration(doses, times)
        second = evaluate_concentration(doses, times)

        assert first == second
        assert all(p.estradiol >= 0 and p.progesterone >= 0 for p in first)

    def test_points_preserve_input_times(self, valerate):
        points = calculate_total_concentration([Dose(0, 1.0, valerate)], [3.0, 1.0, 2.0])
        assert [p.time for p in points] == [3.0, 1.0, 2.0]

    def test_unknown_medication_type_raises(self):
        class Unknown:
            hormone = None

        with pytest.raises(TypeError):
            medication_concentration(np.array([1.0]), 0.0, 1.0, Unknown())


class TestTimePoints:

    def test_grid_is_inclusive(self):
        times = generate_time_points(2, step=0.5)
        np.testing.assert_allclose(times, [0.0, 0.5, 1.0, 1.5, 2.0])

    def test_default_step(self):
        assert len(generate_time_points(1)) == 5

    def test_non_positive_step_raises(self):
        with pytest.raises(ValueError):
            generate_time_points(5, step=0)
