"""
Closed-form compartment models for estradiol and progesterone concentrations.
"""

import numpy as np
from scipy.special import exprel
from typing import Iterable, List, Optional, Sequence, Tuple
import logging
from dataclasses import dataclass

from ..config import ModelConfig
from .medications import (
    Dose, HormoneClass, InjectableMedication, Medication, NonInjectableMedication
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConcentrationPoint:
    """Modeled serum levels at one point in time."""
    time: float          # Days
    estradiol: float     # pg/mL
    progesterone: float  # ng/mL


def _rates_collide(a: float, b: float, tolerance: float) -> bool:
    """Relative equality test used to detect singular rate-constant pairs."""
    return abs(a - b) <= tolerance * max(abs(a), abs(b))


def three_compartment_response(dt: np.ndarray,
                               k1: float,
                               k2: float,
                               k3: float,
                               tolerance: float = 1e-9) -> np.ndarray:
    """Bracketed exponential sum of the three-compartment injection model.

    For distinct rates this is

        e^(-k1 t) / ((k1-k2)(k1-k3))
        - e^(-k2 t) / ((k1-k2)(k2-k3))
        + e^(-k3 t) / ((k1-k3)(k2-k3))

    which is singular when two rates coincide. Colliding pairs switch to the
    confluent limit of the same expression.

    Args:
        dt: Elapsed time since administration (days)
        k1, k2, k3: Rate constants (1/day)
        tolerance: Relative tolerance for treating two rates as equal

    Returns:
        Response values with the same shape as ``dt``
    """
    c12 = _rates_collide(k1, k2, tolerance)
    c13 = _rates_collide(k1, k3, tolerance)
    c23 = _rates_collide(k2, k3, tolerance)

    if (c12 and c13) or (c12 and c23) or (c13 and c23):
        k = (k1 + k2 + k3) / 3.0
        return dt * dt * np.exp(-k * dt) / 2.0
    if c12:
        k = (k1 + k2) / 2.0
        return (np.exp(-k3 * dt) - np.exp(-k * dt) * (1.0 + (k - k3) * dt)) / (k - k3) ** 2
    if c13:
        k = (k1 + k3) / 2.0
        return (np.exp(-k2 * dt) - np.exp(-k * dt) * (1.0 + (k - k2) * dt)) / (k - k2) ** 2
    if c23:
        k = (k2 + k3) / 2.0
        return (np.exp(-k1 * dt) - np.exp(-k * dt) * (1.0 - (k1 - k) * dt)) / (k1 - k) ** 2

    return (np.exp(-k1 * dt) / ((k1 - k2) * (k1 - k3))
            - np.exp(-k2 * dt) / ((k1 - k2) * (k2 - k3))
            + np.exp(-k3 * dt) / ((k1 - k3) * (k2 - k3)))


def injectable_concentration(times: np.ndarray,
                             day: float,
                             amount: float,
                             medication: InjectableMedication,
                             config: Optional[ModelConfig] = None) -> np.ndarray:
    """Estradiol level (pg/mL) from one injection, evaluated at ``times`` (days).

    Zero outside ``[day, day + effect_duration_days]``.
    """
    config = config or ModelConfig()
    times = np.asarray(times, dtype=float)
    dt = times - day
    active = (dt >= 0) & (dt <= config.effect_duration_days)
    result = np.zeros_like(times)
    if not active.any():
        return result

    with np.errstate(all='ignore'):
        response = three_compartment_response(
            dt[active], medication.k1, medication.k2, medication.k3, config.rate_tolerance
        )
        values = (amount * medication.D / 5.0) * medication.k1 * medication.k2 * response

    # Anything the closed form cannot represent counts as no contribution
    result[active] = np.where(np.isfinite(values), np.maximum(values, 0.0), 0.0)
    return result


def non_injectable_concentration(times: np.ndarray,
                                 day: float,
                                 amount: float,
                                 medication: NonInjectableMedication,
                                 config: Optional[ModelConfig] = None) -> np.ndarray:
    """Progesterone level (ng/mL) from one dose, evaluated at ``times`` (days).

    One-compartment model with first-order absorption:

        C(t) = (F * A * ka) / (Vd * (ka - ke)) * (e^(-ke t) - e^(-ka t))

    with t in hours. When ka ~ ke the limit (A F ka t / Vd) e^(-ke t) is used.
    """
    config = config or ModelConfig()
    times = np.asarray(times, dtype=float)
    hours = (times - day) * 24.0
    active = hours >= 0
    result = np.zeros_like(times)
    if not active.any():
        return result

    F = medication.bioavailability
    ka = medication.absorption_rate
    ke = medication.elimination_rate
    Vd = medication.volume_of_distribution
    t = hours[active]

    with np.errstate(all='ignore'):
        scale = F * amount * ka / Vd
        if abs(ka - ke) < config.absorption_tolerance:
            values = scale * t * np.exp(-ke * t)
        else:
            # (e^(-ke t) - e^(-ka t)) / (ka - ke) rewritten around the slower rate
            gap = abs(ka - ke)
            values = scale * np.exp(-min(ka, ke) * t) * t * exprel(-gap * t)

    result[active] = np.where(np.isfinite(values), np.maximum(values, 0.0), 0.0)
    return result


def medication_concentration(times: np.ndarray,
                             day: float,
                             amount: float,
                             medication: Medication,
                             config: Optional[ModelConfig] = None) -> np.ndarray:
    """Dispatch a single dose to the model of its hormone class."""
    if medication.hormone is HormoneClass.ESTRADIOL:
        return injectable_concentration(times, day, amount, medication, config)
    elif medication.hormone is HormoneClass.PROGESTERONE:
        return non_injectable_concentration(times, day, amount, medication, config)
    raise TypeError(f"Unsupported medication class: {medication.hormone!r}")


def concentration_arrays(doses: Iterable[Dose],
                         time_points: Sequence[float],
                         config: Optional[ModelConfig] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Summed estradiol and progesterone levels at each time point.

    Args:
        doses: Doses to superimpose
        time_points: Evaluation times (days)
        config: Model configuration

    Returns:
        Tuple of (estradiol pg/mL, progesterone ng/mL) arrays, clamped at zero
    """
    times = np.asarray(time_points, dtype=float)
    estradiol = np.zeros_like(times)
    progesterone = np.zeros_like(times)

    for dose in doses:
        contribution = medication_concentration(times, dose.day, dose.amount, dose.medication, config)
        if dose.medication.hormone is HormoneClass.ESTRADIOL:
            estradiol += contribution
        else:
            progesterone += contribution

    return np.maximum(estradiol, 0.0), np.maximum(progesterone, 0.0)


def calculate_total_concentration(doses: Iterable[Dose],
                                  time_points: Sequence[float],
                                  config: Optional[ModelConfig] = None) -> List[ConcentrationPoint]:
    """Evaluate a schedule at the given time points.

    Returns one ConcentrationPoint per time point, in input order.
    """
    estradiol, progesterone = concentration_arrays(doses, time_points, config)
    return [
        ConcentrationPoint(time=float(t), estradiol=float(e), progesterone=float(p))
        for t, e, p in zip(time_points, estradiol, progesterone)
    ]


# Public entry point name used by calling layers
evaluate_concentration = calculate_total_concentration


def generate_time_points(max_days: float, step: Optional[float] = None) -> np.ndarray:
    """Uniform time grid from 0 to ``max_days`` inclusive."""
    step = step if step is not None else ModelConfig().time_step
    if step <= 0:
        raise ValueError(f"Time step must be positive, got {step}")
    n_steps = int(np.floor(max_days / step + 1e-9))
    return np.arange(n_steps + 1) * step


def single_dose_curve(medication: Medication,
                      amount: float,
                      max_days: float,
                      step: Optional[float] = None,
                      config: Optional[ModelConfig] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Time grid and level curve of one dose given on day 0.

    Useful for inspecting a medication's peak and duration.
    """
    times = generate_time_points(max_days, step)
    return times, medication_concentration(times, 0.0, amount, medication, config)
