"""
Objective evaluation: normalized error against a reference cycle plus
simplicity penalties.
"""

import numpy as np
from typing import List, Optional, Sequence
import logging
from dataclasses import dataclass

from ..config import OptimizerConfig, PenaltyConfig
from ..data.reference_cycles import ReferencePoint
from ..pkpd.compartment_models import concentration_arrays
from ..pkpd.medications import Dose, count_injections

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Individual terms of the multi-objective score."""
    mse: float
    estradiol_mse: float
    progesterone_mse: Optional[float]
    injection_penalty: float
    dose_variety_penalty: float
    medication_variety_penalty: float

    @property
    def penalty(self) -> float:
        return self.injection_penalty + self.dose_variety_penalty + self.medication_variety_penalty

    @property
    def total(self) -> float:
        return self.mse + self.penalty


def simplicity_penalties(doses: Sequence[Dose], penalties: PenaltyConfig) -> tuple:
    """Injection count, dose variety and medication variety penalties.

    Returns:
        Tuple of (injection, dose variety, medication variety) penalties
    """
    injection = count_injections(doses) * penalties.injection_weight
    dose_variety = len({round(d.amount, 2) for d in doses}) * penalties.dose_variety_weight
    medication_variety = 0.0
    if penalties.prefer_fewer_medications:
        medication_variety = len({d.medication.name for d in doses}) * penalties.medication_variety_weight
    return injection, dose_variety, medication_variety


def expand_steady_state(doses: Sequence[Dose], schedule_length: int, cycles: int) -> List[Dose]:
    """Prepend ``cycles`` copies of the schedule at negative day offsets.

    The copies stand in for residual levels left by prior cycles.
    """
    pre_cycles = [
        dose.shifted(-cycle * schedule_length)
        for cycle in range(cycles, 0, -1)
        for dose in doses
    ]
    return pre_cycles + list(doses)


class ObjectiveEvaluator:
    """Scores candidate schedules against a reference cycle.

    Sample times and targets are computed once per evaluator, so each call to
    ``mse`` is a single vectorized model evaluation.
    """

    def __init__(self,
                 reference: Sequence[ReferencePoint],
                 schedule_length: int,
                 steady_state: bool = False,
                 config: Optional[OptimizerConfig] = None):
        """Initialize evaluator.

        Args:
            reference: Target levels per schedule day
            schedule_length: Cycle length in days; only reference days in
                [0, schedule_length) are scored
            steady_state: Include residual levels from prior cycles
            config: Optimizer configuration
        """
        self.config = config or OptimizerConfig()
        self.schedule_length = schedule_length
        self.steady_state = steady_state

        relevant = [r for r in reference if 0 <= r.day < schedule_length]
        samples = self.config.evaluation.samples_per_day
        offsets = np.arange(samples) / samples

        days = np.array([r.day for r in relevant], dtype=float)
        self.sample_times = (days[:, None] + offsets[None, :]).ravel()

        estradiol = np.repeat(np.array([r.estradiol for r in relevant], dtype=float), samples)
        self._estradiol_targets = estradiol
        self._estradiol_divisors = np.where(estradiol != 0, estradiol, 1.0)

        # Progesterone is scored only where a positive target exists
        progesterone = np.repeat(
            np.array([r.progesterone if r.progesterone is not None else 0.0 for r in relevant], dtype=float),
            samples
        )
        self._progesterone_mask = progesterone > 0
        self._progesterone_targets = progesterone
        self._progesterone_divisors = np.where(progesterone > 0, progesterone, 1.0)

        self.n_evaluations = 0

    def _doses_for_evaluation(self, doses: Sequence[Dose]) -> List[Dose]:
        if self.steady_state:
            return expand_steady_state(doses, self.schedule_length, self.config.evaluation.steady_state_cycles)
        return list(doses)

    def class_mse(self, doses: Sequence[Dose]) -> tuple:
        """Per-class mean squared relative error.

        Returns:
            Tuple of (estradiol MSE, progesterone MSE or None when the
            reference has no progesterone targets)
        """
        self.n_evaluations += 1
        if self.sample_times.size == 0:
            return 0.0, None

        estradiol, progesterone = concentration_arrays(
            self._doses_for_evaluation(doses), self.sample_times, self.config.model
        )

        e_err = (estradiol - self._estradiol_targets) / self._estradiol_divisors
        estradiol_mse = float(np.mean(e_err ** 2))

        if not self._progesterone_mask.any():
            return estradiol_mse, None

        mask = self._progesterone_mask
        p_err = (progesterone[mask] - self._progesterone_targets[mask]) / self._progesterone_divisors[mask]
        return estradiol_mse, float(np.mean(p_err ** 2))

    def mse(self, doses: Sequence[Dose]) -> float:
        """Normalized error of a schedule; classes are weighted equally when both have targets."""
        estradiol_mse, progesterone_mse = self.class_mse(doses)
        if progesterone_mse is None:
            return estradiol_mse
        return (estradiol_mse + progesterone_mse) / 2.0

    def score(self, doses: Sequence[Dose]) -> float:
        """Multi-objective score (lower is better)."""
        return self.mse(doses) + sum(simplicity_penalties(doses, self.config.penalties))

    def breakdown(self, doses: Sequence[Dose]) -> ScoreBreakdown:
        estradiol_mse, progesterone_mse = self.class_mse(doses)
        mse = estradiol_mse if progesterone_mse is None else (estradiol_mse + progesterone_mse) / 2.0
        injection, dose_variety, medication_variety = simplicity_penalties(doses, self.config.penalties)
        return ScoreBreakdown(
            mse=mse,
            estradiol_mse=estradiol_mse,
            progesterone_mse=progesterone_mse,
            injection_penalty=injection,
            dose_variety_penalty=dose_variety,
            medication_variety_penalty=medication_variety,
        )
