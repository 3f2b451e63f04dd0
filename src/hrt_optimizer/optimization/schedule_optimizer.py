"""
Greedy multi-phase local search for dose schedules.

Each iteration runs four ordered phases on a working schedule (prune excess
injections, adjust amounts, switch medications, add doses), accepting a
mutation only when it lowers the multi-objective score. The injectable
volume step starts coarse and is halved whenever the search stalls; the run
ends once the finest step has stalled for long enough. The best schedule
seen during the run is returned, not the final working copy.
"""

import asyncio
import math
import threading
import warnings
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union
import logging

from ..config import OptimizationOptions, OptimizerConfig
from ..data.reference_cycles import ReferencePoint, generate_reference_cycle
from ..errors import ConfigurationError, NonConvergenceWarning
from ..pkpd.medications import Dose, Medication, count_injections, is_injectable
from ..utils.logging_system import IterationRecord, RunHistory
from .candidates import (
    generate_candidate_days, nearest_discrete_amount, placement_allowed, starting_amount
)
from .objective import ObjectiveEvaluator

logger = logging.getLogger(__name__)

# (percent, current score, iteration) -> return False to stop the run
ProgressCallback = Callable[[int, float, int], Optional[bool]]

ReferenceInput = Union[str, Sequence[ReferencePoint]]

STOP_CONVERGED = 'converged'
STOP_CANCELLED = 'cancelled'
STOP_ITERATION_LIMIT = 'iteration_limit'


@dataclass
class OptimizationState:
    """Mutable state of one optimization run. Never shared between runs."""
    current_doses: List[Dose]
    current_score: float
    granularity_multiplier: float
    iterations: int = 0
    no_improvement_count: int = 0
    iterations_since_refinement: int = 0
    best_score: float = math.inf
    best_doses: Tuple[Dose, ...] = ()
    stop_reason: Optional[str] = None

    def record_if_best(self) -> bool:
        """Snapshot the working schedule when it beats the best seen so far."""
        if self.current_score < self.best_score:
            self.best_score = self.current_score
            self.best_doses = tuple(self.current_doses)
            return True
        return False


@dataclass
class PhaseResult:
    doses: List[Dose]
    score: float
    improved: bool


@dataclass
class OptimizationResult:
    """Outcome of a schedule optimization run.

    Attributes:
        doses: Best schedule found, after final cleanup
        score: Mean squared relative error of ``doses`` (no penalties)
        objective: Multi-objective score of ``doses``
        iterations: Completed iterations
        converged: True when the run stopped on its convergence criteria
        cancelled: True when the caller stopped the run early
        hit_iteration_limit: True when the safety ceiling ended the run
        history: Per-iteration records
    """
    doses: List[Dose]
    score: float
    objective: float
    iterations: int
    converged: bool
    cancelled: bool = False
    hit_iteration_limit: bool = False
    history: RunHistory = field(default_factory=RunHistory)

    @property
    def iteration_count(self) -> int:
        return self.iterations


class ScheduleOptimizer:
    """Fits a dose schedule to a reference cycle by greedy local search."""

    def __init__(self,
                 available_medications: Sequence[Medication],
                 schedule_length: int,
                 reference_cycle: ReferenceInput = 'typical',
                 options: Optional[OptimizationOptions] = None,
                 config: Optional[OptimizerConfig] = None):
        """Initialize schedule optimizer.

        Args:
            available_medications: Medications the search may use
            schedule_length: Cycle length in days
            reference_cycle: Reference cycle id or explicit target points
            options: Per-run options (bounds, granularity, cap, ...)
            config: Tuning constants

        Raises:
            ConfigurationError: If no medication is available or the options are invalid
        """
        if not available_medications:
            raise ConfigurationError('At least one medication must be available')
        if schedule_length < 1:
            raise ConfigurationError(f"schedule_length must be at least 1 day, got {schedule_length}")

        options = options or OptimizationOptions()
        options.validate()
        self.config = config or OptimizerConfig()

        # Private copies of the inputs
        self.options = replace(options, concentration_factors=dict(options.concentration_factors))
        self.medications: List[Medication] = list(available_medications)
        self.schedule_length = schedule_length
        if isinstance(reference_cycle, str):
            self.reference = generate_reference_cycle(schedule_length, reference_cycle)
        else:
            self.reference = list(reference_cycle)

        self.evaluator = ObjectiveEvaluator(
            self.reference, schedule_length, self.options.steady_state, self.config
        )

    def _starting_amount(self, medication: Medication) -> float:
        amount = starting_amount(medication, self.options, self.config.search)
        if is_injectable(medication):
            amount = min(max(amount, self.options.min_dose), self.options.max_dose)
        return amount

    def _concentration(self, medication: Medication) -> float:
        return self.options.concentration_for(medication.name, self.config.search.default_concentration_mg_ml)

    def initial_doses(self) -> List[Dose]:
        """One dose of the primary medication on each evenly spaced candidate day."""
        primary = next((m for m in self.medications if is_injectable(m)), self.medications[0])
        amount = self._starting_amount(primary)
        days = generate_candidate_days(self.schedule_length, self.options.max_injections)
        return [Dose(day=day, amount=amount, medication=primary) for day in days]

    def initialize(self) -> OptimizationState:
        search = self.config.search
        doses = self.initial_doses()
        score = self.evaluator.score(doses)
        multiplier = search.initial_granularity_multiplier if search.adaptive_granularity else 1.0
        state = OptimizationState(
            current_doses=doses,
            current_score=score,
            granularity_multiplier=multiplier,
        )
        state.record_if_best()
        return state

    def prune_injections(self, state: OptimizationState) -> PhaseResult:
        """Phase 1: drop the single injection whose removal scores best.

        Runs only while the injection count exceeds the cap. The removal is
        applied even when it raises the score.
        """
        doses = state.current_doses
        if count_injections(doses) <= self.options.max_injections:
            return PhaseResult(doses, state.current_score, False)

        best_score = math.inf
        best_index = -1
        for i in range(len(doses) - 1, -1, -1):
            if not is_injectable(doses[i].medication):
                continue
            without = doses[:i] + doses[i + 1:]
            if not without:
                continue
            score = self.evaluator.score(without)
            if score < best_score:
                best_score = score
                best_index = i

        if best_index < 0:
            return PhaseResult(doses, state.current_score, False)

        logger.debug(f"Pruned injection on day {doses[best_index].day} (score {best_score:.6f})")
        return PhaseResult(doses[:best_index] + doses[best_index + 1:], best_score, True)

    def _injectable_candidates(self, dose: Dose, step_ml: float) -> Iterator[float]:
        """Amounts one to ``max_adjustment_steps`` volume steps above, then below, the current amount."""
        concentration = self._concentration(dose.medication)
        volume = dose.amount / concentration
        max_steps = self.config.search.max_adjustment_steps

        for n in range(1, max_steps + 1):
            amount = (volume + step_ml * n) * concentration
            if amount > self.options.max_dose:
                break
            yield amount

        for n in range(1, max_steps + 1):
            test_volume = volume - step_ml * n
            amount = test_volume * concentration
            if test_volume <= 0 or amount < self.options.min_dose:
                break
            yield amount

    def adjust_doses(self, state: OptimizationState) -> PhaseResult:
        """Phase 2: search nearby amounts for every dose, keeping the best per dose."""
        step_ml = self.options.granularity * state.granularity_multiplier
        doses = list(state.current_doses)
        current_score = state.current_score
        improved = False

        for i, dose in enumerate(doses):
            if is_injectable(dose.medication):
                candidates = self._injectable_candidates(dose, step_ml)
            else:
                candidates = (a for a in self.options.allowed_discrete_amounts if a != dose.amount)

            best_amount = dose.amount
            best_score = current_score
            for amount in candidates:
                doses[i] = replace(dose, amount=amount)
                score = self.evaluator.score(doses)
                if score < best_score:
                    best_score = score
                    best_amount = amount
                    improved = True

            doses[i] = replace(dose, amount=best_amount)
            current_score = best_score

        return PhaseResult(doses, current_score, improved)

    def switch_medications(self, state: OptimizationState) -> PhaseResult:
        """Phase 3: try every other medication for every dose, keeping the best per dose."""
        if len(self.medications) <= 1:
            return PhaseResult(state.current_doses, state.current_score, False)

        doses = list(state.current_doses)
        current_score = state.current_score
        improved = False

        for i, current in enumerate(doses):
            best_dose = current
            best_score = current_score

            for medication in self.medications:
                if medication.name == current.medication.name:
                    continue
                if not placement_allowed(medication, current.day, doses, self.options.max_injections,
                                         self.config.constraints, exclude_index=i):
                    continue

                if not is_injectable(medication):
                    amount = nearest_discrete_amount(current.amount, self.options.allowed_discrete_amounts)
                elif not is_injectable(current.medication):
                    amount = self._starting_amount(medication)
                else:
                    amount = current.amount

                candidate = Dose(day=current.day, amount=amount, medication=medication)
                doses[i] = candidate
                score = self.evaluator.score(doses)
                if score < best_score:
                    best_score = score
                    best_dose = candidate
                    improved = True

            doses[i] = best_dose
            current_score = best_score

        return PhaseResult(doses, current_score, improved)

    def add_medications(self, state: OptimizationState) -> PhaseResult:
        """Phase 4: add any single dose that improves the running score."""
        doses = list(state.current_doses)
        current_score = state.current_score
        improved = False

        for day in range(self.schedule_length):
            for medication in self.medications:
                if not placement_allowed(medication, day, doses, self.options.max_injections,
                                         self.config.constraints):
                    continue
                candidate = doses + [Dose(day=day, amount=self._starting_amount(medication), medication=medication)]
                score = self.evaluator.score(candidate)
                if score < current_score:
                    doses = candidate
                    current_score = score
                    improved = True

        return PhaseResult(doses, current_score, improved)

    def run_iteration(self, state: OptimizationState) -> float:
        """Apply the four phases in order and update the best snapshot.

        Returns:
            Score improvement over the iteration (negative after a forced prune)
        """
        previous_score = state.current_score

        for phase in (self.prune_injections, self.adjust_doses, self.switch_medications, self.add_medications):
            result = phase(state)
            if result.improved:
                state.current_doses = result.doses
                state.current_score = result.score

        state.record_if_best()
        return previous_score - state.current_score

    def update_convergence(self, state: OptimizationState, improvement: float) -> bool:
        """Update stall counters and adaptive granularity.

        Returns:
            True if the granularity multiplier was halved
        """
        search = self.config.search
        if improvement > search.min_improvement:
            state.no_improvement_count = 0
            state.iterations_since_refinement = 0
            return False

        state.no_improvement_count += 1
        state.iterations_since_refinement += 1

        if (search.adaptive_granularity
                and state.iterations_since_refinement >= search.refinement_trigger
                and state.granularity_multiplier > search.min_granularity_multiplier):
            state.granularity_multiplier = max(search.min_granularity_multiplier,
                                               state.granularity_multiplier / 2)
            state.iterations_since_refinement = 0
            state.no_improvement_count = 0
            logger.debug(f"Refined granularity multiplier to {state.granularity_multiplier}")
            return True

        at_floor = (not search.adaptive_granularity
                    or state.granularity_multiplier <= search.min_granularity_multiplier)
        if at_floor and state.no_improvement_count >= search.no_improvement_limit:
            state.stop_reason = STOP_CONVERGED
        return False

    def _progress(self, iteration: int) -> int:
        search = self.config.search
        estimate = (1 - math.exp(-iteration / search.progress_convergence_rate)) * 100
        return min(search.max_reported_progress, int(estimate + 0.5))

    def _iterate(self,
                 state: OptimizationState,
                 history: RunHistory,
                 progress_callback: Optional[ProgressCallback],
                 cancel_event: Optional[threading.Event]) -> Iterator[None]:
        """Run iterations until a stop reason is set, yielding between iterations."""
        max_iterations = self.config.search.max_iterations

        while state.stop_reason is None:
            if cancel_event is not None and cancel_event.is_set():
                state.stop_reason = STOP_CANCELLED
                break
            if state.iterations >= max_iterations:
                state.stop_reason = STOP_ITERATION_LIMIT
                break

            if progress_callback is not None:
                keep_going = progress_callback(self._progress(state.iterations + 1),
                                               state.current_score, state.iterations + 1)
                if keep_going is False:
                    state.stop_reason = STOP_CANCELLED
                    break

            state.iterations += 1
            improvement = self.run_iteration(state)
            refined = self.update_convergence(state, improvement)

            history.append(IterationRecord(
                iteration=state.iterations,
                score=state.current_score,
                best_score=state.best_score,
                improvement=improvement,
                n_doses=len(state.current_doses),
                n_injections=count_injections(state.current_doses),
                granularity_multiplier=state.granularity_multiplier,
                refined=refined,
            ))
            logger.debug(f"Iteration {state.iterations}: score={state.current_score:.6f}, "
                         f"best={state.best_score:.6f}, doses={len(state.current_doses)}")
            yield

    def finalize(self, state: OptimizationState, history: RunHistory) -> OptimizationResult:
        """Clean up the best snapshot and report its plain error."""
        final = [d for d in state.best_doses if d.amount >= self.options.min_dose]
        final = [
            d if is_injectable(d.medication)
            else replace(d, amount=nearest_discrete_amount(d.amount, self.options.allowed_discrete_amounts))
            for d in final
        ]

        hit_limit = state.stop_reason == STOP_ITERATION_LIMIT
        if hit_limit:
            message = (f"Schedule optimization stopped at the {self.config.search.max_iterations}-iteration "
                       f"limit without converging; returning best schedule found")
            logger.warning(message)
            warnings.warn(message, NonConvergenceWarning, stacklevel=3)

        return OptimizationResult(
            doses=final,
            score=self.evaluator.mse(final),
            objective=self.evaluator.score(final),
            iterations=state.iterations,
            converged=state.stop_reason == STOP_CONVERGED,
            cancelled=state.stop_reason == STOP_CANCELLED,
            hit_iteration_limit=hit_limit,
            history=history,
        )

    def _start(self) -> Tuple[OptimizationState, RunHistory]:
        logger.info(f"Optimizing {self.schedule_length}-day schedule with {len(self.medications)} "
                    f"medication(s), max {self.options.max_injections} injection(s)")
        return self.initialize(), RunHistory()

    def _finish(self, state: OptimizationState, history: RunHistory,
                progress_callback: Optional[ProgressCallback]) -> OptimizationResult:
        result = self.finalize(state, history)
        if progress_callback is not None:
            progress_callback(100, state.best_score, state.iterations)
        logger.info(f"Optimization {state.stop_reason} after {result.iterations} iterations: "
                    f"{len(result.doses)} doses, score={result.score:.6f}, "
                    f"{self.evaluator.n_evaluations} evaluations")
        return result

    def run(self,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_event: Optional[threading.Event] = None) -> OptimizationResult:
        """Run the optimization to completion (or cancellation).

        Args:
            progress_callback: Called before each iteration with (percent,
                current score, iteration); returning False stops the run
            cancel_event: Checked between iterations; when set the run stops

        Returns:
            OptimizationResult holding the best schedule found
        """
        state, history = self._start()
        for _ in self._iterate(state, history, progress_callback, cancel_event):
            pass
        return self._finish(state, history, progress_callback)

    async def run_async(self,
                        progress_callback: Optional[ProgressCallback] = None,
                        cancel_event: Optional[threading.Event] = None) -> OptimizationResult:
        """Like ``run``, yielding to the event loop between iterations."""
        state, history = self._start()
        for _ in self._iterate(state, history, progress_callback, cancel_event):
            await asyncio.sleep(0)
        return self._finish(state, history, progress_callback)


def optimize(available_medications: Sequence[Medication],
             schedule_length: int,
             reference_cycle: ReferenceInput = 'typical',
             options: Optional[OptimizationOptions] = None,
             progress_callback: Optional[ProgressCallback] = None,
             config: Optional[OptimizerConfig] = None,
             cancel_event: Optional[threading.Event] = None) -> OptimizationResult:
    """Optimize a dose schedule against a reference cycle.

    Args:
        available_medications: Medications the search may use
        schedule_length: Cycle length in days
        reference_cycle: Reference cycle id or explicit target points
        options: Per-run options
        progress_callback: Per-iteration progress hook; return False to stop
        config: Tuning constants
        cancel_event: Cooperative cancellation flag

    Returns:
        OptimizationResult with the best schedule, its error and iteration count
    """
    optimizer = ScheduleOptimizer(available_medications, schedule_length, reference_cycle, options, config)
    return optimizer.run(progress_callback, cancel_event)


async def optimize_async(available_medications: Sequence[Medication],
                         schedule_length: int,
                         reference_cycle: ReferenceInput = 'typical',
                         options: Optional[OptimizationOptions] = None,
                         progress_callback: Optional[ProgressCallback] = None,
                         config: Optional[OptimizerConfig] = None,
                         cancel_event: Optional[threading.Event] = None) -> OptimizationResult:
    optimizer = ScheduleOptimizer(available_medications, schedule_length, reference_cycle, options, config)
    return await optimizer.run_async(progress_callback, cancel_event)
