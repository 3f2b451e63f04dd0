"""
Parallel sweep of the optimizer over injection caps.

Each run is independent (its own optimizer, evaluator and state), so runs are
dispatched to a process pool by default. Results come back in the order of
the requested caps.
"""

import concurrent.futures
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from ..config import OptimizationOptions, OptimizerConfig
from ..errors import ConfigurationError
from ..pkpd.medications import Medication
from .schedule_optimizer import OptimizationResult, ReferenceInput, ScheduleOptimizer

logger = logging.getLogger(__name__)


def _run_single(max_injections: int,
                medications: Sequence[Medication],
                schedule_length: int,
                reference_cycle: ReferenceInput,
                options: OptimizationOptions,
                config: OptimizerConfig) -> Tuple[int, OptimizationResult]:
    """Worker for one cap. Module level so process pools can pickle it."""
    run_options = replace(options, max_injections=max_injections)
    optimizer = ScheduleOptimizer(medications, schedule_length, reference_cycle, run_options, config)
    return max_injections, optimizer.run()


def sweep_injection_counts(available_medications: Sequence[Medication],
                           schedule_length: int,
                           injection_counts: Sequence[int],
                           reference_cycle: ReferenceInput = 'typical',
                           options: Optional[OptimizationOptions] = None,
                           config: Optional[OptimizerConfig] = None,
                           n_jobs: int = 1,
                           use_processes: bool = True) -> Dict[int, OptimizationResult]:
    """Optimize one schedule per injection cap.

    Args:
        available_medications: Medications the search may use
        schedule_length: Cycle length in days
        injection_counts: Injection caps to try
        reference_cycle: Reference cycle id or explicit target points
        options: Base options; ``max_injections`` is overridden per run
        config: Tuning constants
        n_jobs: Number of parallel workers (1 runs sequentially)
        use_processes: Use a process pool; otherwise a thread pool

    Returns:
        Mapping of injection cap to result, in the order of ``injection_counts``
    """
    if not injection_counts:
        raise ConfigurationError('injection_counts must not be empty')
    if n_jobs < 1:
        raise ConfigurationError(f"n_jobs must be at least 1, got {n_jobs}")

    options = options or OptimizationOptions()
    config = config or OptimizerConfig()
    medications = list(available_medications)
    if not isinstance(reference_cycle, str):
        reference_cycle = list(reference_cycle)
    counts = list(dict.fromkeys(injection_counts))

    logger.info(f"Sweeping {len(counts)} injection caps with n_jobs={n_jobs}")
    results: Dict[int, OptimizationResult] = {}

    if n_jobs > 1 and len(counts) > 1:
        executor_cls = (concurrent.futures.ProcessPoolExecutor if use_processes
                        else concurrent.futures.ThreadPoolExecutor)
        with executor_cls(max_workers=min(n_jobs, len(counts))) as executor:
            futures = [
                executor.submit(_run_single, count, medications, schedule_length,
                                reference_cycle, options, config)
                for count in counts
            ]
            for future in concurrent.futures.as_completed(futures):
                count, result = future.result()
                results[count] = result
                logger.debug(f"Cap {count}: score={result.score:.6f}, {len(result.doses)} doses")
    else:
        for count in counts:
            _, results[count] = _run_single(count, medications, schedule_length,
                                            reference_cycle, options, config)

    return {count: results[count] for count in counts}


def best_sweep_result(results: Dict[int, OptimizationResult]) -> Tuple[int, OptimizationResult]:
    """Cap whose result has the lowest objective (ties go to fewer injections)."""
    if not results:
        raise ConfigurationError('No sweep results to choose from')
    return min(results.items(), key=lambda item: (item[1].objective, item[0]))


def sweep_summary(results: Dict[int, OptimizationResult]) -> List[Dict[str, float]]:
    """One row per cap, suitable for a DataFrame."""
    return [
        {
            'max_injections': count,
            'score': result.score,
            'objective': result.objective,
            'n_doses': len(result.doses),
            'iterations': result.iterations,
            'converged': result.converged,
        }
        for count, result in results.items()
    ]
