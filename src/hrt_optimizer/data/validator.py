"""
Validation of dose schedules against dosing bounds and placement rules.
"""

import math
from collections import Counter
from typing import Any, Dict, Optional, Sequence
import logging

from ..config import OptimizationOptions, OptimizerConfig
from ..errors import ConfigurationError
from ..pkpd.medications import Dose, HormoneClass, count_injections, is_injectable


class ScheduleValidator:
    """Validation utilities for dose schedules."""

    def __init__(self,
                 options: Optional[OptimizationOptions] = None,
                 config: Optional[OptimizerConfig] = None,
                 strict_mode: bool = False):
        """Initialize validator.

        Args:
            options: Dose bounds, discrete amounts and injection cap to check against
            config: Optimizer configuration (route limits)
            strict_mode: If True, raises ConfigurationError on the first error
        """
        self.options = options or OptimizationOptions()
        self.config = config or OptimizerConfig()
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(__name__)

    def _error(self, results: Dict[str, Any], message: str) -> None:
        results['errors'].append(message)
        results['valid'] = False
        if self.strict_mode:
            raise ConfigurationError(message)

    def validate(self, doses: Sequence[Dose], schedule_length: Optional[int] = None) -> Dict[str, Any]:
        """Comprehensive validation of a schedule.

        Args:
            doses: Schedule to check
            schedule_length: If given, doses must fall on days [0, schedule_length)

        Returns:
            Dictionary with validation results
        """
        results = {
            'valid': True,
            'warnings': [],
            'errors': [],
            'statistics': {}
        }

        if not doses:
            results['warnings'].append('Schedule has no doses')

        self._validate_days(doses, schedule_length, results)
        self._validate_amounts(doses, results)
        self._validate_placement(doses, results)

        results['statistics'] = self._generate_statistics(doses)

        if results['errors']:
            self.logger.debug(f"Schedule failed validation with {len(results['errors'])} error(s)")
        return results

    def _validate_days(self, doses: Sequence[Dose], schedule_length: Optional[int],
                       results: Dict[str, Any]) -> None:
        for dose in doses:
            if dose.day < 0:
                self._error(results, f"Dose of {dose.medication.name} on negative day {dose.day}")
            elif schedule_length is not None and dose.day >= schedule_length:
                self._error(results, f"Dose of {dose.medication.name} on day {dose.day} "
                                     f"is outside the {schedule_length}-day schedule")

    def _validate_amounts(self, doses: Sequence[Dose], results: Dict[str, Any]) -> None:
        allowed = self.options.allowed_discrete_amounts
        for dose in doses:
            name = dose.medication.name
            if not math.isfinite(dose.amount) or dose.amount <= 0:
                self._error(results, f"Non-positive amount {dose.amount} for {name} on day {dose.day}")
                continue

            if is_injectable(dose.medication):
                if not self.options.min_dose <= dose.amount <= self.options.max_dose:
                    self._error(results, f"{name} amount {dose.amount:.3f} mg on day {dose.day} is outside "
                                         f"[{self.options.min_dose}, {self.options.max_dose}]")
            elif not any(math.isclose(dose.amount, a) for a in allowed):
                self._error(results, f"{name} amount {dose.amount} mg on day {dose.day} "
                                     f"is not one of {list(allowed)}")

    def _validate_placement(self, doses: Sequence[Dose], results: Dict[str, Any]) -> None:
        n_injections = count_injections(doses)
        if n_injections > self.options.max_injections:
            self._error(results, f"{n_injections} injections exceed the cap of {self.options.max_injections}")

        same_day = Counter((d.day, d.medication.name) for d in doses if is_injectable(d.medication))
        for (day, name), count in sorted(same_day.items()):
            if count > 1:
                self._error(results, f"{name} injected {count} times on day {day}")

        route_usage = Counter(
            (d.day, d.medication.route.limit_group)
            for d in doses if d.medication.hormone is HormoneClass.PROGESTERONE
        )
        for (day, group), count in sorted(route_usage.items()):
            limit = self.config.constraints.daily_limit(group)
            if limit is not None and count > limit:
                self._error(results, f"{count} {group} doses on day {day} exceed the daily limit of {limit}")

        medications = {d.medication.name for d in doses}
        if len(medications) > 2:
            results['warnings'].append(f"Schedule mixes {len(medications)} medications")

    def _generate_statistics(self, doses: Sequence[Dose]) -> Dict[str, Any]:
        injectable = [d for d in doses if is_injectable(d.medication)]
        return {
            'n_doses': len(doses),
            'n_injections': len(injectable),
            'n_medications': len({d.medication.name for d in doses}),
            'n_distinct_amounts': len({round(d.amount, 2) for d in doses}),
            'total_injected_mg': sum(d.amount for d in injectable),
            'dosing_days': sorted({d.day for d in doses}),
        }


def validate_schedule(doses: Sequence[Dose],
                      options: Optional[OptimizationOptions] = None,
                      config: Optional[OptimizerConfig] = None,
                      schedule_length: Optional[int] = None,
                      strict_mode: bool = False) -> Dict[str, Any]:
    """Validate a schedule; see ``ScheduleValidator.validate``."""
    return ScheduleValidator(options, config, strict_mode).validate(doses, schedule_length)
