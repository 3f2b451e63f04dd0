"""
Configuration management for the dose-schedule optimizer.

Tuning constants of the concentration model, the objective and the search
live in immutable dataclasses passed explicitly into each run.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple
import json
import logging

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    """Configuration for the concentration model"""
    effect_duration_days: float = 100.0   # Injectable contribution window after each dose
    rate_tolerance: float = 1e-9          # Relative tolerance for colliding k1/k2/k3
    absorption_tolerance: float = 1e-10   # Absolute |ka - ke| below which the limit form is used
    time_step: float = 0.25               # Default spacing of generated time points (days)


@dataclass(frozen=True)
class EvaluationConfig:
    """Configuration for MSE sampling against the reference cycle"""
    samples_per_day: int = 4              # Sub-day offsets sampled per reference day
    steady_state_cycles: int = 3          # Prior cycles prepended in steady-state mode


@dataclass(frozen=True)
class PenaltyConfig:
    """Weights of the simplicity penalties added to the MSE"""
    injection_weight: float = 0.02            # Per injectable dose
    dose_variety_weight: float = 0.001        # Per distinct (rounded) dose amount
    medication_variety_weight: float = 0.01   # Per distinct medication
    prefer_fewer_medications: bool = True


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for the greedy local search"""
    # Starting dose for injectables (mL, converted with the concentration factor)
    starting_volume_ml: float = 0.15
    default_concentration_mg_ml: float = 40.0
    max_adjustment_steps: int = 10

    # Convergence detection
    min_improvement: float = 1e-4
    no_improvement_limit: int = 3
    max_iterations: int = 500             # Safety ceiling

    # Adaptive granularity
    adaptive_granularity: bool = True
    initial_granularity_multiplier: float = 4.0
    refinement_trigger: int = 2
    min_granularity_multiplier: float = 1.0

    # Progress estimation
    progress_convergence_rate: float = 10.0
    max_reported_progress: int = 95


def _default_route_limits() -> Dict[str, int]:
    return {'rectal': 1, 'oral_vaginal': 4}


@dataclass(frozen=True)
class ConstraintConfig:
    """Per-day usage limits for non-injectable routes, keyed by limit group"""
    route_daily_limits: Dict[str, int] = field(default_factory=_default_route_limits)

    def daily_limit(self, limit_group: str) -> Optional[int]:
        return self.route_daily_limits.get(limit_group)


@dataclass(frozen=True)
class OptimizerConfig:
    """Master configuration for a schedule optimization run"""
    model: ModelConfig = field(default_factory=ModelConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    penalties: PenaltyConfig = field(default_factory=PenaltyConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    constraints: ConstraintConfig = field(default_factory=ConstraintConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            'model': asdict(self.model),
            'evaluation': asdict(self.evaluation),
            'penalties': asdict(self.penalties),
            'search': asdict(self.search),
            'constraints': {'route_daily_limits': dict(self.constraints.route_daily_limits)},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OptimizerConfig':
        """Create configuration from dictionary"""
        try:
            constraints = data.get('constraints', {})
            limits = constraints.get('route_daily_limits')
            return cls(
                model=ModelConfig(**data.get('model', {})),
                evaluation=EvaluationConfig(**data.get('evaluation', {})),
                penalties=PenaltyConfig(**data.get('penalties', {})),
                search=SearchConfig(**data.get('search', {})),
                constraints=(ConstraintConfig({str(k): int(v) for k, v in limits.items()})
                             if limits is not None else ConstraintConfig()),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid optimizer configuration: {e}") from e

    def save(self, filepath: str) -> None:
        """Save configuration to JSON file"""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> 'OptimizerConfig':
        """Load configuration from JSON file, falling back to defaults if it does not exist"""
        try:
            with open(filepath, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Configuration file {filepath} not found, using defaults")
            return cls()
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Configuration file {filepath} is not valid JSON: {e}") from e
        logger.info(f"Configuration loaded from {filepath}")
        return cls.from_dict(data)


@dataclass
class OptimizationOptions:
    """Per-run options supplied by the calling application.

    Attributes:
        steady_state: Account for residual levels from prior cycles.
        granularity: Smallest injectable volume increment explored (mL).
        min_dose: Lower bound for injectable dose amounts (mg).
        max_dose: Upper bound for injectable dose amounts (mg).
        max_injections: Cap on injectable doses per cycle.
        concentration_factors: mg/mL of each injectable medication by name.
        allowed_discrete_amounts: Amounts (mg) non-injectable doses snap to.
    """
    steady_state: bool = False
    granularity: float = 0.05
    min_dose: float = 0.1
    max_dose: float = 10.0
    max_injections: int = 10
    concentration_factors: Dict[str, float] = field(default_factory=dict)
    allowed_discrete_amounts: Tuple[float, ...] = (100.0, 200.0)

    def __post_init__(self):
        self.allowed_discrete_amounts = tuple(float(a) for a in self.allowed_discrete_amounts)

    def validate(self) -> None:
        """Raise ConfigurationError for options no run can honor."""
        if self.granularity <= 0:
            raise ConfigurationError(f"granularity must be positive, got {self.granularity}")
        if self.min_dose <= 0 or self.max_dose < self.min_dose:
            raise ConfigurationError(
                f"Invalid dose bounds: min_dose={self.min_dose}, max_dose={self.max_dose}"
            )
        if self.max_injections < 1:
            raise ConfigurationError(f"max_injections must be at least 1, got {self.max_injections}")
        if not self.allowed_discrete_amounts or any(a <= 0 for a in self.allowed_discrete_amounts):
            raise ConfigurationError(
                f"allowed_discrete_amounts must be non-empty and positive, got {self.allowed_discrete_amounts}"
            )
        for name, factor in self.concentration_factors.items():
            if factor <= 0:
                raise ConfigurationError(f"Concentration factor for {name} must be positive, got {factor}")

    def concentration_for(self, medication_name: str, default: float) -> float:
        """mg/mL used to convert between volume and mass for an injectable."""
        return self.concentration_factors.get(medication_name, default)
