"""cevcorridor package public API."""

from .config import NegativePricePolicy, SimulationConfig, checkpoint_indices
from .core import (
    CorridorCallPricer,
    EuropeanCallPricer,
    MonteCarloPricer,
    PricingResult,
    price,
)
from .drivers import ConvergencePoint, SweepPoint, convergence_study, sensitivity_sweep
from .exceptions import InsufficientSamples, InvalidConfiguration, NumericAnomaly, PricingError
from .paths import CheckpointPrices, simulate_checkpoints, simulate_paths
from .payoffs import corridor_active, corridor_call_payoff
from .stats_engine import (
    DEFAULT_ENGINE,
    FnMetric,
    MeanEstimate,
    StatsContext,
    StatsEngine,
    estimate_mean,
)
from .utils import Z_95, autocrit, t_crit, z_crit

__all__ = [
    "SimulationConfig",
    "NegativePricePolicy",
    "checkpoint_indices",
    "PricingResult",
    "MonteCarloPricer",
    "CorridorCallPricer",
    "EuropeanCallPricer",
    "price",
    "CheckpointPrices",
    "simulate_checkpoints",
    "simulate_paths",
    "corridor_active",
    "corridor_call_payoff",
    "sensitivity_sweep",
    "convergence_study",
    "SweepPoint",
    "ConvergencePoint",
    "PricingError",
    "InvalidConfiguration",
    "InsufficientSamples",
    "NumericAnomaly",
    "StatsEngine",
    "StatsContext",
    "FnMetric",
    "DEFAULT_ENGINE",
    "MeanEstimate",
    "estimate_mean",
    "Z_95",
    "z_crit",
    "t_crit",
    "autocrit",
]

__version__ = "0.1.0"
