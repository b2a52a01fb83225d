import numpy as np
import pytest

from cevcorridor.config import SimulationConfig
from cevcorridor.core import CorridorCallPricer, EuropeanCallPricer


@pytest.fixture
def base_config():
    """The reference corridor scenario."""
    return SimulationConfig(
        n_simulations=10_000,
        horizon_steps=100,
        initial_price=1.0,
        gamma=1.0,
        volatility=0.01,
        drift=0.0,
        lower_bound=0.5,
        upper_bound=1.5,
        strike=1.0,
    )


@pytest.fixture
def small_config(base_config):
    """A cheap configuration for structural tests."""
    return base_config.with_overrides(n_simulations=200, horizon_steps=20)


@pytest.fixture
def sample_data():
    """Fixture providing sample data for testing"""
    return np.random.default_rng(42).normal(5.0, 2.0, 1000)


@pytest.fixture
def corridor_pricer():
    """Provide a seeded corridor pricer."""
    pricer = CorridorCallPricer(name="TestCorridor")
    pricer.set_seed(42)
    return pricer


@pytest.fixture
def european_pricer():
    """Provide a seeded European pricer."""
    pricer = EuropeanCallPricer(name="TestEuropean")
    pricer.set_seed(42)
    return pricer


@pytest.fixture
def ctx_basic():
    """Basic context for stats engine tests"""
    return {
        "n": 1000,
        "confidence": 0.95,
        "nan_policy": "propagate",
        "ci_method": "z",
        "percentiles": (5, 25, 50, 75, 95),
    }
