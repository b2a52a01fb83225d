import numpy as np
import pytest

from cevcorridor.core import EuropeanCallPricer
from cevcorridor.drivers import (
    SWEEPABLE_PARAMETERS,
    ConvergencePoint,
    SweepPoint,
    convergence_study,
    sensitivity_sweep,
)
from cevcorridor.exceptions import InsufficientSamples, InvalidConfiguration


class TestSensitivitySweep:
    """Test parameter sweeps over the price"""

    def test_strike_sweep_decreasing(self, small_config):
        cfg = small_config.with_overrides(n_simulations=2000, volatility=0.05)
        strikes = [0.8, 0.9, 1.0, 1.1, 1.2]
        points = sensitivity_sweep(cfg, "strike", strikes, rng=0)
        assert [p.value for p in points] == strikes
        assert all(isinstance(p, SweepPoint) for p in points)
        values = [p.expected_value for p in points]
        assert values == sorted(values, reverse=True)

    def test_points_carry_interval(self, small_config):
        (point,) = sensitivity_sweep(small_config, "volatility", [0.02], rng=1)
        assert point.lower_bound <= point.expected_value <= point.upper_bound

    def test_horizon_alias(self, small_config):
        points = sensitivity_sweep(small_config, "horizon", [8, 12, 16], rng=2)
        assert [p.value for p in points] == [8, 12, 16]

    @pytest.mark.parametrize("parameter", SWEEPABLE_PARAMETERS)
    def test_every_parameter_sweepable(self, small_config, parameter):
        value = getattr(small_config, parameter)
        points = sensitivity_sweep(small_config, parameter, [value], rng=3)
        assert len(points) == 1

    def test_reproducible(self, small_config):
        a = sensitivity_sweep(small_config, "drift", [0.0, 0.001], rng=4)
        b = sensitivity_sweep(small_config, "drift", [0.0, 0.001], rng=4)
        assert a == b

    def test_unknown_parameter(self, small_config):
        with pytest.raises(InvalidConfiguration, match="cannot sweep"):
            sensitivity_sweep(small_config, "n_simulations", [10])

    def test_invalid_value(self, small_config):
        with pytest.raises(InvalidConfiguration):
            sensitivity_sweep(small_config, "volatility", [0.01, -0.01], rng=0)

    def test_custom_pricer(self, small_config):
        cfg = small_config.with_overrides(upper_bound=0.9)
        knocked = sensitivity_sweep(cfg, "strike", [1.0], rng=5)
        european = sensitivity_sweep(cfg, "strike", [1.0], rng=5, pricer=EuropeanCallPricer())
        assert european[0].expected_value >= knocked[0].expected_value


class TestConvergenceStudy:
    """Test estimator spread across sample sizes"""

    def test_spread_shrinks(self, small_config):
        cfg = small_config.with_overrides(volatility=0.05)
        points = convergence_study(cfg, [50, 800], repetitions=30, rng=6)
        assert [p.n_simulations for p in points] == [50, 800]
        assert all(isinstance(p, ConvergencePoint) for p in points)
        assert points[1].std < points[0].std
        assert all(p.repetitions == 30 for p in points)

    def test_means_agree(self, small_config):
        cfg = small_config.with_overrides(volatility=0.05)
        small, large = convergence_study(cfg, [200, 2000], repetitions=20, rng=7)
        assert abs(small.mean - large.mean) < 4 * small.std / np.sqrt(20) + 4 * large.std / np.sqrt(20)

    def test_reproducible(self, small_config):
        a = convergence_study(small_config, [20], repetitions=5, rng=8)
        b = convergence_study(small_config, [20], repetitions=5, rng=8)
        assert a == b

    def test_too_few_repetitions(self, small_config):
        with pytest.raises(InsufficientSamples):
            convergence_study(small_config, [100], repetitions=1)

    def test_sample_size_of_one(self, small_config):
        with pytest.raises(InsufficientSamples):
            convergence_study(small_config, [1], repetitions=3, rng=0)
