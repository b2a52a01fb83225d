import math

import numpy as np
import pytest

from cevcorridor import (
    CorridorCallPricer,
    EuropeanCallPricer,
    InsufficientSamples,
    InvalidConfiguration,
    MonteCarloPricer,
    NumericAnomaly,
    PricingResult,
    SimulationConfig,
    price,
)
from cevcorridor.paths import simulate_checkpoints


class TestPricingResult:
    """Test PricingResult container"""

    def _result(self, **kwargs):
        data = dict(
            expected_value=0.04,
            lower_bound=0.037,
            upper_bound=0.043,
            n_simulations=100,
            std=0.015,
            half_width=0.003,
        )
        data.update(kwargs)
        return PricingResult(**data)

    def test_interval(self):
        assert self._result().interval == (0.037, 0.043)

    def test_frozen(self):
        res = self._result()
        with pytest.raises(AttributeError):
            res.expected_value = 1.0

    def test_result_to_string_basic(self):
        output = self._result().result_to_string()
        assert "Price: 0.04000" in output
        assert "95% CI: [0.03700, 0.04300]" in output
        assert "Std Dev" in output

    def test_result_to_string_with_stats_and_metadata(self):
        res = self._result(
            stats={"percentiles": {50: 0.0}, "activation_rate": 0.4},
            metadata={"pricer_name": "Corridor"},
        )
        output = res.result_to_string()
        assert "'Corridor'" in output
        assert "50th: 0.00000" in output
        assert "activation_rate: 0.4" in output


class TestPrice:
    """Test the public price operation"""

    def test_reference_scenario(self, base_config):
        res = price(base_config, rng=2024)
        assert 0.035 < res.expected_value < 0.045
        assert 0.0 < res.half_width < 0.003
        assert res.lower_bound < res.expected_value < res.upper_bound
        assert res.n_simulations == 10_000

    def test_interval_formula(self, small_config):
        res = price(small_config, rng=1)
        s = np.std(res.payoffs, ddof=1)
        assert res.std == pytest.approx(s)
        assert res.half_width == pytest.approx(1.96 * s / math.sqrt(small_config.n_simulations))
        assert res.expected_value == pytest.approx(np.mean(res.payoffs))

    def test_bit_identical_under_same_draws(self, small_config):
        a = price(small_config, rng=np.random.default_rng(99))
        b = price(small_config, rng=np.random.default_rng(99))
        assert a.expected_value == b.expected_value
        assert a.lower_bound == b.lower_bound
        assert a.upper_bound == b.upper_bound
        np.testing.assert_array_equal(a.payoffs, b.payoffs)

    def test_shared_generator_advances(self, small_config):
        g = np.random.default_rng(5)
        a = price(small_config, rng=g)
        b = price(small_config, rng=g)
        assert a.expected_value != b.expected_value

    @pytest.mark.parametrize("seed", range(5))
    def test_bounds_ordering_and_non_negative(self, small_config, seed):
        res = price(small_config.with_overrides(volatility=0.05), rng=seed)
        assert res.expected_value >= 0.0
        assert res.lower_bound <= res.expected_value <= res.upper_bound
        assert (res.payoffs >= 0).all()

    def test_drift_only_limit(self, base_config):
        cfg = base_config.with_overrides(
            n_simulations=50,
            volatility=0.0,
            drift=0.01,
            lower_bound=-math.inf,
            upper_bound=math.inf,
            strike=0.5,
        )
        res = price(cfg, rng=0)
        expected = max(0.0, 1.0 * 1.01**100 - 0.5)
        assert res.expected_value == pytest.approx(expected)
        assert res.lower_bound == pytest.approx(expected)
        assert res.upper_bound == pytest.approx(expected)

    def test_drift_only_out_of_corridor_pays_nothing(self, base_config):
        cfg = base_config.with_overrides(n_simulations=10, volatility=0.0, drift=0.01, upper_bound=1.2, strike=0.5)
        # 1.01**25 ~ 1.28 already leaves [0.5, 1.2] at the first checkpoint
        assert price(cfg, rng=0).expected_value == 0.0

    def test_zero_strike_pays_final_price(self, small_config):
        cfg = small_config.with_overrides(strike=0.0, volatility=0.05)
        res = price(cfg, rng=8)
        cp = simulate_checkpoints(cfg, rng=8)
        active = (
            (cp.s1 >= cfg.lower_bound) & (cp.s1 <= cfg.upper_bound)
            & (cp.s2 >= cfg.lower_bound) & (cp.s2 <= cfg.upper_bound)
            & (cp.s3 >= cfg.lower_bound) & (cp.s3 <= cfg.upper_bound)
        )
        np.testing.assert_array_equal(res.payoffs, np.where(active, cp.s_final, 0.0))

    def test_narrowing_corridor_never_increases_price(self, base_config):
        cfg = base_config.with_overrides(n_simulations=4000, horizon_steps=40, volatility=0.05, strike=0.9)
        centre = 0.9
        prices = [
            price(cfg.with_overrides(lower_bound=centre - w, upper_bound=centre + w), rng=123).expected_value
            for w in (1.0, 0.3, 0.2, 0.15, 0.1, 0.05)
        ]
        assert all(a >= b for a, b in zip(prices, prices[1:]))
        assert prices[0] > prices[-1]

    def test_wide_corridor_equals_european(self, small_config):
        cfg = small_config.with_overrides(lower_bound=0.0, upper_bound=math.inf, volatility=0.05)
        corridor = price(cfg, rng=17)
        european = EuropeanCallPricer().run(cfg, rng=17)
        assert corridor.expected_value == european.expected_value
        np.testing.assert_array_equal(corridor.payoffs, european.payoffs)

    def test_single_simulation_is_insufficient(self, small_config):
        with pytest.raises(InsufficientSamples):
            price(small_config.with_overrides(n_simulations=1), rng=0)

    def test_invalid_config_fails_before_pricing(self, small_config):
        with pytest.raises(InvalidConfiguration):
            price(small_config.with_overrides(horizon_steps=2))

    def test_numeric_anomaly_propagates(self, small_config):
        cfg = small_config.with_overrides(initial_price=1e200, gamma=2.0, volatility=1.0)
        with pytest.raises(NumericAnomaly):
            price(cfg, rng=0)

    def test_rejects_non_config(self):
        with pytest.raises(TypeError):
            price({"n_simulations": 10})


class TestCorridorCallPricer:
    """Test the pricer class API"""

    def test_set_seed_reproducible(self, corridor_pricer, small_config):
        a = corridor_pricer.run(small_config)
        corridor_pricer.set_seed(42)
        b = corridor_pricer.run(small_config)
        assert a.expected_value == b.expected_value
        assert a.metadata["seed_entropy"] == 42

    def test_stats_populated(self, corridor_pricer, small_config):
        res = corridor_pricer.run(small_config)
        assert set(res.stats["percentiles"]) == {5, 25, 50, 75, 95}
        assert res.stats["ci_mean"]["confidence"] == 0.95
        assert 0.0 <= res.stats["activation_rate"] <= 1.0
        assert res.metadata["pricer_name"] == "TestCorridor"
        assert res.metadata["config"]["horizon_steps"] == small_config.horizon_steps

    def test_stats_disabled(self, corridor_pricer, small_config):
        assert corridor_pricer.run(small_config, compute_stats=False).stats == {}

    def test_diagnostic_confidence(self, corridor_pricer, small_config):
        res = corridor_pricer.run(small_config, confidence=0.99)
        assert res.stats["ci_mean"]["confidence"] == 0.99
        # headline interval stays at 95%
        assert res.half_width == pytest.approx(1.96 * res.std / math.sqrt(small_config.n_simulations))

    def test_invalid_confidence(self, corridor_pricer, small_config):
        with pytest.raises(ValueError, match="confidence"):
            corridor_pricer.run(small_config, confidence=1.0)

    def test_european_dominates_on_same_draws(self, corridor_pricer, european_pricer, small_config):
        corridor = corridor_pricer.run(small_config)
        european = european_pricer.run(small_config)
        assert (european.payoffs >= corridor.payoffs).all()
        assert european.metadata["pricer_name"] == "TestEuropean"

    def test_explicit_rng_overrides_seed(self, corridor_pricer, small_config):
        a = corridor_pricer.run(small_config, rng=3)
        b = price(small_config, rng=3)
        assert a.expected_value == b.expected_value
        assert a.metadata["seed_entropy"] is None


class TestCustomPricer:
    """Test subclassing MonteCarloPricer"""

    def test_subclass(self, small_config):
        class ConstantPricer(MonteCarloPricer):
            def simulate_payoffs(self, config: SimulationConfig, rng):
                return np.full(config.n_simulations, 2.0)

        res = ConstantPricer(name="Const").run(small_config, compute_stats=False)
        assert res.expected_value == 2.0
        assert res.interval == (2.0, 2.0)

    def test_abstract(self):
        with pytest.raises(TypeError):
            MonteCarloPricer()

    def test_corridor_is_pricer(self):
        assert isinstance(CorridorCallPricer(), MonteCarloPricer)
