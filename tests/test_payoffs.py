import math

import numpy as np
import pytest

from cevcorridor.paths import CheckpointPrices
from cevcorridor.payoffs import (
    corridor_active,
    corridor_call_payoff,
    european_call_payoff,
    in_corridor,
)


def _cp(rows):
    arr = np.asarray(rows, dtype=float)
    return CheckpointPrices(arr[:, 0], arr[:, 1], arr[:, 2], arr[:, 3])


class TestCorridorActivation:
    """Test the elementwise corridor indicator"""

    def test_bounds_inclusive(self):
        mask = in_corridor(np.array([0.5, 1.5, 0.4999, 1.5001]), 0.5, 1.5)
        np.testing.assert_array_equal(mask, [True, True, False, False])

    def test_each_simulation_evaluated_independently(self):
        # The first simulation is inside everywhere; the others leave the
        # corridor at exactly one checkpoint each.
        cp = _cp(
            [
                [1.0, 1.0, 1.0, 1.2],
                [2.0, 1.0, 1.0, 1.2],
                [1.0, 0.1, 1.0, 1.2],
                [1.0, 1.0, 9.0, 1.2],
            ]
        )
        np.testing.assert_array_equal(corridor_active(cp, 0.5, 1.5), [True, False, False, False])

    def test_first_simulation_outside_does_not_disable_batch(self):
        cp = _cp([[5.0, 1.0, 1.0, 1.2], [1.0, 1.0, 1.0, 1.2]])
        np.testing.assert_array_equal(corridor_active(cp, 0.5, 1.5), [False, True])

    def test_final_price_not_checked(self):
        cp = _cp([[1.0, 1.0, 1.0, 100.0]])
        assert corridor_active(cp, 0.5, 1.5)[0]

    def test_infinite_corridor_always_active(self):
        cp = _cp([[0.0, 1e9, 3.0, 1.0], [1.0, 1.0, 1.0, 1.0]])
        assert corridor_active(cp, -math.inf, math.inf).all()


class TestPayoffs:
    """Test payoff evaluation"""

    def test_european_intrinsic(self):
        np.testing.assert_allclose(european_call_payoff(np.array([0.5, 1.0, 1.3]), 1.0), [0.0, 0.0, 0.3])

    def test_corridor_call(self):
        cp = _cp(
            [
                [1.0, 1.0, 1.0, 1.25],  # active, in the money
                [1.0, 1.0, 1.0, 0.75],  # active, out of the money
                [2.0, 1.0, 1.0, 1.25],  # knocked out
            ]
        )
        np.testing.assert_allclose(corridor_call_payoff(cp, 0.5, 1.5, 1.0), [0.25, 0.0, 0.0])

    def test_zero_strike_pays_final_price_when_active(self):
        cp = _cp([[1.0, 1.1, 0.9, 1.7], [1.0, 3.0, 0.9, 1.7]])
        np.testing.assert_allclose(corridor_call_payoff(cp, 0.5, 1.5, 0.0), [1.7, 0.0])

    @pytest.mark.parametrize("strike", [0.0, 0.8, 1.0, 2.0])
    def test_payoffs_non_negative(self, strike):
        rng = np.random.default_rng(0)
        cp = _cp(rng.uniform(0.0, 2.0, size=(500, 4)))
        out = corridor_call_payoff(cp, 0.5, 1.5, strike)
        assert out.shape == (500,)
        assert (out >= 0).all()
