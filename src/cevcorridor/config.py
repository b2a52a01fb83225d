r"""
cevcorridor.config
==================

Immutable run configuration for the corridor option pricer.

:class:`SimulationConfig` carries every model, contract and sampling parameter
of one pricing run and validates them on construction, so a bad value fails
before any random number is drawn.

Checkpoints
-----------

The corridor is observed at the step indices

.. math::

   t_1 = \operatorname{round}(h/4),\quad
   t_2 = \operatorname{round}(h/2),\quad
   t_3 = \operatorname{round}(3h/4),\quad
   t_\text{final} = h,

where :math:`h` is :attr:`SimulationConfig.horizon_steps` and ``round`` is
Python's round-half-to-even.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any

import numpy as np

from .exceptions import InvalidConfiguration

__all__ = [
    "NegativePricePolicy",
    "SimulationConfig",
    "checkpoint_indices",
    "CHECKPOINT_FRACTIONS",
    "MIN_HORIZON_STEPS",
]

CHECKPOINT_FRACTIONS = (0.25, 0.50, 0.75)
MIN_HORIZON_STEPS = 4


class NegativePricePolicy(str, Enum):
    r"""
    How the Euler scheme treats a price that crosses below zero.

    The CEV diffusion coefficient :math:`S^\gamma` is undefined for negative
    :math:`S` and non-integer :math:`\gamma`, while the Euler step does not
    preserve positivity.

    Attributes
    ----------
    absorb : str
        Clamp the price at zero after every step. Zero is absorbing since both
        the drift :math:`\mu S` and the diffusion :math:`S^\gamma` vanish there.
    signed : str
        Keep the raw Euler value and use :math:`\operatorname{sign}(S)\,|S|^\gamma`
        as the diffusion coefficient. Paths may wander below zero.
    """

    absorb = "absorb"
    signed = "signed"


def checkpoint_indices(horizon_steps: int) -> tuple[int, int, int, int]:
    r"""
    Step indices ``(t1, t2, t3, t_final)`` at which prices are recorded.

    Parameters
    ----------
    horizon_steps : int
        Number of Euler steps :math:`h`.

    Returns
    -------
    tuple of int

    Examples
    --------
    >>> checkpoint_indices(100)
    (25, 50, 75, 100)
    >>> checkpoint_indices(6)
    (2, 3, 4, 6)
    """
    t1, t2, t3 = (int(round(f * horizon_steps)) for f in CHECKPOINT_FRACTIONS)
    return t1, t2, t3, int(horizon_steps)


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, (bool, np.bool_))


@dataclass(frozen=True)
class SimulationConfig:
    r"""
    Parameters of one corridor option pricing run.

    The underlying follows the CEV dynamics

    .. math::

       dS_t = \mu S_t\,dt + S_t^\gamma\,\sigma\,dW_t,

    discretised with unit time steps. The payoff at maturity is
    :math:`\max(S_h - K, 0)` if the three intermediate checkpoint prices all
    lie in :math:`[\alpha, \beta]`, otherwise zero.

    Attributes
    ----------
    n_simulations : int
        Number of independent paths, :math:`\ge 1`.
    horizon_steps : int
        Number of unit Euler steps :math:`h \ge 4`.
    initial_price : float
        Spot :math:`S_0 > 0`.
    gamma : float
        Elasticity exponent :math:`\gamma > 0` (:math:`\gamma = 1` is GBM-like).
    volatility : float
        Standard deviation :math:`\sigma \ge 0` of the per-step shock.
    drift : float
        Per-step drift :math:`\mu`.
    lower_bound, upper_bound : float
        Corridor :math:`[\alpha, \beta]`, inclusive, :math:`\alpha \le \beta`.
        Either bound may be infinite.
    strike : float
        Strike :math:`K \ge 0`.
    negative_policy : NegativePricePolicy, default ``"absorb"``
        Treatment of prices that cross below zero.

    Raises
    ------
    InvalidConfiguration
        If any field is outside its allowed range.

    Examples
    --------
    >>> cfg = SimulationConfig(
    ...     n_simulations=10_000, horizon_steps=100, initial_price=1.0, gamma=1.0,
    ...     volatility=0.01, drift=0.0, lower_bound=0.5, upper_bound=1.5, strike=1.0,
    ... )
    >>> cfg.checkpoints
    (25, 50, 75, 100)
    >>> cfg.with_overrides(strike=0.9).strike
    0.9
    """

    n_simulations: int
    horizon_steps: int
    initial_price: float
    gamma: float
    volatility: float
    drift: float
    lower_bound: float
    upper_bound: float
    strike: float
    negative_policy: NegativePricePolicy = NegativePricePolicy.absorb

    def __post_init__(self) -> None:
        if not _is_int(self.n_simulations) or self.n_simulations < 1:
            raise InvalidConfiguration(f"n_simulations must be an integer >= 1, got {self.n_simulations!r}")
        if not _is_int(self.horizon_steps) or self.horizon_steps < MIN_HORIZON_STEPS:
            raise InvalidConfiguration(
                f"horizon_steps must be an integer >= {MIN_HORIZON_STEPS}, got {self.horizon_steps!r}"
            )
        t1, t2, t3, tf = checkpoint_indices(self.horizon_steps)
        if not 0 < t1 < t2 < t3 < tf:
            raise InvalidConfiguration(f"horizon_steps={self.horizon_steps} does not give distinct checkpoints")

        for name in ("initial_price", "gamma", "volatility", "drift", "strike"):
            value = getattr(self, name)
            if not _is_real(value) or not math.isfinite(value):
                raise InvalidConfiguration(f"{name} must be a finite real number, got {value!r}")
        if self.initial_price <= 0:
            raise InvalidConfiguration("initial_price must be positive")
        if self.gamma <= 0:
            raise InvalidConfiguration("gamma must be positive")
        if self.volatility < 0:
            raise InvalidConfiguration("volatility must be non-negative")
        if self.strike < 0:
            raise InvalidConfiguration("strike must be non-negative")

        for name in ("lower_bound", "upper_bound"):
            value = getattr(self, name)
            if not _is_real(value) or math.isnan(value):
                raise InvalidConfiguration(f"{name} must be a real number, got {value!r}")
        if self.lower_bound > self.upper_bound:
            raise InvalidConfiguration(
                f"corridor is empty: lower_bound={self.lower_bound} > upper_bound={self.upper_bound}"
            )

        try:
            policy = NegativePricePolicy(self.negative_policy)
        except ValueError:
            raise InvalidConfiguration(
                f"negative_policy must be one of {[p.value for p in NegativePricePolicy]}, "
                f"got {self.negative_policy!r}"
            ) from None
        object.__setattr__(self, "negative_policy", policy)

    @property
    def checkpoints(self) -> tuple[int, int, int, int]:
        """Step indices ``(t1, t2, t3, t_final)``; see :func:`checkpoint_indices`."""
        return checkpoint_indices(self.horizon_steps)

    def with_overrides(self, **changes: Any) -> "SimulationConfig":
        r"""
        Return a validated copy with selected fields replaced.

        Parameters
        ----------
        **changes :
            Field overrides passed to :func:`dataclasses.replace`.

        Returns
        -------
        SimulationConfig
        """
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Plain ``dict`` view, with the policy as its string value."""
        data = asdict(self)
        data["negative_policy"] = self.negative_policy.value
        return data
