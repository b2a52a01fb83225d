r"""
cevcorridor.paths
=================

Euler-Maruyama path generation for the Constant Elasticity of Variance model.

The underlying solves

.. math::

   dS_t = \mu S_t\,dt + S_t^{\gamma}\,\sigma\,dW_t,

and is advanced with unit steps :math:`\Delta t = 1`:

.. math::

   S_{k+1} = S_k + \mu S_k\,\Delta t + f(S_k)\,\varepsilon_k\sqrt{\Delta t},
   \qquad \varepsilon_k \sim \mathcal{N}(0, \sigma^2),

where :math:`f(S) = S^\gamma` for :math:`S \ge 0`. The Euler scheme does not
keep :math:`S` positive, so :class:`~cevcorridor.config.NegativePricePolicy`
fixes what happens below zero.

Draw order
----------

At every step one vector of ``n_simulations`` normals is drawn, i.e. the
row-major order of an ``horizon_steps x n_simulations`` shock matrix. Two
generators in the same state therefore produce bit-identical paths, and
:func:`simulate_paths` reproduces the checkpoints of :func:`simulate_checkpoints`
exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import NegativePricePolicy, SimulationConfig
from .exceptions import NumericAnomaly
from .utils import RandomSource, make_generator

logger = logging.getLogger(__name__)

__all__ = [
    "CheckpointPrices",
    "cev_step",
    "simulate_checkpoints",
    "simulate_paths",
]

_DT = 1.0


@dataclass(frozen=True)
class CheckpointPrices:
    r"""
    Prices recorded at the four checkpoints, one entry per simulation.

    Attributes
    ----------
    s1, s2, s3 : ndarray of float
        Prices at :math:`t_1, t_2, t_3` (25%, 50%, 75% of the horizon).
    s_final : ndarray of float
        Price at maturity :math:`t_\text{final} = h`.
    """

    s1: np.ndarray
    s2: np.ndarray
    s3: np.ndarray
    s_final: np.ndarray

    def __len__(self) -> int:
        return int(self.s_final.size)

    @property
    def intermediate(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """The three corridor observations ``(s1, s2, s3)``."""
        return self.s1, self.s2, self.s3

    def as_array(self) -> np.ndarray:
        """Stack into an ``(n_simulations, 4)`` matrix."""
        return np.column_stack([self.s1, self.s2, self.s3, self.s_final])


def cev_step(
    s: np.ndarray,
    eps: np.ndarray,
    drift: float,
    gamma: float,
    policy: NegativePricePolicy = NegativePricePolicy.absorb,
) -> np.ndarray:
    r"""
    Advance a batch of prices by one Euler step.

    Parameters
    ----------
    s : ndarray
        Current prices :math:`S_k`.
    eps : ndarray
        Shocks :math:`\varepsilon_k`, already scaled by :math:`\sigma`.
    drift : float
        Per-step drift :math:`\mu`.
    gamma : float
        Elasticity :math:`\gamma`.
    policy : NegativePricePolicy, default ``"absorb"``
        ``"absorb"`` clamps the result at zero; ``"signed"`` uses
        :math:`\operatorname{sign}(S)|S|^\gamma` as diffusion coefficient.

    Returns
    -------
    ndarray
        :math:`S_{k+1}` as a new array.

    Examples
    --------
    >>> cev_step(np.array([1.0, 0.0]), np.array([0.5, 0.5]), drift=0.0, gamma=0.5)
    array([1.5, 0. ])
    """
    if policy == NegativePricePolicy.signed:
        diffusion = np.sign(s) * np.power(np.abs(s), gamma)
    else:
        diffusion = np.power(s, gamma)
    s_next = s + drift * s * _DT + diffusion * eps * np.sqrt(_DT)
    if policy == NegativePricePolicy.absorb:
        np.maximum(s_next, 0.0, out=s_next, where=np.isfinite(s_next))
    return s_next


def _check_finite(s: np.ndarray, step: int) -> None:
    bad = ~np.isfinite(s)
    if bad.any():
        count = int(bad.sum())
        raise NumericAnomaly(
            f"{count} simulated price(s) became non-finite at step {step}",
            step=step,
            count=count,
        )


def simulate_checkpoints(
    config: SimulationConfig,
    rng: RandomSource = None,
) -> CheckpointPrices:
    r"""
    Simulate ``config.n_simulations`` CEV paths and keep only the checkpoints.

    A single state vector of length ``n_simulations`` is advanced in place of
    the full path matrix; the checkpoint columns are copied out as they are
    passed.

    Parameters
    ----------
    config : SimulationConfig
        Model and sampling parameters.
    rng : Generator, SeedSequence, int or None
        Source of the normal shocks; see :func:`~cevcorridor.utils.make_generator`.

    Returns
    -------
    CheckpointPrices

    Raises
    ------
    NumericAnomaly
        If any simulated price becomes infinite or NaN.
    """
    rng = make_generator(rng)
    n = config.n_simulations
    t1, t2, t3, t_final = config.checkpoints
    slots = {t1: 0, t2: 1, t3: 2, t_final: 3}
    recorded = np.empty((4, n), dtype=float)

    s = np.full(n, float(config.initial_price))
    with np.errstate(over="ignore", invalid="ignore"):
        for step in range(1, t_final + 1):
            eps = rng.normal(0.0, config.volatility, size=n)
            s = cev_step(s, eps, config.drift, config.gamma, config.negative_policy)
            _check_finite(s, step)
            slot = slots.get(step)
            if slot is not None:
                recorded[slot] = s

    if config.negative_policy == NegativePricePolicy.signed:
        n_negative = int(np.count_nonzero(recorded[3] < 0))
        if n_negative:
            logger.debug(f"{n_negative} of {n} paths end below zero")

    return CheckpointPrices(recorded[0], recorded[1], recorded[2], recorded[3])


def simulate_paths(
    config: SimulationConfig,
    n_paths: Optional[int] = None,
    rng: RandomSource = None,
) -> np.ndarray:
    r"""
    Generate full CEV price paths, e.g. for plotting.

    Parameters
    ----------
    config : SimulationConfig
        Model parameters; ``config.n_simulations`` is the default path count.
    n_paths : int, optional
        Number of trajectories to sample.
    rng : Generator, SeedSequence, int or None
        Source of the normal shocks.

    Returns
    -------
    numpy.ndarray
        Array of shape ``(n_paths, horizon_steps + 1)``; column ``0`` is
        ``initial_price`` and column ``k`` the price after ``k`` steps.

    Notes
    -----
    Uses the same draw order as :func:`simulate_checkpoints`, so with equal
    generators ``paths[:, config.checkpoints]`` matches the recorded
    checkpoints.
    """
    rng = make_generator(rng)
    n = config.n_simulations if n_paths is None else int(n_paths)
    if n < 1:
        raise ValueError("n_paths must be positive")
    h = config.horizon_steps
    paths = np.empty((n, h + 1), dtype=float)
    paths[:, 0] = config.initial_price
    with np.errstate(over="ignore", invalid="ignore"):
        for step in range(1, h + 1):
            eps = rng.normal(0.0, config.volatility, size=n)
            paths[:, step] = cev_step(paths[:, step - 1], eps, config.drift, config.gamma, config.negative_policy)
            _check_finite(paths[:, step], step)
    return paths
