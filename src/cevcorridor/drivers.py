r"""
cevcorridor.drivers
===================

Repeated-pricing helpers built on :func:`cevcorridor.core.price`.

* :func:`sensitivity_sweep` – price once per candidate value of one parameter.
* :func:`convergence_study` – spread of the price estimate across independent
  repetitions, per sample size.

Both consume one generator in order, so a fixed seed reproduces the whole
sweep or study.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional

import numpy as np

from .config import SimulationConfig
from .core import CorridorCallPricer, MonteCarloPricer
from .exceptions import InsufficientSamples, InvalidConfiguration
from .utils import RandomSource, make_generator

logger = logging.getLogger(__name__)

__all__ = [
    "SWEEPABLE_PARAMETERS",
    "SweepPoint",
    "ConvergencePoint",
    "sensitivity_sweep",
    "convergence_study",
]

SWEEPABLE_PARAMETERS = (
    "strike",
    "drift",
    "horizon_steps",
    "volatility",
    "gamma",
    "lower_bound",
    "upper_bound",
)

_ALIASES = {"horizon": "horizon_steps"}


class SweepPoint(NamedTuple):
    """One priced value of a sensitivity sweep."""

    value: float
    expected_value: float
    lower_bound: float
    upper_bound: float


@dataclass(frozen=True)
class ConvergencePoint:
    r"""
    Spread of the price estimate at one sample size.

    Attributes
    ----------
    n_simulations : int
        Paths per pricing run.
    mean : float
        Mean of ``expected_value`` over the repetitions.
    std : float
        Sample standard deviation (``ddof=1``) of ``expected_value``; shrinks
        roughly like :math:`1/\sqrt{n}`.
    repetitions : int
        Number of independent pricing runs.
    """

    n_simulations: int
    mean: float
    std: float
    repetitions: int


def _resolve_parameter(parameter: str) -> str:
    name = _ALIASES.get(parameter, parameter)
    if name not in SWEEPABLE_PARAMETERS:
        raise InvalidConfiguration(
            f"cannot sweep '{parameter}'; choose one of {SWEEPABLE_PARAMETERS + tuple(_ALIASES)}"
        )
    return name


def sensitivity_sweep(
    config: SimulationConfig,
    parameter: str,
    values: Iterable[float],
    rng: RandomSource = None,
    pricer: Optional[MonteCarloPricer] = None,
) -> list[SweepPoint]:
    r"""
    Price ``config`` once per value of ``parameter``, all else fixed.

    Parameters
    ----------
    config : SimulationConfig
        Base configuration.
    parameter : str
        One of :data:`SWEEPABLE_PARAMETERS` (``"horizon"`` is accepted for
        ``"horizon_steps"``).
    values : iterable of float
        Candidate values, priced in the given order.
    rng : Generator, SeedSequence, int or None
        Shared source of randomness for the whole sweep.
    pricer : MonteCarloPricer, optional
        Defaults to a :class:`~cevcorridor.core.CorridorCallPricer`.

    Returns
    -------
    list of SweepPoint

    Raises
    ------
    InvalidConfiguration
        For an unknown parameter, or a value that makes the configuration
        invalid.

    Examples
    --------
    >>> pts = sensitivity_sweep(cfg, "strike", [0.9, 1.0, 1.1], rng=1)  # doctest: +SKIP
    >>> [round(p.expected_value, 3) for p in pts]  # doctest: +SKIP
    [0.1, 0.04, 0.008]
    """
    name = _resolve_parameter(parameter)
    gen = make_generator(rng)
    pricer = pricer or CorridorCallPricer()
    points: list[SweepPoint] = []
    for value in values:
        cfg = config.with_overrides(**{name: value})
        res = pricer.run(cfg, gen, compute_stats=False)
        logger.debug(f"{name}={value}: price={res.expected_value:.6f}")
        points.append(SweepPoint(value, res.expected_value, res.lower_bound, res.upper_bound))
    return points


def convergence_study(
    config: SimulationConfig,
    sample_sizes: Iterable[int],
    repetitions: int = 100,
    rng: RandomSource = None,
    pricer: Optional[MonteCarloPricer] = None,
) -> list[ConvergencePoint]:
    r"""
    Measure estimator spread as the number of simulations grows.

    For each sample size :math:`n`, price ``config`` with ``n_simulations=n``
    ``repetitions`` times and summarise the resulting ``expected_value``s.

    Parameters
    ----------
    config : SimulationConfig
        Base configuration; its ``n_simulations`` is overridden.
    sample_sizes : iterable of int
        Sample sizes, each :math:`\ge 2`.
    repetitions : int, default ``100``
        Independent pricing runs per sample size, :math:`\ge 2`.
    rng : Generator, SeedSequence, int or None
        Shared source of randomness for the whole study.
    pricer : MonteCarloPricer, optional
        Defaults to a :class:`~cevcorridor.core.CorridorCallPricer`.

    Returns
    -------
    list of ConvergencePoint
    """
    if repetitions < 2:
        raise InsufficientSamples(f"repetitions must be >= 2 to estimate a spread, got {repetitions}")
    gen = make_generator(rng)
    pricer = pricer or CorridorCallPricer()
    points: list[ConvergencePoint] = []
    for n in sample_sizes:
        cfg = config.with_overrides(n_simulations=n)
        estimates = np.empty(repetitions, dtype=float)
        for k in range(repetitions):
            estimates[k] = pricer.run(cfg, gen, compute_stats=False).expected_value
        point = ConvergencePoint(
            n_simulations=int(n),
            mean=float(np.mean(estimates)),
            std=float(np.std(estimates, ddof=1)),
            repetitions=repetitions,
        )
        logger.info(f"n={point.n_simulations}: mean={point.mean:.6f}, std={point.std:.6f}")
        points.append(point)
    return points
