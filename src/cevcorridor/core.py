r"""

cevcorridor.core
================

Monte Carlo pricers for calls on a CEV underlying.

This module provides:

* :class:`~cevcorridor.core.MonteCarloPricer` – abstract base that turns a
  payoff sampler into a priced :class:`PricingResult`.
* :class:`~cevcorridor.core.CorridorCallPricer` – the corridor-activated call.
* :class:`~cevcorridor.core.EuropeanCallPricer` – the same underlying without
  a corridor, i.e. the always-active limit.
* :func:`~cevcorridor.core.price` – one-shot pricing of a
  :class:`~cevcorridor.config.SimulationConfig`.

Confidence interval
-------------------

Every price carries the 95% interval

.. math::

   \bar{X} \pm 1.96\,\frac{s}{\sqrt{n}},

with :math:`s` the sample standard deviation of the payoffs (``ddof=1``).
Diagnostic statistics at other confidence levels are available in
:attr:`PricingResult.stats` through the stats engine.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from .config import SimulationConfig
from .exceptions import InsufficientSamples
from .paths import simulate_checkpoints
from .payoffs import corridor_call_payoff, european_call_payoff
from .stats_engine import DEFAULT_ENGINE, StatsContext, StatsEngine, estimate_mean
from .utils import RandomSource, make_generator

logger = logging.getLogger(__name__)  # pragma: no cover
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


@dataclass(frozen=True)
class PricingResult:
    r"""
    Outcome of one pricing run.

    Attributes
    ----------
    expected_value : float
        Monte Carlo price :math:`\bar X`.
    lower_bound, upper_bound : float
        95% confidence interval :math:`\bar X \mp 1.96\,s/\sqrt{n}`.
    n_simulations : int
        Number of simulated paths.
    std : float
        Sample standard deviation of the payoffs, ``ddof=1``.
    half_width : float
        :math:`1.96\,s/\sqrt{n}`.
    execution_time : float
        Wall-clock time in seconds.
    payoffs : ndarray of float
        Raw per-simulation payoffs.
    stats : dict
        Diagnostics from the stats engine (``"percentiles"``, ``"ci_mean"``, ...).
    metadata : dict
        ``"pricer_name"``, ``"timestamp"``, ``"seed_entropy"`` and ``"config"``.
    """

    expected_value: float
    lower_bound: float
    upper_bound: float
    n_simulations: int
    std: float
    half_width: float
    execution_time: float = 0.0
    payoffs: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False, compare=False)
    stats: dict[str, Any] = field(default_factory=dict, compare=False)
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def interval(self) -> tuple[float, float]:
        """``(lower_bound, upper_bound)``."""
        return self.lower_bound, self.upper_bound

    def result_to_string(self) -> str:
        r"""
        Human-readable summary of the result.

        Returns
        -------
        str
            Multiline textual summary.
        """
        if pricer_name := self.metadata.get("pricer_name"):
            title = f"Results for pricer '{pricer_name}':"
        else:
            title = "Results for pricer:"
        lines = [
            "=" * 20 + " PRICING RESULTS " + "=" * 20,
            title,
            f"  Number of simulations: {self.n_simulations}",
            f"  Execution time: {self.execution_time:.2f} seconds",
            f"  Price: {self.expected_value:.5f}   "
            f"(95% CI: [{self.lower_bound:.5f}, {self.upper_bound:.5f}], half-width {self.half_width:.5f})",
            f"  Std Dev (sample): {self.std:.5f}",
        ]
        pcts = self.stats.get("percentiles")
        if isinstance(pcts, dict) and pcts:
            lines.append("  Payoff percentiles:")
            for p in sorted(pcts):
                lines.append(f"    {p}th: {pcts[p]:.5f}")
        others = {k: v for k, v in self.stats.items() if k != "percentiles"}
        if others:
            lines.append("Additional Stats:")
        for k, v in others.items():
            lines.append(f"  {k}: {v}")
        if self.metadata:
            lines.append("Metadata:")
        for k, v in self.metadata.items():
            lines.append(f"    {k}: {v}")
        lines.append("=" * 20 + " END " + "=" * 20)
        return "\n".join(lines)


class MonteCarloPricer(ABC):
    r"""
    Abstract base class for Monte Carlo option pricers.

    Subclass this and implement :meth:`simulate_payoffs`, which maps a
    configuration and a generator to one payoff per simulation. The base class
    takes care of seeding, validation, estimation and diagnostics.

    Quick example
    -------------
    >>> class TerminalPricer(MonteCarloPricer):
    ...     def simulate_payoffs(self, config, rng):
    ...         cp = simulate_checkpoints(config, rng)
    ...         return cp.s_final
    ...
    >>> pricer = TerminalPricer(name="Forward")
    >>> pricer.set_seed(42)
    >>> res = pricer.run(cfg)  # doctest: +SKIP
    """

    def __init__(self, name: str = "Pricer"):
        self.name = name
        self.seed_seq: Optional[np.random.SeedSequence] = None
        self.rng = np.random.default_rng()

    @abstractmethod
    def simulate_payoffs(self, config: SimulationConfig, rng: np.random.Generator) -> np.ndarray:
        r"""
        Simulate ``config.n_simulations`` payoffs.

        Notes
        -----
        Subclasses must implement this method and draw all randomness from
        ``rng``.

        Returns
        -------
        ndarray of float
            One payoff per simulation.
        """

    def set_seed(self, seed: int | None) -> None:
        r"""
        Set the random seed for reproducible runs.

        Parameters
        ----------
        seed : int or None
            Seed for :class:`numpy.random.SeedSequence`. ``None`` chooses entropy
            from the OS.
        """
        self.seed_seq = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_seq)

    def run(
        self,
        config: SimulationConfig,
        rng: RandomSource = None,
        *,
        compute_stats: bool = True,
        stats_engine: Optional[StatsEngine] = None,
        confidence: float = 0.95,
    ) -> PricingResult:
        r"""
        Price ``config`` by Monte Carlo simulation.

        Parameters
        ----------
        config : SimulationConfig
            Model, contract and sampling parameters.
        rng : Generator, SeedSequence, int or None
            Source of randomness for this run. Defaults to :attr:`rng`, which
            keeps advancing across runs.
        compute_stats : bool, default ``True``
            Fill :attr:`PricingResult.stats` with diagnostics.
        stats_engine : StatsEngine, optional
            Custom engine (defaults to :data:`cevcorridor.stats_engine.DEFAULT_ENGINE`).
        confidence : float, default ``0.95``
            Confidence level of the diagnostic ``"ci_mean"``; the headline
            interval is always 95%.

        Returns
        -------
        PricingResult

        Raises
        ------
        InsufficientSamples
            If ``config.n_simulations < 2``.
        NumericAnomaly
            If a simulated price or payoff is not finite.
        """
        if not isinstance(config, SimulationConfig):
            raise TypeError(f"config must be a SimulationConfig, got {type(config).__name__}")
        if config.n_simulations < 2:
            raise InsufficientSamples(
                f"n_simulations must be >= 2 for a confidence interval, got {config.n_simulations}"
            )
        if not 0.0 < confidence < 1.0:
            raise ValueError("confidence must be in the interval (0, 1)")
        gen = self.rng if rng is None else make_generator(rng)

        logger.info(
            f"Computing {config.n_simulations} simulations over {config.horizon_steps} steps for '{self.name}'..."
        )
        t0 = time.time()
        payoffs = np.asarray(self.simulate_payoffs(config, gen), dtype=float)
        estimate = estimate_mean(payoffs)
        exec_time = time.time() - t0

        stats: dict[str, Any] = {}
        if compute_stats:
            eng = stats_engine or DEFAULT_ENGINE
            stats = eng.compute(payoffs, StatsContext(n=config.n_simulations, confidence=confidence))

        meta = {
            "pricer_name": self.name,
            "timestamp": time.time(),
            "seed_entropy": self.seed_seq.entropy if (rng is None and self.seed_seq) else None,
            "config": config.to_dict(),
        }
        return PricingResult(
            expected_value=estimate.mean,
            lower_bound=estimate.low,
            upper_bound=estimate.high,
            n_simulations=estimate.n,
            std=estimate.std,
            half_width=estimate.half_width,
            execution_time=exec_time,
            payoffs=payoffs,
            stats=stats,
            metadata=meta,
        )


class CorridorCallPricer(MonteCarloPricer):
    r"""
    Call on a CEV underlying that pays only if the corridor held at every checkpoint.

    The payoff of path :math:`j` is

    .. math::

       \mathbf{1}\{\alpha \le S^{(j)}_{t_k} \le \beta,\ k = 1, 2, 3\}\,
       \max(S^{(j)}_{h} - K, 0),

    with :math:`t_k` the 25/50/75% checkpoints of
    :attr:`~cevcorridor.config.SimulationConfig.checkpoints`.

    Examples
    --------
    >>> pricer = CorridorCallPricer()
    >>> pricer.set_seed(2024)
    >>> res = pricer.run(cfg)  # doctest: +SKIP
    >>> res.lower_bound <= res.expected_value <= res.upper_bound  # doctest: +SKIP
    True
    """

    def __init__(self, name: str = "CEV Corridor Call"):
        super().__init__(name)

    def simulate_payoffs(self, config: SimulationConfig, rng: np.random.Generator) -> np.ndarray:
        checkpoints = simulate_checkpoints(config, rng)
        return corridor_call_payoff(checkpoints, config.lower_bound, config.upper_bound, config.strike)


class EuropeanCallPricer(MonteCarloPricer):
    r"""
    Plain European call on the same CEV underlying.

    The corridor fields of the configuration are ignored. With the same
    generator state it consumes exactly the draws of :class:`CorridorCallPricer`,
    so it equals the corridor price whenever the corridor contains every
    checkpoint price.
    """

    def __init__(self, name: str = "CEV European Call"):
        super().__init__(name)

    def simulate_payoffs(self, config: SimulationConfig, rng: np.random.Generator) -> np.ndarray:
        checkpoints = simulate_checkpoints(config, rng)
        return european_call_payoff(checkpoints.s_final, config.strike)


def price(config: SimulationConfig, rng: RandomSource = None, **kwargs: Any) -> PricingResult:
    r"""
    Price the corridor-activated call described by ``config``.

    Parameters
    ----------
    config : SimulationConfig
        Model, contract and sampling parameters.
    rng : Generator, SeedSequence, int or None
        Source of the normal shocks. Equal generator states give bit-identical
        results.
    **kwargs :
        Forwarded to :meth:`MonteCarloPricer.run`.

    Returns
    -------
    PricingResult

    Raises
    ------
    InvalidConfiguration
        Raised by :class:`SimulationConfig` for out-of-range fields.
    InsufficientSamples
        If ``config.n_simulations < 2``.
    NumericAnomaly
        If a simulated price is not finite.

    Examples
    --------
    >>> cfg = SimulationConfig(
    ...     n_simulations=10_000, horizon_steps=100, initial_price=1.0, gamma=1.0,
    ...     volatility=0.01, drift=0.0, lower_bound=0.5, upper_bound=1.5, strike=1.0,
    ... )
    >>> res = price(cfg, rng=12345)  # doctest: +SKIP
    >>> round(res.expected_value, 2)  # doctest: +SKIP
    0.04
    """
    return CorridorCallPricer().run(config, rng, **kwargs)


__all__ = [
    "PricingResult",
    "MonteCarloPricer",
    "CorridorCallPricer",
    "EuropeanCallPricer",
    "price",
]
