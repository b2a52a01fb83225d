"""Error types raised by the corridor option pricer."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "PricingError",
    "InvalidConfiguration",
    "InsufficientSamples",
    "NumericAnomaly",
]


class PricingError(ValueError):
    """Base class for every error raised by a single pricing run."""


class InvalidConfiguration(PricingError):
    """A :class:`~cevcorridor.config.SimulationConfig` field is out of range."""


class InsufficientSamples(PricingError):
    """Too few payoffs to form a sample standard deviation (``n < 2``)."""


class NumericAnomaly(PricingError, ArithmeticError):
    r"""
    A simulated price or payoff became non-finite.

    Attributes
    ----------
    step : int or None
        Time step (1-based) at which the first non-finite value appeared, or
        ``None`` when detected after simulation.
    count : int
        Number of affected simulations.
    """

    def __init__(self, message: str, *, step: Optional[int] = None, count: int = 0):
        super().__init__(message)
        self.step = step
        self.count = count
