r"""
cevcorridor.payoffs
===================

Per-simulation payoffs of the corridor-activated call.

For simulation :math:`j` with checkpoint prices
:math:`(s_1^{(j)}, s_2^{(j)}, s_3^{(j)}, s_T^{(j)})`

.. math::

   \Phi^{(j)} = \mathbf{1}\Big\{\bigwedge_{k=1}^{3} \alpha \le s_k^{(j)} \le \beta\Big\}
   \,\max\big(s_T^{(j)} - K, 0\big).

All tests are evaluated elementwise over the batch.
"""

from __future__ import annotations

import numpy as np

from .paths import CheckpointPrices

__all__ = [
    "in_corridor",
    "corridor_active",
    "european_call_payoff",
    "corridor_call_payoff",
]


def in_corridor(s: np.ndarray, lower: float, upper: float) -> np.ndarray:
    """Boolean mask of ``lower <= s <= upper`` (inclusive on both ends)."""
    s = np.asarray(s, dtype=float)
    return (s >= lower) & (s <= upper)


def corridor_active(checkpoints: CheckpointPrices, lower: float, upper: float) -> np.ndarray:
    r"""
    Activation indicator per simulation.

    Parameters
    ----------
    checkpoints : CheckpointPrices
        Recorded prices of the batch.
    lower, upper : float
        Corridor :math:`[\alpha, \beta]`.

    Returns
    -------
    ndarray of bool
        ``True`` where all three intermediate checkpoints lie in the corridor.

    Examples
    --------
    >>> cp = CheckpointPrices(
    ...     np.array([1.0, 1.0]), np.array([1.0, 2.0]), np.array([1.0, 1.0]), np.array([1.2, 1.2])
    ... )
    >>> corridor_active(cp, 0.5, 1.5)
    array([ True, False])
    """
    active = np.ones(len(checkpoints), dtype=bool)
    for s in checkpoints.intermediate:
        active &= in_corridor(s, lower, upper)
    return active


def european_call_payoff(s_final: np.ndarray, strike: float) -> np.ndarray:
    r"""Intrinsic value :math:`\max(S_T - K, 0)`."""
    return np.maximum(np.asarray(s_final, dtype=float) - strike, 0.0)


def corridor_call_payoff(
    checkpoints: CheckpointPrices,
    lower: float,
    upper: float,
    strike: float,
) -> np.ndarray:
    r"""
    Payoff of the corridor-activated call for every simulation.

    Parameters
    ----------
    checkpoints : CheckpointPrices
        Recorded prices of the batch.
    lower, upper : float
        Corridor bounds, inclusive.
    strike : float
        Strike :math:`K`.

    Returns
    -------
    ndarray of float
        Non-negative payoffs, zero wherever the corridor was left at a
        checkpoint.
    """
    active = corridor_active(checkpoints, lower, upper)
    return np.where(active, european_call_payoff(checkpoints.s_final, strike), 0.0)
