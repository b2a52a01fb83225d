r"""
cevcorridor.utils
=================

Random-source normalisation and critical values for confidence intervals.

The pricer's headline interval uses the fixed constant :data:`Z_95`; these
helpers back the stats engine's configurable :func:`~cevcorridor.stats_engine.ci_mean`.
"""

from __future__ import annotations

from typing import Union

import numpy as np
from scipy.stats import norm
from scipy.stats import t as student_t

__all__ = ["Z_95", "RandomSource", "make_generator", "z_crit", "t_crit", "autocrit"]

RandomSource = Union[np.random.Generator, np.random.SeedSequence, int, None]

#: Two-sided 95% normal critical value used by the pricing estimator.
Z_95 = 1.96


def make_generator(rng: RandomSource = None) -> np.random.Generator:
    r"""
    Normalise a random source into a :class:`numpy.random.Generator`.

    Parameters
    ----------
    rng : Generator, SeedSequence, int or None
        A generator is returned as is, so its stream keeps advancing across
        calls. Seeds and seed sequences build a fresh generator; ``None`` draws
        entropy from the OS.

    Returns
    -------
    numpy.random.Generator
    """
    if isinstance(rng, np.random.Generator):
        return rng
    if isinstance(rng, bool):
        raise TypeError("rng must be a Generator, SeedSequence, int or None")
    if rng is None or isinstance(rng, (int, np.integer, np.random.SeedSequence)):
        return np.random.default_rng(rng)
    raise TypeError("rng must be a Generator, SeedSequence, int or None")


def z_crit(confidence: float) -> float:
    r"""
    Two-sided normal critical value :math:`z_{1-\alpha/2}`.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.

    Returns
    -------
    float

    Examples
    --------
    >>> round(z_crit(0.95), 4)
    1.96
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")
    return float(norm.ppf(0.5 + confidence / 2.0))


def t_crit(confidence: float, df: int) -> float:
    r"""
    Two-sided Student-t critical value :math:`t_{1-\alpha/2,\,\nu}`.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    df : int
        Degrees of freedom :math:`\nu \ge 1`.

    Returns
    -------
    float
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")
    if df < 1:
        raise ValueError("df must be >= 1")
    return float(student_t.ppf(0.5 + confidence / 2.0, df))


def autocrit(confidence: float, n: int, method: str = "auto") -> tuple[float, str]:
    r"""
    Pick a critical value for a mean CI of ``n`` observations.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    n : int
        Effective sample size.
    method : {"auto", "z", "t"}, default ``"auto"``
        ``"auto"`` uses Student-t with ``n - 1`` degrees of freedom when
        :math:`n < 30` and the normal value otherwise.

    Returns
    -------
    tuple[float, str]
        ``(crit, kind)`` where ``kind`` is ``"z"`` or ``"t"``.
    """
    method = getattr(method, "value", method)
    if method == "z":
        return z_crit(confidence), "z"
    if method == "t":
        return t_crit(confidence, max(1, n - 1)), "t"
    if method == "auto":
        if n < 30:
            return t_crit(confidence, max(1, n - 1)), "t"
        return z_crit(confidence), "z"
    raise ValueError(f"method must be one of 'auto', 'z', 't', got '{method}'")
