r"""
cevcorridor.stats_engine
========================
Payoff statistics: the pricing estimator and the diagnostic metrics engine.

This module defines:

- :func:`estimate_mean`: the estimator behind every price, a fixed 95% normal
  interval :math:`\bar X \pm 1.96\,s/\sqrt{n}`.
- :class:`StatsContext`: settings read by every diagnostic metric (confidence,
  percentiles, NaN handling).
- :class:`FnMetric`: pairs a metric function with the key it reports under.
- :class:`StatsEngine`: runs a list of metrics over one payoff vector.

Diagnostic metrics include :func:`mean`, :func:`std`, :func:`percentiles`,
:func:`skew`, :func:`kurtosis`, :func:`ci_mean` and :func:`activation_rate`.

See Also
--------
cevcorridor.utils.autocrit
    Selects a z/t critical value for a target confidence level and sample size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, Protocol, Sequence, TypeVar

import numpy as np
from scipy.stats import kurtosis as sp_kurtosis
from scipy.stats import skew as sp_skew

from .exceptions import InsufficientSamples, NumericAnomaly
from .utils import Z_95, autocrit

# Local logger to avoid circular import with core
logger = logging.getLogger(__name__)


_PCTS = (5, 25, 50, 75, 95)


class NanPolicy(str, Enum):
    r"""
    Strategies for handling non-finite values in a diagnostic metric.

    Attributes
    ----------
    propagate : str
        Non-finite payoffs flow into the result unchanged.
    omit : str
        Non-finite payoffs are removed first.
    """

    propagate = "propagate"
    omit = "omit"


class CIMethod(str, Enum):
    r"""
    Critical-value selection for :func:`ci_mean`.

    Attributes
    ----------
    auto : str
        Student-t when :math:`n_\text{eff} < 30`, otherwise z.
    z : str
        Always the normal :math:`z` critical value.
    t : str
        Always the Student-:math:`t` critical value.
    """

    auto = "auto"
    z = "z"
    t = "t"


@dataclass(frozen=True)
class MeanEstimate:
    r"""
    Point estimate and 95% interval for the mean payoff.

    Attributes
    ----------
    mean : float
        :math:`\bar X`.
    std : float
        Sample standard deviation with ``ddof=1``.
    half_width : float
        :math:`1.96\,s/\sqrt{n}`.
    low, high : float
        Interval endpoints :math:`\bar X \mp` ``half_width``.
    n : int
        Number of payoffs.
    """

    mean: float
    std: float
    half_width: float
    low: float
    high: float
    n: int


def estimate_mean(x: np.ndarray) -> MeanEstimate:
    r"""
    Mean payoff with its fixed 95% normal-approximation interval.

    .. math::

       \bar X \pm 1.96\,\frac{s}{\sqrt{n}},
       \qquad s^2 = \frac{1}{n-1}\sum_i (x_i - \bar X)^2.

    Parameters
    ----------
    x : ndarray
        Per-simulation payoffs.

    Returns
    -------
    MeanEstimate

    Raises
    ------
    InsufficientSamples
        If fewer than two payoffs are given.
    NumericAnomaly
        If any payoff is NaN or infinite.

    Examples
    --------
    >>> est = estimate_mean(np.array([0.0, 2.0]))
    >>> est.mean, round(est.half_width, 4)
    (1.0, 1.96)
    """
    arr = np.asarray(x, dtype=float).ravel()
    n = int(arr.size)
    if n < 2:
        raise InsufficientSamples(f"at least 2 payoffs are needed for a confidence interval, got {n}")
    bad = ~np.isfinite(arr)
    if bad.any():
        count = int(bad.sum())
        raise NumericAnomaly(f"{count} payoff(s) are not finite", count=count)
    mu = float(np.mean(arr))
    s = float(np.std(arr, ddof=1))
    half = Z_95 * s / np.sqrt(n)
    return MeanEstimate(
        mean=mu,
        std=s,
        half_width=float(half),
        low=float(mu - half),
        high=float(mu + half),
        n=n,
    )


@dataclass(slots=True)
class StatsContext:
    r"""
    Settings for the diagnostic metrics of one pricing run.

    Attributes
    ----------
    n : int
        Declared sample size.
    confidence : float, default ``0.95``
        Confidence level in :math:`(0, 1)` used by :func:`ci_mean`.
    ci_method : {"auto", "z", "t"}, default "z"
        Critical-value strategy for :func:`ci_mean`.
    percentiles : tuple of int
        Levels reported by :func:`percentiles`, each in ``[0, 100]``.
    nan_policy : NanPolicy, default ``"propagate"``
        See :class:`NanPolicy`.
    ddof : int, default 1
        Delta degrees of freedom for :func:`std` and :func:`ci_mean`.

    Notes
    -----
    Prefer :meth:`with_overrides` to construct a modified copy.

    Examples
    --------
    >>> ctx = StatsContext(n=5000, confidence=0.99)
    >>> round(ctx.alpha, 2)
    0.01
    """

    n: int
    confidence: float = 0.95
    ci_method: CIMethod = CIMethod.z
    percentiles: tuple[int, ...] = _PCTS
    nan_policy: NanPolicy = NanPolicy.propagate
    ddof: int = 1

    def with_overrides(self, **changes) -> "StatsContext":
        """Return a shallow copy with selected fields replaced."""
        return replace(self, **changes)

    @property
    def alpha(self) -> float:
        r"""Tail probability :math:`\alpha = 1 - \text{confidence}`."""
        return 1.0 - self.confidence

    def eff_n(self, observed_len: int) -> int:
        r"""
        Effective sample size for interval calculations.

        The observed length after cleaning when ``nan_policy="omit"``,
        otherwise the declared :attr:`n` (falling back to ``observed_len``).
        """
        if self.nan_policy == NanPolicy.omit:
            return int(observed_len)
        return int(self.n or observed_len)

    def __post_init__(self) -> None:
        if not (0.0 < self.confidence < 1.0):
            raise ValueError(f"confidence must lie strictly between 0 and 1, got {self.confidence}")
        if any(p < 0 or p > 100 for p in self.percentiles):
            raise ValueError(f"percentiles must lie in [0, 100], got {self.percentiles}")
        if self.ddof < 0:
            raise ValueError(f"ddof must be non-negative, got {self.ddof}")
        self.ci_method = CIMethod(self.ci_method)
        self.nan_policy = NanPolicy(self.nan_policy)


class Metric(Protocol):
    r"""
    Anything :class:`StatsEngine` can evaluate: a ``name`` plus a call.

    The call takes the payoffs and a :class:`StatsContext`.
    """

    name: str

    def __call__(self, x: np.ndarray, ctx: StatsContext, /) -> Any: ...


T = TypeVar("T")


@dataclass(frozen=True)
class FnMetric(Generic[T]):
    r"""
    Named wrapper around a plain ``fn(x, ctx)`` function.

    Parameters
    ----------
    name : str
        Key under which the result is stored by :meth:`StatsEngine.compute`.
    fn : callable
        ``fn(x: ndarray, ctx: StatsContext) -> T``.
    doc : str, optional
        Short description.

    Examples
    --------
    >>> peak = FnMetric("max", lambda a, ctx: float(np.max(a)))
    >>> peak(np.array([0.0, 0.3, 0.1]), StatsContext(n=3))
    0.3
    """

    name: str
    fn: Callable[[np.ndarray, StatsContext], T]
    doc: str = ""

    def __call__(self, x: np.ndarray, ctx: StatsContext) -> T:
        return self.fn(x, ctx)


class StatsEngine:
    r"""
    Evaluate a set of metrics over a payoff sample.

    Parameters
    ----------
    metrics : iterable of Metric
        Evaluated in order; see :class:`Metric`.

    Notes
    -----
    A metric that raises is logged and left out of the output, so diagnostics
    never abort a pricing run.

    Examples
    --------
    >>> eng = StatsEngine([FnMetric("avg", mean), FnMetric("sd", std)])
    >>> eng.compute(np.array([1., 2., 3.]))
    {'avg': 2.0, 'sd': 1.0}
    """

    def __init__(self, metrics: Iterable[Metric]):
        self._metrics = list(metrics)

    def available(self) -> tuple[str, ...]:
        return tuple(m.name for m in self._metrics)

    def compute(
        self,
        x: np.ndarray,
        ctx: Optional[StatsContext] = None,
        select: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        r"""
        Evaluate the registered metrics on ``x``.

        Parameters
        ----------
        x : ndarray
            Sample values.
        ctx : StatsContext or dict, optional
            Context parameters. If None, one is built from ``**kwargs``.
        select : sequence of str, optional
            If given, compute only the metrics with these names.
        **kwargs :
            :class:`StatsContext` fields used when ``ctx`` is None; ``n``
            defaults to ``x.size``.

        Returns
        -------
        dict
            ``{metric.name: value}`` for every metric that produced a value.
        """
        if ctx is not None:
            ctx = _ensure_ctx(ctx, x)
        else:
            base = dict(kwargs)
            base.setdefault("n", int(np.asarray(x).size))
            ctx = StatsContext(**base)

        wanted = None if select is None else set(select)
        out: dict[str, Any] = {}
        for m in self._metrics:
            if wanted is not None and m.name not in wanted:
                continue
            try:
                result = m(x, ctx)
            except Exception:
                logger.exception(f"Metric {m.name!r} failed; leaving it out")
                continue
            if isinstance(result, dict) and len(result) == 0:
                logger.debug(f"Metric {m.name!r} produced no value")
                continue
            out[m.name] = result
        return out


def _ensure_ctx(ctx: Any, x: np.ndarray) -> StatsContext:
    r"""
    Normalize ``None``, a mapping or a :class:`StatsContext` into a context.

    Raises
    ------
    TypeError
        For any other type.
    """
    if isinstance(ctx, StatsContext):
        return ctx
    arr_len = int(np.asarray(x).size)
    if ctx is None:
        return StatsContext(n=arr_len)
    if isinstance(ctx, dict):
        data = dict(ctx)
        data.setdefault("n", arr_len)
        return StatsContext(**data)
    raise TypeError("ctx must be a StatsContext, dict, or None")


def _clean(x: np.ndarray, ctx: StatsContext) -> np.ndarray:
    """Return ``x`` as a float array, minus non-finite values under ``nan_policy="omit"``."""
    arr = np.asarray(x, dtype=float)
    if ctx.nan_policy == NanPolicy.omit:
        arr = arr[np.isfinite(arr)]
    return arr


def mean(x: np.ndarray, ctx: StatsContext | dict | None = None) -> float:
    r"""
    Average payoff; NaN for an empty sample.

    Examples
    --------
    >>> mean(np.array([0.0, 0.5, 1.0]))
    0.5
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    return float(np.mean(arr)) if arr.size else float("nan")


def std(x: np.ndarray, ctx: StatsContext | dict | None = None) -> float:
    r"""
    Sample standard deviation with :attr:`StatsContext.ddof` (default 1).

    Returns ``0.0`` when :math:`n_\text{eff} \le 1`.

    Examples
    --------
    >>> std(np.array([1, 2, 3]))
    1.0
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    if ctx.eff_n(arr.size) <= 1 or arr.size <= 1:
        return 0.0
    return float(np.std(arr, ddof=ctx.ddof))


def percentiles(x: np.ndarray, ctx: StatsContext | dict | None = None) -> dict[int, float]:
    r"""
    Empirical percentiles :math:`p \mapsto Q_p(x)`.

    Examples
    --------
    >>> percentiles(np.arange(4.0), {"percentiles": (50, 75)})
    {50: 1.5, 75: 2.25}
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    if arr.size == 0:
        return {p: float("nan") for p in ctx.percentiles}
    pct_values = np.percentile(arr, ctx.percentiles)
    return dict(zip(ctx.percentiles, map(float, pct_values)))


def skew(x: np.ndarray, ctx: StatsContext | dict | None = None) -> float:
    r"""
    Unbiased sample skewness (:func:`scipy.stats.skew` with ``bias=False``).

    ``0.0`` for fewer than three observations or a constant sample.
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    if arr.size <= 2 or np.ptp(arr) == 0:
        return 0.0
    return float(sp_skew(arr, bias=False))  # type: ignore[arg-type]


def kurtosis(x: np.ndarray, ctx: StatsContext | dict | None = None) -> float:
    r"""
    Unbiased sample excess kurtosis (Fisher definition).

    ``0.0`` for fewer than four observations or a constant sample.
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    if arr.size <= 3 or np.ptp(arr) == 0:
        return 0.0
    return float(sp_kurtosis(arr, fisher=True, bias=False))  # type: ignore[arg-type]


def ci_mean(x: np.ndarray, ctx: StatsContext | dict | None = None) -> dict[str, float | str]:
    r"""
    Parametric CI for the mean at :attr:`StatsContext.confidence`.

    .. math::
       \bar X \pm c \cdot \frac{s}{\sqrt{n_\text{eff}}},

    with :math:`c` chosen by :func:`cevcorridor.utils.autocrit`.

    Returns
    -------
    dict
        Keys ``confidence``, ``method``, ``se``, ``crit``, ``low``, ``high``;
        empty when :math:`n_\text{eff} < 2`.
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    n_eff = ctx.eff_n(arr.size)
    if arr.size < 2 or n_eff < 2:
        return {}
    mu = float(np.mean(arr))
    s = float(np.std(arr, ddof=ctx.ddof))
    se = s / np.sqrt(n_eff)
    crit, method = autocrit(ctx.confidence, n_eff, ctx.ci_method)
    return {
        "confidence": ctx.confidence,
        "method": method,
        "se": float(se),
        "crit": float(crit),
        "low": float(mu - crit * se),
        "high": float(mu + crit * se),
    }


def activation_rate(x: np.ndarray, ctx: StatsContext | dict | None = None) -> float:
    r"""
    Share of strictly positive payoffs.

    For the corridor call this is the fraction of paths that stayed in the
    corridor at all checkpoints *and* finished in the money.
    """
    ctx = _ensure_ctx(ctx, x)
    arr = _clean(x, ctx)
    return float(np.count_nonzero(arr > 0) / arr.size) if arr.size else float("nan")


def build_default_engine(include_shape: bool = True) -> StatsEngine:
    r"""
    Construct a :class:`StatsEngine` with the payoff diagnostics.

    Parameters
    ----------
    include_shape : bool, default True
        Include :func:`skew` and :func:`kurtosis`.

    Returns
    -------
    StatsEngine
    """
    metrics: list[Metric] = [
        FnMetric[float]("mean", mean, "Average payoff"),
        FnMetric[float]("std", std, "Payoff standard deviation"),
        FnMetric[dict[int, float]]("percentiles", percentiles, "Payoff quantiles"),
        FnMetric[dict[str, float | str]]("ci_mean", ci_mean, "Mean interval at ctx.confidence"),
        FnMetric[float]("activation_rate", activation_rate, "Share of positive payoffs"),
    ]
    if include_shape:
        metrics.extend(
            [
                FnMetric[float]("skew", skew, "Payoff skewness"),
                FnMetric[float]("kurtosis", kurtosis, "Payoff excess kurtosis"),
            ]
        )
    return StatsEngine(metrics)


DEFAULT_ENGINE = build_default_engine()

__all__ = [
    "NanPolicy",
    "CIMethod",
    "MeanEstimate",
    "estimate_mean",
    "StatsContext",
    "Metric",
    "FnMetric",
    "StatsEngine",
    "mean",
    "std",
    "percentiles",
    "skew",
    "kurtosis",
    "ci_mean",
    "activation_rate",
    "build_default_engine",
    "DEFAULT_ENGINE",
]
