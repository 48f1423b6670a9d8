"""
Derivative estimators for thermal-analysis curves (DTG and friends).

Every estimator maps an ordered sample sequence ``(x, y)`` to a derivative
sequence and reports the outcome through a :class:`DerivativeResult` instead of
raising: a result with ``ok=False`` carries an empty output and the error that
explains why. Callers check ``bool(result)`` (or call ``raise_for_status()``)
before using the arrays.

Window and stencil estimators trim the boundary rather than extrapolate. The
first and last unresolved samples are simply absent from the output and the
x coordinate of each output sample is the input x at the window center.

Choosing an estimator
---------------------
- High-noise TG/DSC data: ``dtg_derivative`` with a large half window (25-50).
- Medium noise: ``dtg_derivative`` (h=25) or ``electrochemical_derivative``.
- Low noise: ``central_difference`` or ``five_point_derivative``.
- Unknown noise level: ``adaptive_derivative``.
- Very noisy data: ``smooth_then_differentiate``.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Literal, Optional, Tuple

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from ..curves import Curve
from ..errors import (
    InsufficientDataError,
    PreconditionViolation,
    ThermokitError,
    ValidationError,
)
from .extrema import Extrema, find_derivative_extrema
from .noise import estimate_noise_ratio, select_half_window
from .smoothing import moving_average

logger = logging.getLogger(__name__)

Method = Literal['dtg', 'electrochemical', 'central', 'five_point', 'adaptive', 'smooth_then_differentiate']

_EMPTY = np.empty(0, dtype=float)


@dataclass(frozen=True)
class DerivativeResult:
    """Outcome of one derivative estimate."""

    ok: bool
    x: NDArray[np.float64] = field(default_factory=lambda: _EMPTY.copy())
    y: NDArray[np.float64] = field(default_factory=lambda: _EMPTY.copy())
    method: str = ""
    window: Optional[int] = None
    error: Optional[ThermokitError] = None

    @classmethod
    def failure(cls, method: str, error: ThermokitError) -> "DerivativeResult":
        return cls(ok=False, method=method, error=error)

    def __bool__(self) -> bool:
        return self.ok

    def __len__(self) -> int:
        return int(self.y.size)

    def raise_for_status(self) -> "DerivativeResult":
        """Re-raise the stored error of a failed estimate; return self otherwise."""
        if not self.ok:
            raise self.error if self.error is not None else ThermokitError(f"{self.method} failed")
        return self

    def as_curve(self, curve_id: str = "", label: str = "") -> Curve:
        return Curve(self.x, self.y, curve_id, label or self.method)


def _reports_failure(method: str) -> Callable[[Callable[..., DerivativeResult]], Callable[..., DerivativeResult]]:
    """Turn data errors raised inside an estimator into a failed result."""

    def decorator(func: Callable[..., DerivativeResult]) -> Callable[..., DerivativeResult]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> DerivativeResult:
            try:
                return func(*args, **kwargs)
            except ThermokitError as e:
                logger.warning(f"{method} derivative failed: {e}")
                return DerivativeResult.failure(method, e)

        return wrapper

    return decorator


def _as_xy(x: ArrayLike, y: ArrayLike) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    x = np.asarray(x, dtype=float).reshape(-1)
    y = np.asarray(y, dtype=float).reshape(-1)
    if x.size != y.size:
        raise ValidationError(f"x and y must have same size, got {x.size} and {y.size}")
    return x, y


def _require_points(n: int, needed: int, what: str) -> None:
    if n < needed:
        raise InsufficientDataError(f"{what} needs at least {needed} points, got {n}")


def _require_strictly_increasing(x: NDArray[np.float64]) -> None:
    if not np.all(np.diff(x) > 0):
        raise PreconditionViolation("x values must be strictly increasing (no duplicates)")


def _is_grid_uniform(x: NDArray[np.float64], rtol: float = 1e-5, atol: float = 1e-8) -> bool:
    diffs = np.diff(x)
    return bool(np.allclose(diffs, diffs[0], rtol=rtol, atol=atol))


def _prefix_sums(y: NDArray[np.float64]) -> NDArray[np.float64]:
    # c[k] == sum(y[:k])
    return np.concatenate(([0.0], np.cumsum(y)))


@_reports_failure('dtg')
def dtg_derivative(
    x: ArrayLike,
    y: ArrayLike,
    half_window: int = 50,
    dt: float = 0.1,
) -> DerivativeResult:
    """Windowed central difference (DTG).

    For each center ``i`` the sum of the ``h`` samples after it minus the sum
    of the ``h`` samples before it is normalized by ``windowTime * h`` where
    ``windowTime = h * dt`` and ``dt`` is a virtual time step::

        d[i] = (sum(y[i+1..i+h]) - sum(y[i-h..i-1])) / (h * dt) / h

    Args:
        x: Abscissa (temperature or time), copied through at window centers
        y: Signal (mass, heat flow)
        half_window: Half width ``h`` of the window in samples
        dt: Virtual time step

    Returns:
        DerivativeResult with ``n - 2h`` samples, or a failure when
        ``n < 2h + 1``
    """
    x, y = _as_xy(x, y)
    h = int(half_window)
    if h < 1:
        raise ValidationError(f"half_window must be >= 1, got {half_window}")
    if not dt > 0:
        raise ValidationError(f"dt must be positive, got {dt}")

    n = y.size
    _require_points(n, 2 * h + 1, f"DTG with half window {h}")

    c = _prefix_sums(y)
    i = np.arange(h, n - h)
    sum_after = c[i + h + 1] - c[i + 1]
    sum_before = c[i] - c[i - h]

    window_time = h * dt
    derivative = (sum_after - sum_before) / window_time / h
    return DerivativeResult(True, x[h:n - h].copy(), derivative, 'dtg', window=h)


@_reports_failure('electrochemical')
def electrochemical_derivative(
    x: ArrayLike,
    y: ArrayLike,
    window_size: int = 25,
    norm_factor: Optional[float] = None,
) -> DerivativeResult:
    """Asymmetric window difference used for electrochemical curves.

    The back window ``y[i-w+1..i]`` includes the center sample, the front
    window ``y[i+1..i+w]`` does not. Centers run from ``w-1`` to ``n-w-1`` so
    the output holds ``n - 2w + 1`` samples.

    Args:
        x: Abscissa (e.g. potential)
        y: Signal (e.g. current)
        window_size: Samples per window ``w``
        norm_factor: Scale applied to the window difference; defaults to
            ``(w - 1) / w``
    """
    x, y = _as_xy(x, y)
    w = int(window_size)
    if w < 1:
        raise ValidationError(f"window_size must be >= 1, got {window_size}")
    if norm_factor is None:
        norm_factor = (w - 1) / w

    n = y.size
    _require_points(n, 2 * w, f"Electrochemical derivative with window {w}")

    c = _prefix_sums(y)
    i = np.arange(w - 1, n - w)
    sum_before = c[i + 1] - c[i - w + 1]
    sum_after = c[i + w + 1] - c[i + 1]

    derivative = (sum_after - sum_before) * float(norm_factor)
    return DerivativeResult(True, x[i].copy(), derivative, 'electrochemical', window=w)


@_reports_failure('central')
def central_difference(x: ArrayLike, y: ArrayLike) -> DerivativeResult:
    """Second-order central difference ``(y[i+1]-y[i-1]) / (x[i+1]-x[i-1])``.

    Suited to high signal-to-noise data. x must be strictly increasing;
    otherwise the estimate fails with :class:`PreconditionViolation`.
    """
    x, y = _as_xy(x, y)
    _require_points(y.size, 3, "Central difference")
    _require_strictly_increasing(x)

    derivative = (y[2:] - y[:-2]) / (x[2:] - x[:-2])
    return DerivativeResult(True, x[1:-1].copy(), derivative, 'central', window=1)


@_reports_failure('five_point')
def five_point_derivative(x: ArrayLike, y: ArrayLike) -> DerivativeResult:
    """Fourth-order five-point stencil.

    ``d[i] = (-y[i+2] + 8 y[i+1] - 8 y[i-1] + y[i-2]) / (12 dx)`` with ``dx``
    the mean sample spacing. Exact for polynomials up to degree 3 on equally
    spaced points. Uneven spacing is reported in the log but not rejected.
    """
    x, y = _as_xy(x, y)
    n = y.size
    _require_points(n, 5, "Five-point stencil")
    _require_strictly_increasing(x)

    if not _is_grid_uniform(x):
        logger.warning("Five-point stencil applied to unevenly spaced x; using mean spacing")
    dx = (x[-1] - x[0]) / (n - 1)

    derivative = (-y[4:] + 8.0 * y[3:-1] - 8.0 * y[1:-3] + y[:-4]) / (12.0 * dx)
    return DerivativeResult(True, x[2:-2].copy(), derivative, 'five_point', window=2)


@_reports_failure('adaptive')
def adaptive_derivative(
    x: ArrayLike,
    y: ArrayLike,
    dt: float = 0.1,
    min_half_window: int = 1,
    max_half_window: int = 50,
    low_ratio: float = 1e-4,
    high_ratio: float = 1e-2,
) -> DerivativeResult:
    """DTG derivative with the half window chosen from the estimated noise.

    The chosen half window is reported in ``result.window``.
    """
    x, y = _as_xy(x, y)
    _require_points(y.size, 3, "Adaptive derivative")

    ratio = estimate_noise_ratio(y)
    half_window = select_half_window(
        ratio, y.size,
        min_half_window=min_half_window,
        max_half_window=max_half_window,
        low_ratio=low_ratio,
        high_ratio=high_ratio,
    )
    logger.debug(f"Adaptive derivative: noise ratio {ratio:.3g} -> half window {half_window}")

    result = dtg_derivative(x, y, half_window=half_window, dt=dt)
    return replace(result, method='adaptive', window=half_window)


@_reports_failure('smooth_then_differentiate')
def smooth_then_differentiate(
    x: ArrayLike,
    y: ArrayLike,
    smooth_window: int = 15,
) -> DerivativeResult:
    """Moving-average smoothing followed by a central difference."""
    x, y = _as_xy(x, y)
    w = int(smooth_window)
    if w < 1:
        raise ValidationError(f"smooth_window must be >= 1, got {smooth_window}")
    _require_points(y.size, max(w, 3), f"Smooth-then-differentiate with window {w}")

    smoothed = moving_average(y, window=w)
    result = central_difference(x, smoothed)
    return replace(result, method='smooth_then_differentiate', window=w if result.ok else None)


ESTIMATORS: Dict[str, Callable[..., DerivativeResult]] = {
    'dtg': dtg_derivative,
    'electrochemical': electrochemical_derivative,
    'central': central_difference,
    'five_point': five_point_derivative,
    'adaptive': adaptive_derivative,
    'smooth_then_differentiate': smooth_then_differentiate,
}


def differentiate(x: ArrayLike, y: ArrayLike, method: Method = 'dtg', **options: Any) -> DerivativeResult:
    """Run the estimator registered under ``method`` with estimator-specific options."""
    estimator = ESTIMATORS.get(method)
    if estimator is None:
        error = ValidationError(f"Unknown derivative method {method!r}; expected one of {sorted(ESTIMATORS)}")
        logger.warning(str(error))
        return DerivativeResult.failure(str(method), error)
    logger.debug(f"Differentiating {np.size(y)} samples with '{method}'")
    return estimator(x, y, **options)


def find_max_derivative_point(x: ArrayLike, d: ArrayLike) -> Optional[Tuple[float, float]]:
    """Return ``(x, d)`` at the largest absolute derivative, or None if empty.

    Ties keep the first occurrence.
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    d = np.asarray(d, dtype=float).reshape(-1)
    if d.size == 0:
        return None
    if x.size != d.size:
        raise ValueError(f"x and d must have same size, got {x.size} and {d.size}")
    idx = int(np.argmax(np.abs(d)))
    return float(x[idx]), float(d[idx])


def derivative_from_dataframe(
    df: pd.DataFrame,
    x_column: str = 'Temperature',
    y_column: str = 'Mass',
    method: Method = 'dtg',
    **kwargs: Any,
) -> DerivativeResult:
    """
    Convenience function to differentiate two columns of a DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        Table holding the sampled curve in acquisition order
    x_column : str
        Name of the abscissa column
    y_column : str
        Name of the signal column
    method : str
        Estimator name, see :data:`ESTIMATORS`
    **kwargs
        Passed to the estimator

    Returns
    -------
    DerivativeResult
    """
    for col in (x_column, y_column):
        if col not in df.columns:
            raise ValueError(f"Column '{col}' not found in DataFrame")

    x = pd.to_numeric(df[x_column], errors='coerce').to_numpy(dtype=float)
    y = pd.to_numeric(df[y_column], errors='coerce').to_numpy(dtype=float)

    if np.any(np.isnan(x)) or np.any(np.isnan(y)):
        raise ValueError("DataFrame contains non-numeric or NaN values")

    return differentiate(x, y, method=method, **kwargs)


class DerivativeAnalyzer:
    """
    Class-based interface bundling derivative, extrema and max-rate lookup.

    Keeps the last results so a caller (e.g. a results panel) can query them
    after a single :meth:`run`.
    """

    def __init__(
        self,
        x: ArrayLike,
        y: ArrayLike,
        method: Method = 'dtg',
        threshold: float = 0.1,
        **options: Any,
    ):
        """
        Parameters
        ----------
        x, y : array_like
            Sampled curve
        method : str
            Estimator name
        threshold : float
            Relative extrema threshold in [0, 1]
        **options
            Estimator options (``half_window``, ``dt``, ...)
        """
        self.x = np.asarray(x, dtype=float)
        self.y = np.asarray(y, dtype=float)
        self.method = method
        self.threshold = threshold
        self.options = options
        self.derivative: Optional[DerivativeResult] = None
        self.extrema: Optional[Extrema] = None
        self.results: Dict[str, Any] = {}

        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")

    def run(self) -> Dict[str, Any]:
        """Compute the derivative and, if it succeeded, its features."""
        self.derivative = differentiate(self.x, self.y, method=self.method, **self.options)
        if self.derivative:
            self.extrema = find_derivative_extrema(self.derivative.x, self.derivative.y, self.threshold)
            max_point = find_max_derivative_point(self.derivative.x, self.derivative.y)
        else:
            self.extrema = Extrema.empty()
            max_point = None

        self.results = {
            'ok': self.derivative.ok,
            'method': self.derivative.method,
            'window': self.derivative.window,
            'num_points': len(self.derivative),
            'max_rate_point': max_point,
            'num_peaks': self.extrema.peak_count,
            'num_valleys': self.extrema.valley_count,
            'error': str(self.derivative.error) if self.derivative.error else None,
        }
        status = "OK" if self.derivative.ok else "FAILED"
        logger.info(f"Derivative analysis: {status} (method={self.derivative.method}, "
                    f"peaks={self.extrema.peak_count}, valleys={self.extrema.valley_count})")
        return self.results

    @property
    def succeeded(self) -> bool:
        if not self.results:
            raise RuntimeError("Must call run() first")
        return bool(self.results['ok'])

    @property
    def peak_rate_point(self) -> Optional[Tuple[float, float]]:
        """(x, rate) at the largest absolute derivative."""
        if not self.results:
            raise RuntimeError("Must call run() first")
        return self.results['max_rate_point']

    def get_report(self) -> str:
        if not self.results:
            return "Analysis has not been run. Call .run() first."
        if not self.results['ok']:
            return f"Derivative ({self.results['method']}) failed: {self.results['error']}"

        x_max, rate = self.results['max_rate_point']
        window = self.results['window'] if self.results['window'] is not None else '-'
        return (
            f"\n{' Derivative Report ':=^50}\n"
            f" Method:           {self.results['method']}\n"
            f" Window:           {window}\n"
            f" Output points:    {self.results['num_points']}\n"
            f" Max rate:         {rate:.6g} at x={x_max:.6g}\n"
            f" Peaks / valleys:  {self.results['num_peaks']} / {self.results['num_valleys']}\n"
            f"{'=' * 50}"
        )
