"""Extrapolated onset temperature from a baseline and an inflection tangent.

The onset of a thermal event is read off where the pre-event baseline, fitted
on the samples just before the first picked point, meets the tangent drawn at
the steepest point between the two picks.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


class LineFit(NamedTuple):
    slope: float
    intercept: float
    r2: float = 1.0

    def __call__(self, x: ArrayLike) -> NDArray[np.float64]:
        return self.slope * np.asarray(x, dtype=float) + self.intercept


class Onset(NamedTuple):
    """Extrapolated onset and the lines it was constructed from."""

    onset_x: float
    onset_y: float
    inflection_x: float
    inflection_y: float
    tangent: LineFit
    baseline: LineFit


def fit_baseline_before(x: ArrayLike, y: ArrayLike, x_end: float, point_count: int = 20) -> LineFit:
    """Least-squares line through the ``point_count`` samples preceding ``x_end``.

    Raises:
        ValueError: If fewer than two samples precede ``x_end`` or they share
            a single x value
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    y = np.asarray(y, dtype=float).reshape(-1)

    after = np.flatnonzero(x >= x_end)
    end = int(after[0]) if after.size else x.size - 1
    start = max(0, end - int(point_count))
    if end - start < 2:
        raise ValueError(f"Baseline fit needs at least 2 points before x={x_end}, got {end - start}")

    xs, ys = x[start:end], y[start:end]
    if np.ptp(xs) == 0:
        raise ValueError("Baseline points share a single x value")

    slope, intercept = np.polyfit(xs, ys, deg=1)
    residual = ys - (slope * xs + intercept)
    ss_tot = float(np.sum((ys - ys.mean()) ** 2))
    r2 = 1.0 - float(np.sum(residual ** 2)) / ss_tot if ss_tot > 0 else 1.0
    return LineFit(float(slope), float(intercept), r2)


def find_inflection(x: ArrayLike, y: ArrayLike, x_start: float, x_end: float) -> Tuple[int, float]:
    """Index and slope of the steepest central difference within [x_start, x_end].

    Raises:
        ValueError: If the range holds too few interior samples
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    y = np.asarray(y, dtype=float).reshape(-1)
    if x.size < 3:
        raise ValueError(f"Inflection search needs at least 3 points, got {x.size}")

    in_range = np.flatnonzero((x >= x_start) & (x <= x_end))
    if in_range.size < 3:
        raise ValueError(f"No inflection can be located in [{x_start}, {x_end}]")
    lo = max(int(in_range[0]), 1)
    hi = min(int(in_range[-1]), x.size - 2)

    idx = np.arange(lo, hi + 1)
    dx = x[idx + 1] - x[idx - 1]
    dy = y[idx + 1] - y[idx - 1]
    with np.errstate(divide="ignore", invalid="ignore"):
        slopes = np.where(np.abs(dx) > 1e-10, dy / dx, np.nan)
    if not np.any(np.isfinite(slopes)):
        raise ValueError(f"No finite slope in [{x_start}, {x_end}]")

    best = int(np.nanargmax(np.abs(slopes)))
    return int(idx[best]), float(slopes[best])


def extrapolated_onset(
    x: ArrayLike,
    y: ArrayLike,
    x1: float,
    x2: float,
    baseline_points: int = 20,
) -> Onset:
    """Extrapolated onset between two picked abscissae.

    Args:
        x: Curve abscissa (temperature), increasing
        y: Curve values
        x1, x2: Picks before and after the event, in either order
        baseline_points: Samples before the first pick used for the baseline

    Returns:
        Onset with the intersection, the inflection and both lines

    Raises:
        ValueError: If the baseline cannot be fitted, no inflection is found,
            or the tangent runs parallel to the baseline
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    y = np.asarray(y, dtype=float).reshape(-1)
    if x.size != y.size:
        raise ValueError(f"x and y must have same size, got {x.size} and {y.size}")
    lo, hi = sorted((float(x1), float(x2)))

    baseline = fit_baseline_before(x, y, lo, baseline_points)
    i, slope = find_inflection(x, y, lo, hi)
    tangent = LineFit(slope, float(y[i] - slope * x[i]))

    denom = baseline.slope - tangent.slope
    if abs(denom) < 1e-10:
        raise ValueError("Tangent is parallel to the baseline; no onset can be extrapolated")

    onset_x = (tangent.intercept - baseline.intercept) / denom
    onset_y = baseline.slope * onset_x + baseline.intercept
    logger.debug(f"Onset at x={onset_x:.4g} (inflection x={x[i]:.4g}, baseline r2={baseline.r2:.3f})")
    return Onset(float(onset_x), float(onset_y), float(x[i]), float(y[i]), tangent, baseline)
