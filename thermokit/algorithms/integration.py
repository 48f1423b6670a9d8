"""Trapezoidal integration of thermal curves."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.integrate import cumulative_trapezoid, trapezoid

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

AREA_BASELINES = ("linear", "zero")


def _as_xy(x: ArrayLike, y: ArrayLike) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    x = np.asarray(x, dtype=float).reshape(-1)
    y = np.asarray(y, dtype=float).reshape(-1)
    if x.size != y.size:
        raise ValueError(f"x and y must have same size, got {x.size} and {y.size}")
    if x.size == 0:
        raise ValueError("Input array is empty")
    return x, y


def cumulative_integral(x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
    """Running trapezoidal integral of y over x, starting at 0.

    The output has the same length as the input. Repeated x values add no
    area.

    Raises:
        ValueError: If the arrays are empty or differ in size
    """
    x, y = _as_xy(x, y)
    return cumulative_trapezoid(y, x, initial=0.0)


def peak_area(
    x: ArrayLike,
    y: ArrayLike,
    p1: Point,
    p2: Point,
    baseline: str = "linear",
) -> float:
    """Area of a peak between two picked points.

    The curve is cut at the picked abscissae (values there are linearly
    interpolated) and integrated with the trapezoid rule. With the ``linear``
    baseline the straight line through the two picks is subtracted first; with
    ``zero`` the raw area under the curve is returned. Picks outside the data
    are clamped to its range.

    Args:
        x: Curve abscissa, strictly increasing
        y: Curve values
        p1, p2: Picked (x, y) points in either order
        baseline: "linear" or "zero"

    Returns:
        Signed area (positive for a peak above the baseline)

    Raises:
        ValueError: On an unknown baseline, non-increasing x, or picks that
            share the same x
    """
    if baseline not in AREA_BASELINES:
        raise ValueError(f"Unknown baseline '{baseline}', expected one of {AREA_BASELINES}")
    x, y = _as_xy(x, y)
    if x.size > 1 and np.any(np.diff(x) <= 0):
        raise ValueError("x must be strictly increasing")

    (x1, y1), (x2, y2) = sorted([tuple(map(float, p1)), tuple(map(float, p2))], key=lambda p: p[0])
    if x1 == x2:
        raise ValueError(f"Picked points must differ in x, both are at {x1}")

    lo, hi = np.clip([x1, x2], x[0], x[-1])
    if lo == hi:
        logger.warning(f"Integration range [{x1}, {x2}] lies outside the data")
        return 0.0

    inside = (x > lo) & (x < hi)
    xs = np.concatenate(([lo], x[inside], [hi]))
    ys = np.interp(xs, x, y)
    if baseline == "linear":
        ys = ys - (y1 + (y2 - y1) / (x2 - x1) * (xs - x1))

    area = float(trapezoid(ys, xs))
    logger.debug(f"Peak area over [{lo:.4g}, {hi:.4g}] ({baseline} baseline): {area:.6g}")
    return area
