from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def linear_baseline(x: ArrayLike, p1: Point, p2: Point) -> NDArray[np.float64]:
    """Straight baseline through two picked points.

    The points are ordered by x. Between them the baseline is the connecting
    line; outside it is held at the nearer end value. Two picks at the same x
    give a flat baseline at the first pick's value.

    Args:
        x: Abscissa of the curve the baseline is built for
        p1, p2: Picked (x, y) points

    Returns:
        Baseline values at every x

    Raises:
        ValueError: If x is empty
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    if x.size == 0:
        raise ValueError("Input array is empty")

    (x1, y1), (x2, y2) = sorted([tuple(map(float, p1)), tuple(map(float, p2))], key=lambda p: p[0])
    if np.isclose(x1, x2):
        return np.full_like(x, float(p1[1]))

    slope = (y2 - y1) / (x2 - x1)
    return y1 + slope * (np.clip(x, x1, x2) - x1)


def polynomial_baseline(x: ArrayLike, points: Sequence[Point], order: int = 2) -> NDArray[np.float64]:
    """Least-squares polynomial baseline through picked points.

    The degree is capped at ``len(points) - 1`` so the fit stays determined.

    Raises:
        ValueError: If fewer than two points are given or order < 1
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if pts.shape[0] < 2:
        raise ValueError(f"Polynomial baseline needs at least 2 points, got {pts.shape[0]}")
    if order < 1:
        raise ValueError(f"Order must be >= 1, got {order}")

    degree = min(int(order), pts.shape[0] - 1)
    if degree < order:
        logger.warning(f"Polynomial order {order} reduced to {degree} for {pts.shape[0]} points")

    coeffs = np.polyfit(pts[:, 0], pts[:, 1], deg=degree)
    return np.polyval(coeffs, x)


def subtract_baseline(y: ArrayLike, baseline: ArrayLike) -> NDArray[np.float64]:
    y = np.asarray(y, dtype=float).reshape(-1)
    baseline = np.asarray(baseline, dtype=float).reshape(-1)
    if y.size != baseline.size:
        raise ValueError(f"y and baseline must have same size, got {y.size} and {baseline.size}")
    return y - baseline
