from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


class Extrema(NamedTuple):
    """Peaks and valleys of a derivative curve, in input order."""

    peak_x: NDArray[np.float64]
    peak_y: NDArray[np.float64]
    valley_x: NDArray[np.float64]
    valley_y: NDArray[np.float64]

    @classmethod
    def empty(cls) -> "Extrema":
        return cls(*(np.empty(0, dtype=float) for _ in range(4)))

    @property
    def peak_count(self) -> int:
        return int(self.peak_x.size)

    @property
    def valley_count(self) -> int:
        return int(self.valley_x.size)


def find_derivative_extrema(
    x: ArrayLike,
    d: ArrayLike,
    threshold: float = 0.1,
) -> Extrema:
    """Find local maxima and minima of a derivative curve.

    A sample is a peak when it is strictly greater than both neighbours and at
    least ``threshold * max(|d|)``; a valley is the mirror image. The first and
    last samples are never reported. Flat tops are not extrema.

    Args:
        x: Abscissa of the derivative samples
        d: Derivative values
        threshold: Relative height in [0, 1]

    Returns:
        Extrema with parallel coordinate arrays

    Raises:
        ValueError: If threshold is outside [0, 1] or sizes differ
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be in [0, 1], got {threshold}")

    x = np.asarray(x, dtype=float).reshape(-1)
    d = np.asarray(d, dtype=float).reshape(-1)
    if x.size != d.size:
        raise ValueError(f"x and d must have same size, got {x.size} and {d.size}")
    if d.size < 3:
        return Extrema.empty()

    limit = threshold * float(np.max(np.abs(d)))
    prev, curr, nxt = d[:-2], d[1:-1], d[2:]

    peaks = (curr > prev) & (curr > nxt) & (curr >= limit)
    valleys = (curr < prev) & (curr < nxt) & (curr <= -limit)

    inner_x = x[1:-1]
    result = Extrema(inner_x[peaks], curr[peaks], inner_x[valleys], curr[valleys])
    logger.debug(f"Found {result.peak_count} peaks and {result.valley_count} valleys "
                 f"above {threshold:.0%} of max |d|")
    return result
