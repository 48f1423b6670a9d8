from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
import scipy.ndimage

logger = logging.getLogger(__name__)


def moving_average(
    y: ArrayLike,
    window: int = 5,
    passes: int = 1,
) -> NDArray[np.float64]:
    """Apply centered moving-average smoothing with a shrinking boundary window.

    Each output sample is the mean of ``y[i - window//2 : i + window//2 + 1]``
    clipped to the sequence bounds. Near the ends the window shrinks instead of
    padding the signal, so no artificial values leak into the average. An even
    window therefore averages ``window + 1`` samples in the interior.

    Args:
        y: Input signal values
        window: Window size in samples
        passes: Number of times the filter is applied

    Returns:
        Smoothed signal array of the same length as ``y``

    Raises:
        ValueError: If y is empty or window/passes are not positive
    """
    y = np.asarray(y, dtype=float).reshape(-1)

    if y.size == 0:
        raise ValueError("Input array is empty")

    window = int(window)
    passes = int(passes)
    if window < 1:
        raise ValueError(f"Window must be >= 1, got {window}")
    if passes < 1:
        raise ValueError(f"Passes must be >= 1, got {passes}")

    half = window // 2
    if half == 0:
        return y.copy()

    size = 2 * half + 1
    if size > y.size:
        logger.warning(f"Window size {size} larger than signal length {y.size}, edges will dominate")

    # Zero padding gives the in-bounds sum; dividing by the in-bounds count
    # turns it into the clipped-window mean.
    counts = scipy.ndimage.uniform_filter1d(np.ones_like(y), size=size, mode="constant", cval=0.0)
    out = y
    for _ in range(passes):
        sums = scipy.ndimage.uniform_filter1d(out, size=size, mode="constant", cval=0.0)
        out = sums / counts
    return out
