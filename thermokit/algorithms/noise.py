"""Noise estimation and adaptive window selection for the DTG estimator.

The noise level is measured on second differences, which cancel any locally
linear trend (the bulk of a mass-loss step) and leave mostly sample-to-sample
scatter. For white noise of standard deviation sigma the second difference has
variance ``6 * sigma**2``, so a robust spread of the second differences divided
by ``sqrt(6)`` estimates sigma. Dividing by the signal range makes the figure
independent of the instrument's units.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import ArrayLike
from scipy.stats import median_abs_deviation

from ..errors import InsufficientDataError, PreconditionViolation, ValidationError

logger = logging.getLogger(__name__)


def estimate_noise_ratio(y: ArrayLike) -> float:
    """Estimate the noise-to-signal ratio of a sampled signal.

    Args:
        y: Signal values in acquisition order

    Returns:
        Estimated noise standard deviation divided by the peak-to-peak range
        (0.0 for a constant signal)

    Raises:
        InsufficientDataError: If fewer than 3 samples are given
        PreconditionViolation: If the spread of the second differences is not
            finite (overflowing or non-finite samples)
    """
    y = np.asarray(y, dtype=float).reshape(-1)
    if y.size < 3:
        raise InsufficientDataError(f"Noise estimation needs at least 3 points, got {y.size}")

    span = float(np.ptp(y))
    if span == 0.0 or not np.isfinite(span):
        return 0.0

    second = np.diff(y, n=2)
    sigma = float(median_abs_deviation(second, scale="normal")) / math.sqrt(6.0)
    if not math.isfinite(sigma):
        raise PreconditionViolation(f"Noise level is not finite ({sigma}); the signal overflows or holds non-finite values")
    return sigma / span


def select_half_window(
    noise_ratio: float,
    n: int,
    min_half_window: int = 1,
    max_half_window: int = 50,
    low_ratio: float = 1e-4,
    high_ratio: float = 1e-2,
) -> int:
    """Map a noise ratio onto a DTG half window.

    Ratios at or below ``low_ratio`` get ``min_half_window``, ratios at or above
    ``high_ratio`` get ``max_half_window``; in between the mapping is linear in
    log10(ratio). The result is then capped so that ``2*h + 1 <= n``.

    Raises:
        ValidationError: If the bounds are inconsistent or noise_ratio is not finite
        InsufficientDataError: If n cannot hold even ``min_half_window``
    """
    if not math.isfinite(noise_ratio):
        raise ValidationError(f"noise_ratio must be finite, got {noise_ratio}")
    if min_half_window < 1:
        raise ValidationError(f"min_half_window must be >= 1, got {min_half_window}")
    if max_half_window < min_half_window:
        raise ValidationError(
            f"max_half_window {max_half_window} must be >= min_half_window {min_half_window}"
        )
    if not 0 < low_ratio < high_ratio:
        raise ValidationError(f"Need 0 < low_ratio < high_ratio, got {low_ratio} and {high_ratio}")

    if noise_ratio <= low_ratio:
        frac = 0.0
    elif noise_ratio >= high_ratio:
        frac = 1.0
    else:
        frac = (math.log10(noise_ratio) - math.log10(low_ratio)) / (
            math.log10(high_ratio) - math.log10(low_ratio)
        )

    half_window = int(round(min_half_window + frac * (max_half_window - min_half_window)))

    limit = (int(n) - 1) // 2
    if limit < min_half_window:
        raise InsufficientDataError(
            f"{n} points cannot hold the minimum half window {min_half_window}"
        )
    if half_window > limit:
        logger.debug(f"Half window {half_window} capped to {limit} by sequence length {n}")
        half_window = limit
    return half_window
