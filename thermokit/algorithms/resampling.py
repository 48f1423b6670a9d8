"""Linear resampling of one curve onto another curve's x grid.

Used when a reference curve (a blank run, a second specimen) has to be
compared sample by sample with the active curve. Only the linear interpolant
is offered: reference curves are usually sampled as densely as the active one,
and a higher-order interpolant would invent structure in the noise.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

Extrapolation = Literal['const', 'nan']


def _as_1d_float(a: ArrayLike, name: str) -> NDArray[np.float64]:
    arr = np.asarray(a, dtype=float).reshape(-1)
    if arr.size == 0:
        raise ValueError(f"{name} is empty")
    return arr


def resample_linear(
    x: ArrayLike,
    y: ArrayLike,
    x_new: ArrayLike,
    *,
    extrapolation: Extrapolation = 'const',
) -> NDArray[np.float64]:
    """Evaluate the piecewise-linear interpolant of (x, y) at ``x_new``.

    Outside the source range the end values are held ('const') or NaN is
    returned ('nan').

    Raises:
        ValueError: If sizes differ, inputs are empty or x is not strictly
            increasing
    """
    x = _as_1d_float(x, 'x')
    y = _as_1d_float(y, 'y')
    x_new = _as_1d_float(x_new, 'x_new')

    if x.size != y.size:
        raise ValueError(f"x and y must have same size, got {x.size} and {y.size}")
    if not np.all(np.diff(x) > 0):
        raise ValueError("x must be strictly increasing (no duplicates)")

    if extrapolation == 'const':
        return np.interp(x_new, x, y, left=y[0], right=y[-1])
    if extrapolation == 'nan':
        return np.interp(x_new, x, y, left=np.nan, right=np.nan)
    raise ValueError(f"Unknown extrapolation mode {extrapolation!r}")
