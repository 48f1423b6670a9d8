"""Curve processing algorithms: differentiation, smoothing, noise estimation,
extrema detection, baselines, resampling, integration and onset
extrapolation.

All functions work on plain NumPy arrays so they can be used without the
descriptor/coordination layer.
"""

from .smoothing import moving_average
from .differentiation import (
    DerivativeResult,
    DerivativeAnalyzer,
    ESTIMATORS,
    dtg_derivative,
    electrochemical_derivative,
    central_difference,
    five_point_derivative,
    adaptive_derivative,
    smooth_then_differentiate,
    differentiate,
    find_max_derivative_point,
    derivative_from_dataframe,
)
from .noise import estimate_noise_ratio, select_half_window
from .extrema import Extrema, find_derivative_extrema
from .baseline import linear_baseline, polynomial_baseline, subtract_baseline
from .resampling import resample_linear
from .integration import cumulative_integral, peak_area
from .onset import LineFit, Onset, extrapolated_onset

__all__ = [
    "moving_average",
    "DerivativeResult",
    "DerivativeAnalyzer",
    "ESTIMATORS",
    "dtg_derivative",
    "electrochemical_derivative",
    "central_difference",
    "five_point_derivative",
    "adaptive_derivative",
    "smooth_then_differentiate",
    "differentiate",
    "find_max_derivative_point",
    "derivative_from_dataframe",
    "estimate_noise_ratio",
    "select_half_window",
    "Extrema",
    "find_derivative_extrema",
    "linear_baseline",
    "polynomial_baseline",
    "subtract_baseline",
    "resample_linear",
    "cumulative_integral",
    "peak_area",
    "LineFit",
    "Onset",
    "extrapolated_onset",
]
