"""Numeric runners invoked by the coordinator once a context is ready.

A runner reads its inputs from the :class:`ExecutionContext` and returns a
mapping whose keys cover the descriptor's ``produces`` list. Runners are looked
up by algorithm name, the same name the descriptor is registered under.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Tuple

import numpy as np

from .. import keys
from ..algorithms import (
    cumulative_integral,
    differentiate,
    extrapolated_onset,
    find_derivative_extrema,
    find_max_derivative_point,
    linear_baseline,
    moving_average,
    peak_area,
    polynomial_baseline,
    resample_linear,
    subtract_baseline,
)
from ..curves import Curve
from ..descriptors.descriptor import AlgorithmDescriptor
from ..errors import ExecutionError
from .context import ExecutionContext

logger = logging.getLogger(__name__)

Runner = Callable[[ExecutionContext], Dict[str, Any]]

RUNNERS: Dict[str, Runner] = {}


def register_runner(name: str) -> Callable[[Runner], Runner]:
    """Decorator binding a runner to an algorithm name (last registration wins)."""

    def decorator(func: Runner) -> Runner:
        RUNNERS[name] = func
        return func

    return decorator


def execute(descriptor: AlgorithmDescriptor, context: ExecutionContext) -> Dict[str, Any]:
    """Run the algorithm described by ``descriptor`` on ``context``.

    Raises:
        ExecutionError: If no runner exists or the runner fails
    """
    runner = RUNNERS.get(descriptor.name)
    if runner is None:
        raise ExecutionError(f"No runner registered for algorithm '{descriptor.name}'")
    try:
        return runner(context)
    except ValueError as e:
        raise ExecutionError(f"{descriptor.name}: {e}") from e


def _as_curve(value: Any, key: str) -> Curve:
    if isinstance(value, Curve):
        return value
    if value is None:
        raise ExecutionError(f"Context has no '{key}'")
    x, y = value
    return Curve.from_arrays(x, y)


def _active_curve(context: ExecutionContext) -> Curve:
    return _as_curve(context.get(keys.ACTIVE_CURVE), keys.ACTIVE_CURVE)


@register_runner("differentiation")
def run_differentiation(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    method = context.param("method").as_str()

    options: Dict[str, Any] = {}
    if method == "dtg":
        options = {"half_window": context.param("halfWin").as_int(), "dt": context.param("dt").as_float()}
    elif method == "electrochemical":
        options = {"window_size": context.param("windowSize").as_int(),
                   "norm_factor": context.param_or("normFactor")}
    elif method == "adaptive":
        options = {"dt": context.param("dt").as_float(),
                   "min_half_window": context.param("minHalfWin").as_int(),
                   "max_half_window": context.param("maxHalfWin").as_int(),
                   "low_ratio": context.param("lowRatio").as_float(),
                   "high_ratio": context.param("highRatio").as_float()}
    elif method == "smooth_then_differentiate":
        options = {"smooth_window": context.param("smoothWindow").as_int()}

    result = differentiate(curve.x, curve.y, method=method, **options)
    if not result:
        raise ExecutionError(f"differentiation ({method}) failed: {result.error}") from result.error

    return {
        keys.DERIVATIVE_CURVE: result.as_curve(label=f"d/dx {curve.label}".strip()),
        keys.DERIVATIVE_WINDOW: result.window,
    }


@register_runner("moving_average")
def run_moving_average(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    window = context.param("windowSize").as_int()
    passes = context.param("passes").as_int()
    smoothed = moving_average(curve.y, window=window, passes=passes)
    logger.debug(f"Moving average: window {window}, {passes} pass(es), {len(curve)} points")
    return {keys.SMOOTHED_CURVE: Curve(curve.x, smoothed, label="smoothed")}


@register_runner("baseline_correction")
def run_baseline_correction(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    points = list(context.get(keys.SELECTED_POINTS) or ())
    if len(points) < 2:
        raise ExecutionError(f"Baseline correction needs at least 2 points, got {len(points)}")

    method = context.param("method").as_str()
    if method == "Polynomial":
        baseline = polynomial_baseline(curve.x, points, order=context.param("order").as_int())
    else:
        if len(points) > 2:
            logger.warning(f"Linear baseline uses the first 2 of {len(points)} picked points")
        baseline = linear_baseline(curve.x, points[0], points[1])

    corrected = subtract_baseline(curve.y, baseline)
    return {
        keys.BASELINE_CURVE: Curve(curve.x, baseline, label="baseline"),
        keys.CORRECTED_CURVE: Curve(curve.x, corrected, curve.curve_id, curve.label),
    }


@register_runner("derivative_extrema")
def run_derivative_extrema(context: ExecutionContext) -> Dict[str, Any]:
    derivative = _as_curve(context.get(keys.DERIVATIVE_CURVE), keys.DERIVATIVE_CURVE)
    threshold = context.param("threshold").as_float()

    extrema = find_derivative_extrema(derivative.x, derivative.y, threshold)
    return {
        keys.PEAKS: list(zip(extrema.peak_x.tolist(), extrema.peak_y.tolist())),
        keys.VALLEYS: list(zip(extrema.valley_x.tolist(), extrema.valley_y.tolist())),
        keys.MAX_RATE_POINT: find_max_derivative_point(derivative.x, derivative.y),
    }


@register_runner("curve_subtraction")
def run_curve_subtraction(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    reference_id = context.get(keys.SELECTED_CURVE)
    curves: Mapping[str, Any] = context.get(keys.CURVES) or {}
    if reference_id not in curves:
        raise ExecutionError(f"Reference curve '{reference_id}' is not available")

    reference = _as_curve(curves[reference_id], reference_id)
    resampled = resample_linear(reference.x, reference.y, curve.x)
    difference = curve.y - resampled
    if not np.all(np.isfinite(difference)):
        logger.warning("Difference curve contains non-finite values")
    return {keys.DIFFERENCE_CURVE: Curve(curve.x, difference, label=f"{curve.label} - {reference.label}".strip(" -"))}


@register_runner("integration")
def run_integration(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    integral = cumulative_integral(curve.x, curve.y)
    return {keys.INTEGRAL_CURVE: Curve(curve.x, integral, label=f"integral {curve.label}".strip())}


def _two_picks(context: ExecutionContext, what: str) -> List[Tuple[float, float]]:
    points = list(context.get(keys.SELECTED_POINTS) or ())
    if len(points) != 2:
        raise ExecutionError(f"{what} needs exactly 2 points, got {len(points)}")
    return points


@register_runner("peak_area")
def run_peak_area(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    p1, p2 = _two_picks(context, "Peak area")
    area = peak_area(curve.x, curve.y, p1, p2, baseline=context.param("baseline").as_str())
    return {keys.PEAK_AREA: area}


@register_runner("temperature_extrapolation")
def run_temperature_extrapolation(context: ExecutionContext) -> Dict[str, Any]:
    curve = _active_curve(context)
    p1, p2 = _two_picks(context, "Onset extrapolation")
    onset = extrapolated_onset(curve.x, curve.y, p1[0], p2[0],
                               baseline_points=context.param("baselinePoints").as_int())

    # Construction lines reach past the onset and the picks so they cross on screen
    right = max(p1[0], p2[0])
    tangent_x = np.array([min(onset.inflection_x - 30.0, onset.onset_x - 10.0),
                          max(onset.inflection_x + 30.0, right + 10.0)])
    left = min(p1[0], p2[0])
    baseline_x = np.array([left - 30.0, max(onset.onset_x + 10.0, left + 30.0)])
    return {
        keys.ONSET_TEMPERATURE: onset.onset_x,
        keys.ONSET_POINT: (onset.onset_x, onset.onset_y),
        keys.INFLECTION_POINT: (onset.inflection_x, onset.inflection_y),
        keys.TANGENT_CURVE: Curve(tangent_x, onset.tangent(tangent_x), label="tangent"),
        keys.BASELINE_CURVE: Curve(baseline_x, onset.baseline(baseline_x), label="baseline"),
    }
