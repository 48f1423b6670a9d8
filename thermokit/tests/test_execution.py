"""Pytest tests for the numeric runners behind each built-in algorithm."""

import numpy as np
import pytest

from thermokit import keys
from thermokit.algorithms import dtg_derivative
from thermokit.config import EngineSettings
from thermokit.coordination import ExecutionContext, execute, register_runner
from thermokit.coordination.execution import RUNNERS
from thermokit.curves import Curve
from thermokit.descriptors import AlgorithmDescriptor, register_default_descriptors, resolve_parameters
from thermokit.errors import ExecutionError, InsufficientDataError, ValidationError


def make_context(descriptor, params=None, **values):
    context = ExecutionContext(values)
    for name, value in resolve_parameters(descriptor.parameters, params).items():
        context[keys.param_key(name)] = value
    return context


class TestExecutionContext:

    def test_param_lookup(self, registry):
        context = make_context(registry.get("moving_average"), {"windowSize": 7})

        assert context.param("windowSize").as_int() == 7
        assert context.param_or("missing", 3) == 3
        assert sorted(context.keys_with_prefix(keys.PARAM_PREFIX)) == ["param.passes", "param.windowSize"]

    def test_missing_param(self):
        with pytest.raises(ValidationError, match="not present"):
            ExecutionContext().param("windowSize")

    def test_untagged_param(self):
        context = ExecutionContext({"param.windowSize": 7})
        with pytest.raises(ValidationError, match="does not hold"):
            context.param("windowSize")

    def test_copy_is_independent(self):
        context = ExecutionContext({"a": 1})
        clone = context.copy()
        clone["b"] = 2
        assert "b" not in context


class TestDifferentiationRunner:

    def test_dtg(self, registry, active_curve):
        descriptor = registry.get("differentiation")
        context = make_context(descriptor, {"halfWin": 10}, activeCurve=active_curve)
        results = execute(descriptor, context)

        expected = dtg_derivative(active_curve.x, active_curve.y, half_window=10, dt=0.1)
        derivative = results[keys.DERIVATIVE_CURVE]
        assert isinstance(derivative, Curve)
        np.testing.assert_allclose(derivative.y, expected.y)
        assert results[keys.DERIVATIVE_WINDOW] == 10

    @pytest.mark.parametrize("method", ["electrochemical", "central", "five_point", "adaptive",
                                        "smooth_then_differentiate"])
    def test_other_methods(self, registry, active_curve, method):
        descriptor = registry.get("differentiation")
        context = make_context(descriptor, {"method": method}, activeCurve=active_curve)
        results = execute(descriptor, context)

        assert len(results[keys.DERIVATIVE_CURVE]) > 0

    def test_norm_factor_forwarded(self, registry, active_curve):
        descriptor = registry.get("differentiation")
        default = execute(descriptor, make_context(
            descriptor, {"method": "electrochemical", "windowSize": 4}, activeCurve=active_curve))
        scaled = execute(descriptor, make_context(
            descriptor, {"method": "electrochemical", "windowSize": 4, "normFactor": 1.5}, activeCurve=active_curve))

        np.testing.assert_allclose(scaled[keys.DERIVATIVE_CURVE].y,
                                   default[keys.DERIVATIVE_CURVE].y * 1.5 / 0.75)

    def test_adaptive_bounds_come_from_parameters(self, registry):
        rng = np.random.default_rng(3)
        noisy = Curve(np.arange(300.0), rng.standard_normal(300))
        descriptor = registry.get("differentiation")

        default = execute(descriptor, make_context(descriptor, {"method": "adaptive"}, activeCurve=noisy))
        capped = execute(descriptor, make_context(
            descriptor, {"method": "adaptive", "maxHalfWin": 4}, activeCurve=noisy))

        assert default[keys.DERIVATIVE_WINDOW] == 50
        assert capped[keys.DERIVATIVE_WINDOW] == 4

    def test_adaptive_bounds_from_settings(self):
        registry = register_default_descriptors(settings=EngineSettings(max_half_window=6))
        rng = np.random.default_rng(3)
        noisy = Curve(np.arange(300.0), rng.standard_normal(300))
        descriptor = registry.get("differentiation")

        results = execute(descriptor, make_context(descriptor, {"method": "adaptive"}, activeCurve=noisy))
        assert results[keys.DERIVATIVE_WINDOW] == 6

    def test_estimator_failure_becomes_execution_error(self, registry):
        descriptor = registry.get("differentiation")
        short = Curve(np.arange(10.0), np.arange(10.0))
        context = make_context(descriptor, {"halfWin": 50}, activeCurve=short)

        with pytest.raises(ExecutionError) as excinfo:
            execute(descriptor, context)
        assert isinstance(excinfo.value.__cause__, InsufficientDataError)

    def test_tuple_curve_accepted(self, registry, tg_step):
        descriptor = registry.get("differentiation")
        context = make_context(descriptor, {"method": "central"}, activeCurve=tg_step)
        assert len(execute(descriptor, context)[keys.DERIVATIVE_CURVE]) == tg_step[0].size - 2

    def test_missing_active_curve(self, registry):
        descriptor = registry.get("differentiation")
        with pytest.raises(ExecutionError, match="activeCurve"):
            execute(descriptor, make_context(descriptor))


class TestMovingAverageRunner:

    def test_smooths_active_curve(self, registry, noisy_tg_step):
        x, noisy_y, _ = noisy_tg_step
        descriptor = registry.get("moving_average")
        context = make_context(descriptor, {"windowSize": 9, "passes": 2}, activeCurve=Curve(x, noisy_y))
        smoothed = execute(descriptor, context)[keys.SMOOTHED_CURVE]

        np.testing.assert_array_equal(smoothed.x, x)
        assert np.var(np.diff(smoothed.y)) < np.var(np.diff(noisy_y))


class TestBaselineRunner:

    def test_linear(self, registry):
        x = np.linspace(0.0, 10.0, 11)
        y = 2.0 + 0.5 * x + np.where(x == 5.0, 3.0, 0.0)
        descriptor = registry.get("baseline_correction")
        context = make_context(descriptor, activeCurve=Curve(x, y, "c1"),
                               selectedPoints=((0.0, 2.0), (10.0, 7.0)))
        results = execute(descriptor, context)

        np.testing.assert_allclose(results[keys.BASELINE_CURVE].y, 2.0 + 0.5 * x)
        np.testing.assert_allclose(results[keys.CORRECTED_CURVE].y, np.where(x == 5.0, 3.0, 0.0), atol=1e-12)
        assert results[keys.CORRECTED_CURVE].curve_id == "c1"

    def test_polynomial(self, registry):
        x = np.linspace(0.0, 10.0, 11)
        y = x ** 2
        points = [(0.0, 0.0), (5.0, 25.0), (10.0, 100.0)]
        descriptor = registry.get("baseline_correction")
        context = make_context(descriptor, {"method": "Polynomial", "order": 2},
                               activeCurve=Curve(x, y), selectedPoints=points)

        np.testing.assert_allclose(execute(descriptor, context)[keys.CORRECTED_CURVE].y, 0.0, atol=1e-8)

    def test_needs_two_points(self, registry, active_curve):
        descriptor = registry.get("baseline_correction")
        context = make_context(descriptor, activeCurve=active_curve, selectedPoints=((1.0, 1.0),))
        with pytest.raises(ExecutionError, match="at least 2 points"):
            execute(descriptor, context)


class TestExtremaRunner:

    def test_peaks_valleys_and_max_rate(self, registry, derivative_bump):
        x, d = derivative_bump
        descriptor = registry.get("derivative_extrema")
        context = make_context(descriptor, derivativeCurve=Curve(x, d))
        results = execute(descriptor, context)

        assert [px for px, _ in results[keys.PEAKS]] == [30.0]
        assert [vx for vx, _ in results[keys.VALLEYS]] == [70.0]
        assert results[keys.MAX_RATE_POINT][0] == 30.0


class TestCurveSubtractionRunner:

    def test_subtracts_reference(self, registry, inbound):
        descriptor = registry.get("curve_subtraction")
        context = make_context(descriptor, selectedCurve="blank", **inbound)
        difference = execute(descriptor, context)[keys.DIFFERENCE_CURVE]

        active = inbound[keys.ACTIVE_CURVE]
        np.testing.assert_allclose(difference.y, active.y - 1.5)

    def test_reference_on_other_grid(self, registry):
        active = Curve(np.array([0.5, 1.5, 2.5]), np.array([10.0, 10.0, 10.0]))
        reference = Curve(np.array([0.0, 1.0, 2.0, 3.0]), np.array([0.0, 1.0, 2.0, 3.0]))
        descriptor = registry.get("curve_subtraction")
        context = make_context(descriptor, activeCurve=active, curves={"ref": reference}, selectedCurve="ref")

        np.testing.assert_allclose(execute(descriptor, context)[keys.DIFFERENCE_CURVE].y, [9.5, 8.5, 7.5])

    def test_unknown_reference(self, registry, inbound):
        descriptor = registry.get("curve_subtraction")
        context = make_context(descriptor, selectedCurve="nope", **inbound)
        with pytest.raises(ExecutionError, match="nope"):
            execute(descriptor, context)


class TestIntegrationRunner:

    def test_cumulative_curve(self, registry, linear_ramp):
        x, y = linear_ramp
        descriptor = registry.get("integration")
        integral = execute(descriptor, make_context(descriptor, activeCurve=Curve(x, y)))[keys.INTEGRAL_CURVE]

        np.testing.assert_array_equal(integral.x, x)
        np.testing.assert_allclose(integral.y, 1.5 * x ** 2 + 2.0 * x, rtol=1e-10, atol=1e-10)

    def test_empty_curve(self, registry, empty_dataset):
        descriptor = registry.get("integration")
        with pytest.raises(ExecutionError, match="empty"):
            execute(descriptor, make_context(descriptor, activeCurve=Curve(*empty_dataset)))


class TestPeakAreaRunner:

    def test_area_against_chord(self, registry, sloped_peak):
        x, y, baseline = sloped_peak
        descriptor = registry.get("peak_area")
        picks = ((20.0, 2.0), (80.0, 5.0))
        context = make_context(descriptor, activeCurve=Curve(x, y), selectedPoints=picks)

        assert execute(descriptor, context)[keys.PEAK_AREA] == pytest.approx(15.0 * np.sqrt(np.pi), rel=1e-4)

    def test_zero_baseline(self, registry):
        descriptor = registry.get("peak_area")
        context = make_context(descriptor, {"baseline": "zero"},
                               activeCurve=Curve(np.arange(5.0), np.ones(5)),
                               selectedPoints=((1.0, 1.0), (3.0, 1.0)))

        assert execute(descriptor, context)[keys.PEAK_AREA] == pytest.approx(2.0)

    def test_needs_two_points(self, registry, active_curve):
        descriptor = registry.get("peak_area")
        context = make_context(descriptor, activeCurve=active_curve, selectedPoints=((1.0, 1.0),))
        with pytest.raises(ExecutionError, match="exactly 2 points"):
            execute(descriptor, context)


class TestOnsetRunner:

    def test_onset_and_construction_lines(self, registry, ramp_step):
        x, y = ramp_step
        descriptor = registry.get("temperature_extrapolation")
        context = make_context(descriptor, activeCurve=Curve(x, y), selectedPoints=((40.0, 10.0), (70.0, -10.0)))
        results = execute(descriptor, context)

        assert results[keys.ONSET_TEMPERATURE] == pytest.approx(50.0)
        assert results[keys.ONSET_POINT] == pytest.approx((50.0, 10.0))
        assert 50.0 < results[keys.INFLECTION_POINT][0] < 60.0
        tangent = results[keys.TANGENT_CURVE]
        assert tangent.x[0] <= 40.0 and tangent.x[-1] >= 80.0
        np.testing.assert_allclose(results[keys.BASELINE_CURVE].y, 10.0, atol=1e-8)

    def test_parallel_lines_fail(self, registry, linear_ramp):
        x, y = linear_ramp
        descriptor = registry.get("temperature_extrapolation")
        context = make_context(descriptor, activeCurve=Curve(x, y), selectedPoints=((3.0, 11.0), (8.0, 26.0)))
        with pytest.raises(ExecutionError, match="parallel"):
            execute(descriptor, context)


class TestDispatch:

    def test_unknown_algorithm(self):
        with pytest.raises(ExecutionError, match="No runner"):
            execute(AlgorithmDescriptor("unregistered"), ExecutionContext())

    def test_register_runner(self):
        @register_runner("double_it")
        def run_double(context):
            return {"out": context["in"] * 2}

        try:
            assert execute(AlgorithmDescriptor("double_it"), ExecutionContext({"in": 4})) == {"out": 8}
        finally:
            RUNNERS.pop("double_it")

    def test_value_error_wrapped(self):
        @register_runner("broken")
        def run_broken(context):
            raise ValueError("bad input")

        try:
            with pytest.raises(ExecutionError, match="broken: bad input"):
                execute(AlgorithmDescriptor("broken"), ExecutionContext())
        finally:
            RUNNERS.pop("broken")
