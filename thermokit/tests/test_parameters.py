"""Pytest tests for typed parameter declarations and values."""

import math

import numpy as np
import pytest

from thermokit.descriptors.parameters import (
    DoubleConstraint,
    EnumOption,
    IntConstraint,
    ParameterDescriptor,
    ParamType,
    ParamValue,
    resolve_parameters,
)
from thermokit.errors import ValidationError


@pytest.fixture
def window_param():
    return ParameterDescriptor(
        "windowSize", "Window size", ParamType.INTEGER, default=5, required=True,
        int_constraint=IntConstraint(1, 999, 2),
    )


@pytest.fixture
def threshold_param():
    return ParameterDescriptor(
        "threshold", "Threshold", ParamType.DOUBLE, default=0.1,
        double_constraint=DoubleConstraint(0.0, 1.0, 0.01),
    )


@pytest.fixture
def method_param():
    return ParameterDescriptor(
        "method", "Method", ParamType.ENUM, default="Linear",
        enum_options=(EnumOption("Linear"), EnumOption("Polynomial")),
    )


class TestIntegerParameter:

    @pytest.mark.parametrize("value", [1, 3, 5, 7, 999, np.int64(11)])
    def test_on_step_values(self, window_param, value):
        result = window_param.validate(value)
        assert result == ParamValue(ParamType.INTEGER, int(value))

    @pytest.mark.parametrize("value", [2, 4, 998])
    def test_off_step_rejected(self, window_param, value):
        with pytest.raises(ValidationError, match="step"):
            window_param.validate(value)

    @pytest.mark.parametrize("value", [-1, 0, 1001])
    def test_out_of_range(self, window_param, value):
        with pytest.raises(ValidationError):
            window_param.validate(value)

    @pytest.mark.parametrize("value", [True, 3.0, "5", None])
    def test_wrong_type(self, window_param, value):
        with pytest.raises(ValidationError, match="integer"):
            window_param.validate(value)

    def test_step_anchored_at_minimum_without_default(self):
        param = ParameterDescriptor("n", type=ParamType.INTEGER, int_constraint=IntConstraint(2, 20, 3))
        assert param.validate(5).value == 5
        with pytest.raises(ValidationError):
            param.validate(6)


class TestDoubleParameter:

    @pytest.mark.parametrize("value", [0.0, 0.1, 0.15, 0.3, 1.0, 1])
    def test_on_step_values(self, threshold_param, value):
        assert threshold_param.validate(value).as_float() == pytest.approx(float(value))

    def test_off_step(self, threshold_param):
        with pytest.raises(ValidationError, match="step"):
            threshold_param.validate(0.155)

    @pytest.mark.parametrize("value", [-0.01, 1.5, math.inf])
    def test_out_of_range(self, threshold_param, value):
        with pytest.raises(ValidationError, match="outside"):
            threshold_param.validate(value)

    def test_bool_is_not_a_number(self, threshold_param):
        with pytest.raises(ValidationError):
            threshold_param.validate(True)

    def test_unstepped_accepts_any_value_in_range(self):
        param = ParameterDescriptor("dt", type=ParamType.DOUBLE, double_constraint=DoubleConstraint(0.0, 10.0))
        assert param.validate(3.14159).value == pytest.approx(3.14159)


class TestOtherParameterTypes:

    def test_enum(self, method_param):
        assert method_param.validate("Polynomial").as_str() == "Polynomial"
        assert method_param.enum_values == ("Linear", "Polynomial")

    def test_unknown_enum_value(self, method_param):
        with pytest.raises(ValidationError, match="not one of"):
            method_param.validate("Spline")

    def test_boolean(self):
        param = ParameterDescriptor("invert", type=ParamType.BOOLEAN, default=False)
        assert param.validate(True).as_bool() is True
        with pytest.raises(ValidationError):
            param.validate(1)

    def test_string(self):
        param = ParameterDescriptor("label", type=ParamType.STRING)
        assert param.validate("DTG").as_str() == "DTG"
        with pytest.raises(ValidationError):
            param.validate(3)

    def test_double_range(self):
        param = ParameterDescriptor(
            "range", type=ParamType.DOUBLE_RANGE, double_constraint=DoubleConstraint(0.0, 1000.0),
        )
        assert param.validate((100, 300)).as_range() == (100.0, 300.0)

    @pytest.mark.parametrize("value", [(300.0, 100.0), (0.0, 2000.0), 5.0, (1.0, "a")])
    def test_invalid_double_range(self, value):
        param = ParameterDescriptor(
            "range", type=ParamType.DOUBLE_RANGE, double_constraint=DoubleConstraint(0.0, 1000.0),
        )
        with pytest.raises(ValidationError):
            param.validate(value)

    @pytest.mark.parametrize("value", [[(0.0, 1.0)], None, ()])
    def test_points_on_chart_never_takes_a_value(self, value):
        param = ParameterDescriptor("anchors", type=ParamType.POINTS_ON_CHART)
        with pytest.raises(ValidationError, match="point selection"):
            param.validate(value)

    def test_context_key(self, window_param):
        assert window_param.context_key == "param.windowSize"


class TestParamValue:

    def test_accessor_checks_tag(self):
        value = ParamValue(ParamType.INTEGER, 5)
        assert value.as_int() == 5
        with pytest.raises(ValidationError, match="not Double"):
            value.as_float()
        with pytest.raises(ValidationError):
            value.as_str()

    def test_enum_readable_as_string(self):
        assert ParamValue(ParamType.ENUM, "dtg").as_str() == "dtg"


class TestDeclarationInvariants:

    def test_int_constraint_bounds(self):
        with pytest.raises(ValidationError):
            IntConstraint(5, 1)

    def test_int_constraint_step(self):
        with pytest.raises(ValidationError):
            IntConstraint(1, 5, 0)

    @pytest.mark.parametrize("step", [0.0, -0.1])
    def test_double_constraint_step(self, step):
        with pytest.raises(ValidationError):
            DoubleConstraint(0.0, 1.0, step)

    def test_constraint_must_match_type(self):
        with pytest.raises(ValidationError, match="int constraint"):
            ParameterDescriptor("x", type=ParamType.DOUBLE, int_constraint=IntConstraint(1, 5))

    def test_enum_needs_options(self):
        with pytest.raises(ValidationError, match="at least one option"):
            ParameterDescriptor("m", type=ParamType.ENUM)

    def test_options_only_on_enum(self):
        with pytest.raises(ValidationError):
            ParameterDescriptor("m", type=ParamType.STRING, enum_options=(EnumOption("a"),))

    def test_default_must_be_valid(self):
        with pytest.raises(ValidationError):
            ParameterDescriptor("n", type=ParamType.INTEGER, default=0, int_constraint=IntConstraint(1, 5))

    def test_points_cannot_have_default(self):
        with pytest.raises(ValidationError, match="default"):
            ParameterDescriptor("anchors", type=ParamType.POINTS_ON_CHART, default=[(0.0, 0.0)])

    def test_type_from_string_tag(self):
        param = ParameterDescriptor("n", type="Integer", default=3)
        assert param.type is ParamType.INTEGER


class TestResolveParameters:

    def test_defaults_fill_missing(self, window_param, threshold_param):
        resolved = resolve_parameters([window_param, threshold_param], {"threshold": 0.2})

        assert resolved["windowSize"].as_int() == 5
        assert resolved["threshold"].as_float() == pytest.approx(0.2)

    def test_unknown_name(self, window_param):
        with pytest.raises(ValidationError, match="Unknown parameters: bogus"):
            resolve_parameters([window_param], {"bogus": 1})

    @pytest.mark.parametrize("supplied", [["windowSize"], 5])
    def test_non_mapping_rejected(self, window_param, supplied):
        with pytest.raises(ValidationError, match="mapping"):
            resolve_parameters([window_param], supplied)

    def test_missing_required(self):
        param = ParameterDescriptor("n", type=ParamType.INTEGER, required=True)
        with pytest.raises(ValidationError, match="Required parameter 'n'"):
            resolve_parameters([param], {})

    def test_optional_without_default_is_omitted(self):
        param = ParameterDescriptor("normFactor", type=ParamType.DOUBLE)
        assert resolve_parameters([param], None) == {}

    def test_points_skipped_but_values_rejected(self, window_param):
        anchors = ParameterDescriptor("anchors", type=ParamType.POINTS_ON_CHART)
        assert set(resolve_parameters([window_param, anchors], {})) == {"windowSize"}
        with pytest.raises(ValidationError):
            resolve_parameters([window_param, anchors], {"anchors": [(1.0, 2.0)]})

    def test_invalid_value_propagates(self, window_param):
        with pytest.raises(ValidationError, match="step"):
            resolve_parameters([window_param], {"windowSize": 4})
