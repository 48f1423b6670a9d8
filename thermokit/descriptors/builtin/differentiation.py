from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings, default_settings
from ..descriptor import AlgorithmDescriptor
from ..parameters import (
    DoubleConstraint,
    EnumOption,
    IntConstraint,
    ParameterDescriptor,
    ParamType,
)
from ..registry import DescriptorRegistry

NAME = "differentiation"


def differentiation_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    """Derivative curve (DTG by default) of the active curve."""
    s = settings or default_settings()
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Differentiation",
        category="Analysis",
        parameters=(
            ParameterDescriptor(
                "method", "Method", ParamType.ENUM, default="dtg", required=True,
                enum_options=(
                    EnumOption("dtg", "DTG windowed difference"),
                    EnumOption("electrochemical", "Asymmetric window"),
                    EnumOption("central", "Central difference"),
                    EnumOption("five_point", "Five-point stencil"),
                    EnumOption("adaptive", "Adaptive window"),
                    EnumOption("smooth_then_differentiate", "Smooth, then differentiate"),
                ),
            ),
            ParameterDescriptor(
                "halfWin", "Half window", ParamType.INTEGER, default=s.half_window,
                int_constraint=IntConstraint(1, 500, 1),
                description="Samples on each side of the center (DTG)",
            ),
            ParameterDescriptor(
                "dt", "Time step", ParamType.DOUBLE, default=s.dt,
                double_constraint=DoubleConstraint(1e-6, 1e3, unit="s"),
            ),
            ParameterDescriptor(
                "windowSize", "Window size", ParamType.INTEGER, default=s.electrochemical_window,
                int_constraint=IntConstraint(1, 500, 1),
                description="Samples per window (asymmetric estimator)",
            ),
            ParameterDescriptor(
                "normFactor", "Normalization", ParamType.DOUBLE,
                double_constraint=DoubleConstraint(0.0, 10.0),
                description="Defaults to (windowSize - 1) / windowSize",
            ),
            ParameterDescriptor(
                "smoothWindow", "Smoothing window", ParamType.INTEGER, default=s.smooth_window,
                int_constraint=IntConstraint(1, 999, 1),
            ),
            ParameterDescriptor(
                "minHalfWin", "Minimum half window", ParamType.INTEGER, default=s.min_half_window,
                int_constraint=IntConstraint(1, 500, 1),
                description="Adaptive method: half window used for the cleanest signals",
            ),
            ParameterDescriptor(
                "maxHalfWin", "Maximum half window", ParamType.INTEGER, default=s.max_half_window,
                int_constraint=IntConstraint(1, 500, 1),
                description="Adaptive method: half window used for the noisiest signals",
            ),
            ParameterDescriptor(
                "lowRatio", "Low noise ratio", ParamType.DOUBLE, default=s.low_ratio,
                double_constraint=DoubleConstraint(1e-9, 1.0),
            ),
            ParameterDescriptor(
                "highRatio", "High noise ratio", ParamType.DOUBLE, default=s.high_ratio,
                double_constraint=DoubleConstraint(1e-9, 1.0),
            ),
        ),
        prerequisites=(keys.ACTIVE_CURVE,),
        produces=(keys.DERIVATIVE_CURVE, keys.DERIVATIVE_WINDOW),
        metadata={"output": "AppendCurve", "label": "DTG", "unit": "mg/min"},
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(differentiation_descriptor(settings))
