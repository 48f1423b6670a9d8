from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings, default_settings
from ..descriptor import AlgorithmDescriptor
from ..parameters import DoubleConstraint, ParameterDescriptor, ParamType
from ..registry import DescriptorRegistry

NAME = "derivative_extrema"


def extrema_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    s = settings or default_settings()
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Derivative peaks and valleys",
        category="Analysis",
        parameters=(
            ParameterDescriptor(
                "threshold", "Relative threshold", ParamType.DOUBLE, default=s.extrema_threshold,
                double_constraint=DoubleConstraint(0.0, 1.0, 0.01),
                description="0.05-0.1 lenient, 0.1-0.3 standard, 0.3-0.5 strict",
            ),
        ),
        prerequisites=(keys.DERIVATIVE_CURVE,),
        produces=(keys.PEAKS, keys.VALLEYS, keys.MAX_RATE_POINT),
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(extrema_descriptor(settings))
