from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings, default_settings
from ..descriptor import AlgorithmDescriptor
from ..parameters import IntConstraint, ParameterDescriptor, ParamType
from ..registry import DescriptorRegistry

NAME = "moving_average"


def moving_average_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    s = settings or default_settings()
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Moving average filter",
        category="Preprocessing",
        parameters=(
            ParameterDescriptor(
                "windowSize", "Window size", ParamType.INTEGER, default=s.smoothing_window, required=True,
                int_constraint=IntConstraint(1, 999, 2),
                description="Odd windows keep the average centered",
            ),
            ParameterDescriptor(
                "passes", "Passes", ParamType.INTEGER, default=s.smoothing_passes,
                int_constraint=IntConstraint(1, 10, 1),
            ),
        ),
        prerequisites=(keys.ACTIVE_CURVE,),
        produces=(keys.SMOOTHED_CURVE,),
        metadata={"output": "AppendCurve"},
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(moving_average_descriptor(settings))
