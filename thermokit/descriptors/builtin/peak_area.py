from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings
from ..descriptor import AlgorithmDescriptor, PointSelectionSpec
from ..parameters import EnumOption, ParameterDescriptor, ParamType
from ..registry import DescriptorRegistry

NAME = "peak_area"


def peak_area_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Peak area",
        category="Analysis",
        parameters=(
            ParameterDescriptor(
                "baseline", "Baseline", ParamType.ENUM, default="linear",
                enum_options=(EnumOption("linear", "Line through the picks"), EnumOption("zero", "Zero")),
            ),
        ),
        point_selection=PointSelectionSpec(
            min_count=2, max_count=2, hint="Pick the start and end of the peak",
        ),
        prerequisites=(keys.ACTIVE_CURVE,),
        produces=(keys.PEAK_AREA,),
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(peak_area_descriptor(settings))
