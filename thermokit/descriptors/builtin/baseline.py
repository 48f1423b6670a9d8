from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings
from ..descriptor import AlgorithmDescriptor, PointSelectionSpec
from ..parameters import (
    EnumOption,
    IntConstraint,
    ParameterDescriptor,
    ParamType,
)
from ..registry import DescriptorRegistry

NAME = "baseline_correction"


def baseline_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Baseline correction",
        category="Preprocessing",
        parameters=(
            ParameterDescriptor(
                "method", "Method", ParamType.ENUM, default="Linear", required=True,
                enum_options=(EnumOption("Linear", "Linear"), EnumOption("Polynomial", "Polynomial")),
            ),
            ParameterDescriptor(
                "order", "Polynomial order", ParamType.INTEGER, default=2,
                int_constraint=IntConstraint(1, 6, 1),
                description="Only used by the Polynomial method",
            ),
            ParameterDescriptor("anchors", "Baseline anchors", ParamType.POINTS_ON_CHART),
        ),
        point_selection=PointSelectionSpec(
            min_count=2, max_count=-1, hint="Pick baseline reference points on the main curve",
        ),
        prerequisites=(keys.ACTIVE_CURVE,),
        produces=(keys.BASELINE_CURVE, keys.CORRECTED_CURVE),
        metadata={"output": "ReplaceCurve"},
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(baseline_descriptor(settings))
