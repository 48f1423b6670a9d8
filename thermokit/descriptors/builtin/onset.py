from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings
from ..descriptor import AlgorithmDescriptor, PointSelectionSpec
from ..parameters import IntConstraint, ParameterDescriptor, ParamType
from ..registry import DescriptorRegistry

NAME = "temperature_extrapolation"


def onset_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    """Extrapolated onset: baseline before the event meets the inflection tangent."""
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Extrapolated onset temperature",
        category="Analysis",
        parameters=(
            ParameterDescriptor(
                "baselinePoints", "Baseline points", ParamType.INTEGER, default=20,
                int_constraint=IntConstraint(2, 500, 1),
                description="Samples before the first pick used to fit the baseline",
            ),
        ),
        point_selection=PointSelectionSpec(
            min_count=2, max_count=2,
            hint="Pick a flat point before the event and a flat point after it",
        ),
        prerequisites=(keys.ACTIVE_CURVE,),
        produces=(
            keys.ONSET_TEMPERATURE, keys.ONSET_POINT, keys.INFLECTION_POINT,
            keys.TANGENT_CURVE, keys.BASELINE_CURVE,
        ),
        metadata={"output": "AppendCurve"},
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(onset_descriptor(settings))
