from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings
from ..descriptor import AlgorithmDescriptor, Stage
from ..registry import DescriptorRegistry

NAME = "curve_subtraction"


def curve_subtraction_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    """Active curve minus a user-selected reference curve (e.g. a blank run)."""
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Subtract reference curve",
        category="Preprocessing",
        needs_curve_selection=True,
        interaction_order=(Stage.CURVE,),
        prerequisites=(keys.ACTIVE_CURVE, keys.CURVES),
        produces=(keys.DIFFERENCE_CURVE,),
        metadata={"output": "AppendCurve"},
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(curve_subtraction_descriptor(settings))
