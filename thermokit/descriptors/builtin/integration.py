from __future__ import annotations

from typing import Optional

from ... import keys
from ...config import EngineSettings
from ..descriptor import AlgorithmDescriptor
from ..registry import DescriptorRegistry

NAME = "integration"


def integration_descriptor(settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    """Running trapezoidal integral of the active curve; needs no input."""
    return AlgorithmDescriptor(
        name=NAME,
        display_name="Integration",
        category="Analysis",
        prerequisites=(keys.ACTIVE_CURVE,),
        produces=(keys.INTEGRAL_CURVE,),
        metadata={"output": "AppendCurve", "method": "Trapezoidal"},
    )


def register(registry: DescriptorRegistry, settings: Optional[EngineSettings] = None) -> AlgorithmDescriptor:
    return registry.register(integration_descriptor(settings))
