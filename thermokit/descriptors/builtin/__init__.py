"""Descriptors of the algorithms shipped with thermokit."""

from __future__ import annotations

from typing import Optional

from ...config import EngineSettings
from ..registry import DescriptorRegistry

from . import baseline, curve_subtraction, differentiation, extrema, integration, moving_average, onset, peak_area

_MODULES = (differentiation, moving_average, baseline, extrema, curve_subtraction, integration, peak_area, onset)


def register_default_descriptors(
    registry: Optional[DescriptorRegistry] = None,
    settings: Optional[EngineSettings] = None,
) -> DescriptorRegistry:
    """Register every built-in descriptor; creates a registry if none is given."""
    registry = registry if registry is not None else DescriptorRegistry()
    for module in _MODULES:
        module.register(registry, settings)
    return registry
