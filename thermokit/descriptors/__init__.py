"""Algorithm descriptors: typed parameters, interaction metadata and the registry."""

from .parameters import (
    DoubleConstraint,
    EnumOption,
    IntConstraint,
    ParameterDescriptor,
    ParamType,
    ParamValue,
    resolve_parameters,
)
from .descriptor import (
    DEFAULT_INTERACTION_ORDER,
    AlgorithmDescriptor,
    OutputPolicy,
    PointSelectionSpec,
    Stage,
)
from .registry import DescriptorRegistry
from .builtin import register_default_descriptors

__all__ = [
    "DoubleConstraint",
    "EnumOption",
    "IntConstraint",
    "ParameterDescriptor",
    "ParamType",
    "ParamValue",
    "resolve_parameters",
    "DEFAULT_INTERACTION_ORDER",
    "AlgorithmDescriptor",
    "OutputPolicy",
    "PointSelectionSpec",
    "Stage",
    "DescriptorRegistry",
    "register_default_descriptors",
]
