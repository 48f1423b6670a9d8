from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from ..errors import ValidationError
from .parameters import ParameterDescriptor, ParamType


class Stage(str, Enum):
    """One unit of user input the coordinator can request."""

    PARAMETERS = "parameters"
    POINTS = "points"
    CURVE = "curve"


DEFAULT_INTERACTION_ORDER: Tuple[Stage, ...] = (Stage.PARAMETERS, Stage.POINTS, Stage.CURVE)


class OutputPolicy(str, Enum):
    """How a result consumer should treat a produced curve."""

    APPEND_CURVE = "AppendCurve"
    REPLACE_CURVE = "ReplaceCurve"


@dataclass(frozen=True)
class PointSelectionSpec:
    min_count: int = 1
    max_count: int = 1  # -1: unbounded
    hint: str = ""

    def __post_init__(self) -> None:
        if self.min_count < 0:
            raise ValidationError(f"min_count must be >= 0, got {self.min_count}")
        if self.max_count >= 0 and self.max_count < self.min_count:
            raise ValidationError(f"max_count {self.max_count} < min_count {self.min_count}")
        if self.max_count < -1:
            raise ValidationError(f"max_count must be >= -1, got {self.max_count}")

    @property
    def unbounded(self) -> bool:
        return self.max_count < 0

    def accepts(self, count: int) -> bool:
        return count >= self.min_count and (self.unbounded or count <= self.max_count)


@dataclass(frozen=True, eq=False)
class AlgorithmDescriptor:
    """Declarative description of what an algorithm needs and produces.

    Built once at registration time and never mutated afterwards.
    """

    name: str
    display_name: str = ""
    category: str = ""
    parameters: Tuple[ParameterDescriptor, ...] = field(default_factory=tuple)
    point_selection: Optional[PointSelectionSpec] = None
    needs_curve_selection: bool = False
    interaction_order: Tuple[Stage, ...] = field(default_factory=tuple)
    prerequisites: Tuple[str, ...] = field(default_factory=tuple)
    produces: Tuple[str, ...] = field(default_factory=tuple)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("Algorithm name must not be empty")

        params = tuple(self.parameters)
        names = [p.name for p in params]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValidationError(f"{self.name}: duplicate parameter names {duplicates}")

        order = []
        for tag in self.interaction_order:
            try:
                order.append(Stage(tag))
            except ValueError:
                raise ValidationError(f"{self.name}: unknown interaction stage {tag!r}") from None

        object.__setattr__(self, "display_name", self.display_name or self.name)
        object.__setattr__(self, "parameters", params)
        object.__setattr__(self, "interaction_order", tuple(order))
        object.__setattr__(self, "prerequisites", tuple(self.prerequisites))
        object.__setattr__(self, "produces", tuple(self.produces))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        # Reject an unknown "output" value at registration time
        _ = self.output_policy

    @property
    def form_parameters(self) -> Tuple[ParameterDescriptor, ...]:
        """Parameters collected by the parameter stage (no point placeholders)."""
        return tuple(p for p in self.parameters if p.type is not ParamType.POINTS_ON_CHART)

    @property
    def output_policy(self) -> Optional[OutputPolicy]:
        value = self.metadata.get("output")
        if value is None:
            return None
        try:
            return OutputPolicy(value)
        except ValueError:
            raise ValidationError(f"{self.name}: unknown output policy {value!r}") from None

    def requires(self, stage: Stage) -> bool:
        if stage is Stage.PARAMETERS:
            return bool(self.form_parameters)
        if stage is Stage.POINTS:
            return self.point_selection is not None
        return self.needs_curve_selection

    def effective_interaction_order(self) -> Tuple[Stage, ...]:
        """Declared order (or the default one) restricted to required stages."""
        order = self.interaction_order or DEFAULT_INTERACTION_ORDER
        seen = []
        for stage in order:
            if self.requires(stage) and stage not in seen:
                seen.append(stage)
        return tuple(seen)
