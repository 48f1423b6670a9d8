from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np

from .. import keys
from ..errors import ValidationError


class ParamType(str, Enum):
    INTEGER = "Integer"
    DOUBLE = "Double"
    BOOLEAN = "Boolean"
    STRING = "String"
    ENUM = "Enum"
    DOUBLE_RANGE = "DoubleRange"
    # Placeholder filled by the point-selection stage, never by a form field
    POINTS_ON_CHART = "PointsOnChart"


@dataclass(frozen=True)
class IntConstraint:
    min: float = -math.inf
    max: float = math.inf
    step: int = 1

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValidationError(f"IntConstraint min {self.min} > max {self.max}")
        if int(self.step) < 1:
            raise ValidationError(f"IntConstraint step must be >= 1, got {self.step}")


@dataclass(frozen=True)
class DoubleConstraint:
    min: float = -math.inf
    max: float = math.inf
    step: Optional[float] = None  # None: any value in range
    unit: str = ""

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValidationError(f"DoubleConstraint min {self.min} > max {self.max}")
        if self.step is not None and not self.step > 0:
            raise ValidationError(f"DoubleConstraint step must be positive, got {self.step}")


@dataclass(frozen=True)
class EnumOption:
    value: str
    label: str = ""


@dataclass(frozen=True)
class ParamValue:
    """A parameter value tagged with its ParamType.

    Accessors check the tag so a value can never be read as another type.
    """

    type: ParamType
    value: Any

    def _expect(self, expected: ParamType) -> Any:
        if self.type is not expected:
            raise ValidationError(f"Parameter holds {self.type.value}, not {expected.value}")
        return self.value

    def as_int(self) -> int:
        return self._expect(ParamType.INTEGER)

    def as_float(self) -> float:
        return self._expect(ParamType.DOUBLE)

    def as_bool(self) -> bool:
        return self._expect(ParamType.BOOLEAN)

    def as_str(self) -> str:
        if self.type is ParamType.ENUM:
            return self.value
        return self._expect(ParamType.STRING)

    def as_range(self) -> Tuple[float, float]:
        return self._expect(ParamType.DOUBLE_RANGE)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, (bool, np.bool_))


def _on_step(value: float, anchor: Optional[float], step: Optional[float], tolerant: bool) -> bool:
    if step is None or anchor is None or not math.isfinite(anchor):
        return True
    if not tolerant:
        return (int(value) - int(anchor)) % int(step) == 0
    count = (value - anchor) / step
    return bool(np.isclose(count, round(count), rtol=1e-9, atol=1e-6))


@dataclass(frozen=True)
class ParameterDescriptor:
    """Declaration of one typed, constrained algorithm parameter.

    ``name`` is unique within an algorithm and surfaces in the execution
    context as ``param.<name>``.
    """

    name: str
    label: str = ""
    type: ParamType = ParamType.STRING
    default: Any = None
    required: bool = False
    int_constraint: Optional[IntConstraint] = None
    double_constraint: Optional[DoubleConstraint] = None
    enum_options: Tuple[EnumOption, ...] = field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("Parameter name must not be empty")
        object.__setattr__(self, "type", ParamType(self.type))
        object.__setattr__(self, "enum_options", tuple(self.enum_options))

        kind = self.type
        if self.int_constraint is not None and kind is not ParamType.INTEGER:
            raise ValidationError(f"{self.name}: int constraint on a {kind.value} parameter")
        if self.double_constraint is not None and kind not in (ParamType.DOUBLE, ParamType.DOUBLE_RANGE):
            raise ValidationError(f"{self.name}: double constraint on a {kind.value} parameter")
        if self.enum_options and kind is not ParamType.ENUM:
            raise ValidationError(f"{self.name}: enum options on a {kind.value} parameter")
        if kind is ParamType.ENUM and not self.enum_options:
            raise ValidationError(f"{self.name}: Enum parameter needs at least one option")
        if kind is ParamType.POINTS_ON_CHART and self.default is not None:
            raise ValidationError(f"{self.name}: PointsOnChart parameter cannot carry a default")

        if self.default is not None:
            self.validate(self.default)

    @property
    def context_key(self) -> str:
        return keys.param_key(self.name)

    @property
    def enum_values(self) -> Tuple[str, ...]:
        return tuple(opt.value for opt in self.enum_options)

    def _anchor(self, lower: float) -> Optional[float]:
        if self.default is not None:
            return float(self.default)
        return lower if math.isfinite(lower) else None

    def validate(self, value: Any) -> ParamValue:
        """Check ``value`` against type and constraint.

        Returns:
            The value wrapped in a ParamValue (doubles coerced to float)

        Raises:
            ValidationError: If the value does not fit this parameter
        """
        kind = self.type
        if kind is ParamType.POINTS_ON_CHART:
            raise ValidationError(f"{self.name}: point parameters are filled by point selection, not by value")

        if kind is ParamType.INTEGER:
            if not isinstance(value, (int, np.integer)) or isinstance(value, (bool, np.bool_)):
                raise ValidationError(f"{self.name}: expected an integer, got {value!r}")
            value = int(value)
            c = self.int_constraint or IntConstraint()
            if not c.min <= value <= c.max:
                raise ValidationError(f"{self.name}: {value} outside [{c.min}, {c.max}]")
            if not _on_step(value, self._anchor(c.min), c.step, tolerant=False):
                raise ValidationError(f"{self.name}: {value} is not on step {c.step}")
            return ParamValue(kind, value)

        if kind is ParamType.DOUBLE:
            if not _is_number(value):
                raise ValidationError(f"{self.name}: expected a number, got {value!r}")
            value = float(value)
            c = self.double_constraint or DoubleConstraint()
            if not c.min <= value <= c.max:
                raise ValidationError(f"{self.name}: {value} outside [{c.min}, {c.max}]")
            if not _on_step(value, self._anchor(c.min), c.step, tolerant=True):
                raise ValidationError(f"{self.name}: {value} is not on step {c.step}")
            return ParamValue(kind, value)

        if kind is ParamType.DOUBLE_RANGE:
            try:
                lo, hi = value
            except (TypeError, ValueError):
                raise ValidationError(f"{self.name}: expected a (min, max) pair, got {value!r}") from None
            if not (_is_number(lo) and _is_number(hi)):
                raise ValidationError(f"{self.name}: range bounds must be numbers, got {value!r}")
            lo, hi = float(lo), float(hi)
            if lo > hi:
                raise ValidationError(f"{self.name}: range lower bound {lo} > upper bound {hi}")
            c = self.double_constraint or DoubleConstraint()
            if lo < c.min or hi > c.max:
                raise ValidationError(f"{self.name}: range ({lo}, {hi}) outside [{c.min}, {c.max}]")
            return ParamValue(kind, (lo, hi))

        if kind is ParamType.ENUM:
            if value not in self.enum_values:
                raise ValidationError(f"{self.name}: {value!r} is not one of {list(self.enum_values)}")
            return ParamValue(kind, value)

        if kind is ParamType.BOOLEAN:
            if not isinstance(value, (bool, np.bool_)):
                raise ValidationError(f"{self.name}: expected a boolean, got {value!r}")
            return ParamValue(kind, bool(value))

        if not isinstance(value, str):
            raise ValidationError(f"{self.name}: expected a string, got {value!r}")
        return ParamValue(kind, value)


def resolve_parameters(
    parameters: Iterable[ParameterDescriptor],
    supplied: Optional[Mapping[str, Any]] = None,
) -> Dict[str, ParamValue]:
    """Validate supplied values against declarations, falling back to defaults.

    PointsOnChart placeholders are skipped. Optional parameters with neither a
    supplied value nor a default are left out of the result.

    Raises:
        ValidationError: On a non-mapping input, an unknown name, an invalid
            value, or a missing required parameter
    """
    try:
        supplied = dict(supplied or {})
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Parameter values must be a name -> value mapping, got {supplied!r}") from e
    declared = {p.name: p for p in parameters}

    unknown = sorted(set(supplied) - set(declared))
    if unknown:
        raise ValidationError(f"Unknown parameters: {', '.join(unknown)}")

    resolved: Dict[str, ParamValue] = {}
    for name, param in declared.items():
        if param.type is ParamType.POINTS_ON_CHART:
            if name in supplied:
                param.validate(supplied[name])  # always raises
            continue
        if name in supplied and supplied[name] is not None:
            resolved[name] = param.validate(supplied[name])
        elif param.default is not None:
            resolved[name] = param.validate(param.default)
        elif param.required:
            raise ValidationError(f"Required parameter '{name}' is missing")
    return resolved
