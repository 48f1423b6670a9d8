from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, MutableMapping, Optional

from .. import keys
from ..descriptors.parameters import ParamValue
from ..errors import ValidationError


class ExecutionContext(MutableMapping[str, Any]):
    """String-keyed values handed to an algorithm run.

    Parameter values live under ``param.<name>`` as :class:`ParamValue`;
    see :mod:`thermokit.keys` for the other conventions.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ExecutionContext({sorted(self._values)})"

    def param(self, name: str) -> ParamValue:
        """The tagged value of parameter ``name``.

        Raises:
            ValidationError: If the parameter was not collected
        """
        value = self._values.get(keys.param_key(name))
        if value is None:
            raise ValidationError(f"Parameter '{name}' is not present in the context")
        if not isinstance(value, ParamValue):
            raise ValidationError(f"Context key '{keys.param_key(name)}' does not hold a parameter value")
        return value

    def param_or(self, name: str, default: Any = None) -> Any:
        """Plain value of parameter ``name``, or ``default`` when absent."""
        value = self._values.get(keys.param_key(name))
        return value.value if isinstance(value, ParamValue) else default

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return [k for k in self._values if k.startswith(prefix)]

    def copy(self) -> "ExecutionContext":
        return ExecutionContext(self._values)
