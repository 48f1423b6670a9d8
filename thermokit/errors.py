from __future__ import annotations


class ThermokitError(Exception):
    """Base class for every error raised by thermokit."""


class NotFoundError(ThermokitError, KeyError):
    """An algorithm descriptor is not registered under the requested name."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable
        return str(self.args[0]) if self.args else ""


class ValidationError(ThermokitError, ValueError):
    """A parameter, point pick, curve pick or descriptor field is invalid."""


class InsufficientDataError(ThermokitError, ValueError):
    """A sample sequence is shorter than an estimator requires."""


class PreconditionViolation(ThermokitError, ValueError):
    """Input breaks an assumption of the estimator (e.g. non-monotonic x)."""


class CancelledError(ThermokitError):
    """The interaction sequence was cancelled before execution."""


class ExecutionError(ThermokitError):
    """The numeric runner of an algorithm failed."""
