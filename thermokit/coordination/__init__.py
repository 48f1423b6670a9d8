"""Interaction coordination: collecting user input and running algorithms."""

from .context import ExecutionContext
from .coordinator import InteractionCoordinator, InteractionProvider, State, TERMINAL_STATES
from .execution import RUNNERS, execute, register_runner

__all__ = [
    "ExecutionContext",
    "InteractionCoordinator",
    "InteractionProvider",
    "RUNNERS",
    "State",
    "TERMINAL_STATES",
    "execute",
    "register_runner",
]
