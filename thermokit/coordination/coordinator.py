"""Interaction coordinator for descriptor-driven algorithms.

The coordinator walks an algorithm through the user interactions its
descriptor declares (a parameter form, point picks on the chart, a reference
curve pick), validates every submission, builds the execution context and then
hands it to the numeric runner.

Two ways of driving it are supported:

* event-driven: call :meth:`InteractionCoordinator.start` and then the
  ``submit_*`` method matching :attr:`InteractionCoordinator.current_stage`
  whenever the UI has the input;
* synchronous: :meth:`InteractionCoordinator.run` with an
  :class:`InteractionProvider` that answers one request per stage.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from .. import keys
from ..descriptors.descriptor import AlgorithmDescriptor, PointSelectionSpec, Stage
from ..descriptors.parameters import ParamValue, resolve_parameters
from ..descriptors.registry import DescriptorRegistry
from ..errors import CancelledError, ExecutionError, ThermokitError, ValidationError
from .context import ExecutionContext
from .execution import execute

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
Executor = Callable[[AlgorithmDescriptor, ExecutionContext], Mapping[str, Any]]


class State(str, Enum):
    NOT_STARTED = "NotStarted"
    COLLECTING_PARAMETERS = "CollectingParameters"
    COLLECTING_POINTS = "CollectingPoints"
    COLLECTING_CURVE = "CollectingCurve"
    READY = "Ready"
    EXECUTING = "Executing"
    COMPLETED = "Completed"
    FAILED = "Failed"


TERMINAL_STATES = frozenset({State.COMPLETED, State.FAILED})

_STAGE_STATES = {
    Stage.PARAMETERS: State.COLLECTING_PARAMETERS,
    Stage.POINTS: State.COLLECTING_POINTS,
    Stage.CURVE: State.COLLECTING_CURVE,
}


class InteractionProvider(Protocol):
    """Supplies user input for each stage of a synchronous run."""

    def request_parameters(self, descriptor: AlgorithmDescriptor) -> Mapping[str, Any]:
        ...

    def request_points(self, descriptor: AlgorithmDescriptor, spec: PointSelectionSpec) -> Sequence[Point]:
        ...

    def request_curve(self, descriptor: AlgorithmDescriptor) -> Union[str, Sequence[str]]:
        ...


class InteractionCoordinator:
    """Sequential state machine running one algorithm invocation.

    An instance is single-use: once COMPLETED or FAILED every further
    transition raises RuntimeError. On failure :attr:`error` holds the cause
    and :attr:`context` stays None.

    Args:
        algorithm: Descriptor, or the name to look up in ``registry``
        registry: Registry used for name lookup (built-in catalogue if None)
        executor: Callable ``(descriptor, context) -> mapping`` of results
        inbound: Values already available to the algorithm, such as
            ``activeCurve`` or ``curves``; prerequisites are read from here
    """

    def __init__(
        self,
        algorithm: Union[AlgorithmDescriptor, str],
        registry: Optional[DescriptorRegistry] = None,
        executor: Optional[Executor] = None,
        inbound: Optional[Mapping[str, Any]] = None,
    ):
        self._algorithm = algorithm
        self._registry = registry
        self._executor: Executor = executor or execute
        self._inbound: Dict[str, Any] = dict(inbound or {})

        self.descriptor: Optional[AlgorithmDescriptor] = (
            algorithm if isinstance(algorithm, AlgorithmDescriptor) else None
        )
        self.state = State.NOT_STARTED
        self._history: List[State] = [State.NOT_STARTED]
        self.error: Optional[BaseException] = None
        self.context: Optional[ExecutionContext] = None

        self._stages: Tuple[Stage, ...] = ()
        self._stage_index = 0
        self._parameters: Dict[str, ParamValue] = {}
        self._points: Optional[Tuple[Point, ...]] = None
        self._curve_id: Optional[str] = None

    @property
    def name(self) -> str:
        if self.descriptor is not None:
            return self.descriptor.name
        return str(self._algorithm)

    @property
    def history(self) -> List[State]:
        return list(self._history)

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return self._stages

    @property
    def current_stage(self) -> Optional[Stage]:
        for stage, state in _STAGE_STATES.items():
            if self.state is state:
                return stage
        return None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self.state is State.COMPLETED

    # -- transitions -------------------------------------------------------

    def _transition(self, state: State) -> None:
        if self.is_terminal:
            raise RuntimeError(f"{self.name}: cannot move from {self.state.value} to {state.value}")
        logger.debug(f"{self.name}: {self.state.value} -> {state.value}")
        self.state = state
        self._history.append(state)

    def _fail(self, error: BaseException) -> None:
        logger.warning(f"{self.name}: interaction failed in {self.state.value}: {error}")
        self._transition(State.FAILED)
        self.error = error
        self.context = None

    def _check_open(self) -> None:
        if self.is_terminal:
            raise RuntimeError(f"{self.name}: coordinator already {self.state.value}")

    def start(self) -> None:
        """Resolve the descriptor and enter the first required stage."""
        self._check_open()
        if self.state is not State.NOT_STARTED:
            raise RuntimeError(f"{self.name}: already started")

        if self.descriptor is None:
            registry = self._registry
            if registry is None:
                from ..descriptors.builtin import register_default_descriptors

                registry = register_default_descriptors()
            try:
                self.descriptor = registry.get(str(self._algorithm))
            except ThermokitError as e:
                self._fail(e)
                return

        self._stages = self.descriptor.effective_interaction_order()
        self._stage_index = 0
        logger.debug(f"{self.name}: stages {[s.value for s in self._stages]}")
        self._advance()

    def _advance(self) -> None:
        while self._stage_index < len(self._stages):
            stage = self._stages[self._stage_index]
            if self._is_vacuous(stage):
                logger.debug(f"{self.name}: nothing to collect for {stage.value}")
                if stage is Stage.POINTS:
                    self._points = ()
                self._stage_index += 1
                continue
            self._transition(_STAGE_STATES[stage])
            return
        self._transition(State.READY)
        self._execute()

    def _is_vacuous(self, stage: Stage) -> bool:
        if stage is Stage.PARAMETERS:
            return not self.descriptor.form_parameters
        if stage is Stage.POINTS:
            spec = self.descriptor.point_selection
            return spec is None or spec.max_count == 0 or spec.min_count == 0
        return False

    def _expect_stage(self, stage: Stage) -> bool:
        self._check_open()
        if self.current_stage is not stage:
            current = self.current_stage.value if self.current_stage else self.state.value
            self._fail(ValidationError(f"{self.name}: got {stage.value} input while expecting {current}"))
            return False
        return True

    def _reject(self, error: Exception) -> None:
        if not isinstance(error, ValidationError):
            wrapped = ValidationError(f"{self.name}: malformed input: {error}")
            wrapped.__cause__ = error
            error = wrapped
        self._fail(error)

    def submit_parameters(self, values: Optional[Mapping[str, Any]]) -> None:
        if not self._expect_stage(Stage.PARAMETERS):
            return
        try:
            self._parameters = resolve_parameters(self.descriptor.parameters, values)
        except (TypeError, ValueError) as e:
            self._reject(e)
            return
        self._stage_index += 1
        self._advance()

    def submit_points(self, points: Sequence[Point]) -> None:
        if not self._expect_stage(Stage.POINTS):
            return
        try:
            self._points = self._validate_points(points)
        except (TypeError, ValueError) as e:
            self._reject(e)
            return
        self._stage_index += 1
        self._advance()

    def submit_curve(self, curve: Union[str, Sequence[str]]) -> None:
        if not self._expect_stage(Stage.CURVE):
            return
        try:
            self._curve_id = self._validate_curve(curve)
        except (TypeError, ValueError) as e:
            self._reject(e)
            return
        self._stage_index += 1
        self._advance()

    def cancel(self) -> None:
        """Abandon the interaction; the coordinator ends FAILED."""
        self._check_open()
        self._fail(CancelledError(f"{self.name}: cancelled"))

    def run(self, provider: InteractionProvider) -> ExecutionContext:
        """Drive every stage through ``provider`` and execute.

        Returns:
            The final execution context including produced values

        Raises:
            ThermokitError: The error that moved the coordinator to FAILED
        """
        if self.state is State.NOT_STARTED:
            self.start()
        while self.current_stage is not None:
            stage = self.current_stage
            try:
                if stage is Stage.PARAMETERS:
                    self.submit_parameters(provider.request_parameters(self.descriptor))
                elif stage is Stage.POINTS:
                    self.submit_points(provider.request_points(self.descriptor, self.descriptor.point_selection))
                else:
                    self.submit_curve(provider.request_curve(self.descriptor))
            except ThermokitError as e:
                if self.is_terminal:
                    raise
                self._fail(e)
            except Exception as e:
                if self.is_terminal:
                    raise
                logger.exception(f"{self.name}: provider raised while answering {stage.value}")
                error = ExecutionError(f"{self.name}: provider failed during {stage.value}: {e}")
                error.__cause__ = e
                self._fail(error)

        if self.state is State.FAILED:
            raise self.error
        return self.context

    # -- validation --------------------------------------------------------

    def _validate_points(self, points: Sequence[Point]) -> Tuple[Point, ...]:
        spec = self.descriptor.point_selection
        picks = list(points) if points is not None else []
        if not spec.accepts(len(picks)):
            upper = "unbounded" if spec.unbounded else spec.max_count
            raise ValidationError(
                f"{self.name}: expected between {spec.min_count} and {upper} points, got {len(picks)}"
            )
        cleaned = []
        for i, point in enumerate(picks):
            try:
                x, y = point
                x, y = float(x), float(y)
            except (TypeError, ValueError):
                raise ValidationError(f"{self.name}: point {i} is not an (x, y) pair: {point!r}") from None
            if not (math.isfinite(x) and math.isfinite(y)):
                raise ValidationError(f"{self.name}: point {i} is not finite: {point!r}")
            cleaned.append((x, y))
        return tuple(cleaned)

    def _validate_curve(self, curve: Union[str, Sequence[str]]) -> str:
        ids = [curve] if isinstance(curve, str) else list(curve if curve is not None else ())
        if len(ids) != 1:
            raise ValidationError(f"{self.name}: expected exactly one curve, got {len(ids)}")
        curve_id = ids[0]
        if not isinstance(curve_id, str) or not curve_id:
            raise ValidationError(f"{self.name}: curve identifier must be a non-empty string, got {curve_id!r}")
        available = self._inbound.get(keys.CURVES)
        if available is not None and curve_id not in available:
            raise ValidationError(f"{self.name}: unknown curve '{curve_id}'")
        return curve_id

    # -- execution ---------------------------------------------------------

    def _build_context(self) -> ExecutionContext:
        descriptor = self.descriptor
        context = ExecutionContext()

        missing = [key for key in descriptor.prerequisites if key not in self._inbound]
        if missing:
            raise ValidationError(f"{self.name}: missing prerequisites {missing}")
        for key in descriptor.prerequisites:
            context[key] = self._inbound[key]

        for name, value in self._parameters.items():
            context[keys.param_key(name)] = value
        if self._points is not None:
            context[keys.SELECTED_POINTS] = self._points
        if self._curve_id is not None:
            context[keys.SELECTED_CURVE] = self._curve_id

        context[keys.history_key(descriptor.name)] = {n: v.value for n, v in self._parameters.items()}
        return context

    def _execute(self) -> None:
        try:
            context = self._build_context()
        except ValidationError as e:
            self._fail(e)
            return

        self._transition(State.EXECUTING)
        try:
            results = self._executor(self.descriptor, context)
        except ThermokitError as e:
            self._fail(e)
            return
        except Exception as e:
            logger.exception(f"{self.name}: executor raised an unexpected error")
            error = ExecutionError(f"{self.name}: {e}")
            error.__cause__ = e
            self._fail(error)
            return

        results = results or {}
        missing = [key for key in self.descriptor.produces if key not in results]
        if missing:
            self._fail(ExecutionError(f"{self.name}: executor did not produce {missing}"))
            return
        for key in self.descriptor.produces:
            context[key] = results[key]
        extra = sorted(set(results) - set(self.descriptor.produces))
        if extra:
            logger.debug(f"{self.name}: ignoring undeclared results {extra}")

        self.context = context
        self._transition(State.COMPLETED)
