"""CallContext: per-call state shared by a handler's actions.

The heap is a :class:`Once` cell holding the call's :class:`Outcome`.
Recording a second outcome raises :class:`OutcomeConflictError`, so
"at most one terminal outcome" holds by construction.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

from idlroute.errors import OutcomeConflictError

if TYPE_CHECKING:
    from idlroute.domain.idl import MethodDefinition, ServiceDefinition
    from idlroute.services.message import CallMessage

T = TypeVar("T")

Action = Callable[["CallContext"], None]


class OutcomeKind(StrEnum):
    RESULT = "result"
    EXCEPTION = "exception"
    ERROR = "error"


@dataclass(frozen=True)
class Outcome:
    """Terminal outcome of a call: exactly one kind plus its value."""

    kind: OutcomeKind
    value: Any


class Once(Generic[T]):
    """A cell that can be written exactly once."""

    __slots__ = ("_value", "_set")

    def __init__(self) -> None:
        self._value: T | None = None
        self._set = False

    @property
    def is_set(self) -> bool:
        return self._set

    def get(self) -> T | None:
        return self._value

    def set(self, value: T) -> None:
        if self._set:
            raise ValueError("Once cell is already set")
        self._value = value
        self._set = True


class ExecutionState(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    FINISHED = "finished"
    INCOMPLETE = "incomplete"


class CallContext:
    """Everything an action can see about the call it is serving.

    Attributes:
        message: The validated call message.
        method: The IDL method being served.
        service: The service owning the method.
        handler: Name of the handler class, for diagnostics.
        state: Scratch space for passing data between actions.
        request: The host framework's request object, if any.
        logger: structlog logger bound to service, method and handler.
    """

    def __init__(
        self,
        message: CallMessage,
        method: MethodDefinition,
        service: ServiceDefinition,
        *,
        handler: str = "",
        request: Any = None,
    ) -> None:
        self.message = message
        self.method = method
        self.service = service
        self.handler = handler
        self.request = request
        self.state: dict[str, Any] = {}
        self.execution = ExecutionState.PENDING
        self.logger = structlog.get_logger("idlroute.call").bind(
            service=service.name, method=method.name, handler=handler
        )
        self._heap: Once[Outcome] = Once()
        self._actions: deque[Action] = deque()

    # ── Arguments ─────────────────────────────────────────────────────

    def args(self) -> dict[str, Any]:
        return self.message.to_dict()

    def arg(self, name: str, default: Any = None) -> Any:
        return self.message.get(name, default)

    # ── Outcome ───────────────────────────────────────────────────────

    def set_result(self, value: Any) -> None:
        self._record(OutcomeKind.RESULT, value)

    def set_exception(self, value: Any) -> None:
        self._record(OutcomeKind.EXCEPTION, value)

    def set_error(self, value: Any) -> None:
        self._record(OutcomeKind.ERROR, value)

    def _record(self, kind: OutcomeKind, value: Any) -> None:
        existing = self._heap.get()
        if existing is not None:
            raise OutcomeConflictError(self.method.name, str(existing.kind), str(kind))
        self._heap.set(Outcome(kind, value))

    def is_finished(self) -> bool:
        return self._heap.is_set

    def outcome(self) -> Outcome | None:
        return self._heap.get()

    def heap_isset(self, key: str) -> bool:
        """True if the outcome of kind *key* (``result``, ``exception``, ``error``) is set."""
        outcome = self._heap.get()
        return outcome is not None and outcome.kind == key

    def heap_index(self, key: str) -> Any:
        """Value of the outcome of kind *key*, or None."""
        outcome = self._heap.get()
        if outcome is None or outcome.kind != key:
            return None
        return outcome.value

    # ── Action queue ──────────────────────────────────────────────────

    def add_action(self, action: Action) -> None:
        self._actions.append(action)

    def next_action(self) -> Action | None:
        return self._actions.popleft() if self._actions else None

    @property
    def pending_actions(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return (
            f"CallContext({self.service.name}.{self.method.name}, "
            f"execution={self.execution}, outcome={self.outcome()!r})"
        )
