"""Tests for ActionExecutor."""

from __future__ import annotations

import pytest

from idlroute.domain.idl import Document
from idlroute.errors import (
    HandlerFailedError,
    HandlerIncompleteError,
    OutcomeConflictError,
)
from idlroute.services.context import CallContext, ExecutionState, OutcomeKind
from idlroute.services.executor import ActionExecutor, action_name
from idlroute.services.message import CallMessage


@pytest.fixture
def call(verified: Document) -> CallContext:
    service = verified.service("Accounts")
    assert service is not None
    method = service.method("getAccount")
    assert method is not None
    return CallContext(CallMessage("getAccount", {"id": 1}), method, service, handler="H")


class TestActionExecutor:
    def test_runs_until_outcome(self, call: CallContext) -> None:
        ran: list[str] = []

        def check(c: CallContext) -> None:
            ran.append("check")
            c.state["checked"] = True

        def finish(c: CallContext) -> None:
            ran.append("finish")
            c.set_result({"checked": c.state["checked"]})

        def never(c: CallContext) -> None:
            ran.append("never")

        outcome = ActionExecutor().run(call, [check, finish, never])
        assert ran == ["check", "finish"]
        assert outcome.kind == OutcomeKind.RESULT
        assert outcome.value == {"checked": True}
        assert call.execution == ExecutionState.FINISHED
        assert call.pending_actions == 1

    def test_action_may_queue_more_actions(self, call: CallContext) -> None:
        def late(c: CallContext) -> None:
            c.set_result("late")

        def first(c: CallContext) -> None:
            c.add_action(late)

        assert ActionExecutor().run(call, [first]).value == "late"

    def test_exception_outcome_stops_run(self, call: CallContext) -> None:
        def reject(c: CallContext) -> None:
            c.set_exception({"reason": "nope"})

        def create(c: CallContext) -> None:
            raise AssertionError("must not run")

        outcome = ActionExecutor().run(call, [reject, create])
        assert outcome.kind == OutcomeKind.EXCEPTION

    def test_empty_queue_is_incomplete(self, call: CallContext) -> None:
        def noop(c: CallContext) -> None:
            pass

        with pytest.raises(HandlerIncompleteError) as exc_info:
            ActionExecutor().run(call, [noop])
        assert "H in handling getAccount never called" in str(exc_info.value)
        assert call.execution == ExecutionState.INCOMPLETE

    def test_no_actions_is_incomplete(self, call: CallContext) -> None:
        with pytest.raises(HandlerIncompleteError):
            ActionExecutor().run(call)

    def test_unexpected_exception_wrapped(self, call: CallContext) -> None:
        def broken(c: CallContext) -> None:
            raise KeyError("boom")

        with pytest.raises(HandlerFailedError) as exc_info:
            ActionExecutor().run(call, [broken])
        err = exc_info.value
        assert isinstance(err.__cause__, KeyError)
        assert err.action.endswith("broken")
        assert err.detail == {"handler": "H", "method": "getAccount", "action": err.action}
        assert call.execution == ExecutionState.INCOMPLETE

    def test_conflict_propagates_unchanged(self, call: CallContext) -> None:
        def twice(c: CallContext) -> None:
            c.set_result(1)
            c.set_error("again")

        with pytest.raises(OutcomeConflictError):
            ActionExecutor().run(call, [twice])
        assert call.execution == ExecutionState.FINISHED


class TestActionName:
    def test_bound_method(self) -> None:
        class Thing:
            def act(self, call: CallContext) -> None:
                pass

        assert action_name(Thing().act).endswith("Thing.act")

    def test_callable_without_qualname(self) -> None:
        class Callable_:
            def __call__(self, call: CallContext) -> None:
                pass

        instance = Callable_()
        assert action_name(instance) == repr(instance)
