"""Tests for CallContext and the write-once outcome heap."""

from __future__ import annotations

import pytest

from idlroute.domain.idl import Document
from idlroute.errors import OutcomeConflictError
from idlroute.services.context import (
    CallContext,
    ExecutionState,
    Once,
    Outcome,
    OutcomeKind,
)
from idlroute.services.message import CallMessage


def _context(doc: Document) -> CallContext:
    service = doc.service("Accounts")
    assert service is not None
    method = service.method("getAccount")
    assert method is not None
    message = CallMessage("getAccount", {"id": 7})
    return CallContext(message, method, service, handler="AccountsHandler")


class TestOnce:
    def test_set_once(self) -> None:
        cell: Once[int] = Once()
        assert not cell.is_set
        assert cell.get() is None
        cell.set(3)
        assert cell.is_set
        assert cell.get() == 3

    def test_second_set_rejected(self) -> None:
        cell: Once[int] = Once()
        cell.set(1)
        with pytest.raises(ValueError, match="already set"):
            cell.set(2)
        assert cell.get() == 1


class TestArguments:
    def test_args_and_arg(self, verified: Document) -> None:
        call = _context(verified)
        assert call.args() == {"id": 7}
        assert call.arg("id") == 7
        assert call.arg("missing", "fallback") == "fallback"

    def test_args_returns_a_copy(self, verified: Document) -> None:
        call = _context(verified)
        call.args()["id"] = 8
        assert call.arg("id") == 7

    def test_state_is_per_call(self, verified: Document) -> None:
        first, second = _context(verified), _context(verified)
        first.state["seen"] = True
        assert second.state == {}


class TestOutcome:
    @pytest.mark.parametrize(
        ("setter", "kind"),
        [
            ("set_result", OutcomeKind.RESULT),
            ("set_exception", OutcomeKind.EXCEPTION),
            ("set_error", OutcomeKind.ERROR),
        ],
    )
    def test_record(self, verified: Document, setter: str, kind: OutcomeKind) -> None:
        call = _context(verified)
        assert not call.is_finished()
        getattr(call, setter)("value")
        assert call.is_finished()
        assert call.outcome() == Outcome(kind, "value")
        assert call.heap_isset(str(kind))
        assert call.heap_index(str(kind)) == "value"

    def test_other_kinds_unset(self, verified: Document) -> None:
        call = _context(verified)
        call.set_result({"id": 1})
        assert not call.heap_isset("exception")
        assert not call.heap_isset("error")
        assert call.heap_index("error") is None

    def test_none_is_a_valid_result(self, verified: Document) -> None:
        call = _context(verified)
        call.set_result(None)
        assert call.is_finished()
        assert call.heap_isset("result")

    def test_second_outcome_conflicts(self, verified: Document) -> None:
        call = _context(verified)
        call.set_result({"id": 1})
        with pytest.raises(OutcomeConflictError) as exc_info:
            call.set_error("late")
        assert exc_info.value.existing == "result"
        assert exc_info.value.attempted == "error"
        assert call.outcome() == Outcome(OutcomeKind.RESULT, {"id": 1})

    def test_same_kind_twice_conflicts(self, verified: Document) -> None:
        call = _context(verified)
        call.set_result(1)
        with pytest.raises(OutcomeConflictError):
            call.set_result(2)


class TestActionQueue:
    def test_fifo(self, verified: Document) -> None:
        call = _context(verified)

        def first(c: CallContext) -> None:
            pass

        def second(c: CallContext) -> None:
            pass

        call.add_action(first)
        call.add_action(second)
        assert call.pending_actions == 2
        assert call.next_action() is first
        assert call.next_action() is second
        assert call.next_action() is None

    def test_initial_state(self, verified: Document) -> None:
        call = _context(verified)
        assert call.execution == ExecutionState.PENDING
        assert call.request is None
        assert "getAccount" in repr(call)
