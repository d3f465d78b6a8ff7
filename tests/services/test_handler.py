"""Tests for Handler and the @handles decorator."""

from __future__ import annotations

import pytest
from sample_service import AccountsHandler

from idlroute.errors import HandlerBindingError
from idlroute.services.context import CallContext
from idlroute.services.handler import Handler, handles


class TestActionTable:
    def test_sample_handler(self) -> None:
        assert AccountsHandler.handled_methods() == ["createAccount", "getAccount", "tagAccount"]
        assert AccountsHandler.service_name() == "Accounts"

    def test_actions_in_definition_order(self) -> None:
        actions = AccountsHandler().actions_for("createAccount")
        assert [a.__name__ for a in actions] == ["reject_taken", "create"]

    def test_actions_are_bound(self) -> None:
        handler = AccountsHandler()
        (action,) = handler.actions_for("getAccount")
        assert action.__self__ is handler  # type: ignore[attr-defined]

    def test_unknown_method_has_no_actions(self) -> None:
        assert AccountsHandler().actions_for("deleteAccount") == []

    def test_one_function_for_several_methods(self) -> None:
        class Audit(Handler):
            service = "Audit"

            @handles("a")
            @handles("b")
            def log(self, call: CallContext) -> None:
                pass

        assert sorted(Audit.handled_methods()) == ["a", "b"]

    def test_inherited_actions_run_first(self) -> None:
        class Base(Handler):
            service = "S"

            @handles("m")
            def authorize(self, call: CallContext) -> None:
                pass

        class Child(Base):
            @handles("m")
            def perform(self, call: CallContext) -> None:
                pass

        assert [a.__name__ for a in Child().actions_for("m")] == ["authorize", "perform"]
        assert Child.service_name() == "S"
        assert [a.__name__ for a in Base().actions_for("m")] == ["authorize"]

    def test_override_keeps_position(self) -> None:
        class Base(Handler):
            service = "S"

            @handles("m")
            def first(self, call: CallContext) -> None:
                pass

            @handles("m")
            def second(self, call: CallContext) -> None:
                pass

        class Child(Base):
            @handles("m")
            def first(self, call: CallContext) -> None:
                call.state["child"] = True

        actions = Child().actions_for("m")
        assert [a.__name__ for a in actions] == ["first", "second"]
        assert actions[0].__func__ is Child.first  # type: ignore[attr-defined]

    def test_undecorated_override_removes_action(self) -> None:
        class Base(Handler):
            service = "S"

            @handles("m")
            def act(self, call: CallContext) -> None:
                pass

        class Child(Base):
            def act(self, call: CallContext) -> None:
                pass

        assert Child.handled_methods() == []


class TestServiceDeclaration:
    def test_missing_service(self) -> None:
        class Anonymous(Handler):
            pass

        assert Anonymous.service_name() is None

    @pytest.mark.parametrize("value", ["", 42])
    def test_invalid_service(self, value: object) -> None:
        with pytest.raises(HandlerBindingError, match="must be a non-empty string"):

            class Broken(Handler):
                service = value  # type: ignore[assignment]
