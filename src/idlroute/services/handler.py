"""Handler base class and the ``@handles`` action decorator.

A handler serves one IDL service::

    class Accounts(Handler):
        service = "Accounts"

        @handles("createAccount")
        def check_quota(self, call: CallContext) -> None: ...

        @handles("createAccount")
        def create(self, call: CallContext) -> None:
            call.set_result({"id": 42, "allocation": 1000})

Several actions for one method run in definition order.  The action table
is built once per class in ``__init_subclass__``; nothing is probed per
call.  A fresh handler instance serves every call.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar, TypeVar

from idlroute.errors import HandlerBindingError
from idlroute.services.context import Action

_HANDLES_ATTR = "__idlroute_handles__"

F = TypeVar("F", bound=Callable[..., Any])


def handles(method_name: str) -> Callable[[F], F]:
    """Mark a handler method as an action for IDL method *method_name*."""

    def decorate(func: F) -> F:
        names = getattr(func, _HANDLES_ATTR, ())
        setattr(func, _HANDLES_ATTR, (*names, method_name))
        return func

    return decorate


class Handler:
    """Base class for service handlers.

    Subclasses set ``service`` to the IDL service name they implement.
    """

    service: ClassVar[str]
    _action_table: ClassVar[dict[str, tuple[str, ...]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared = cls.__dict__.get("service")
        if declared is not None and (not isinstance(declared, str) or not declared):
            raise HandlerBindingError(
                f"{cls.__qualname__}.service must be a non-empty string, got {declared!r}"
            )

        # Base classes first; an override keeps the position of the attribute it replaces.
        members: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            members.update(vars(klass))

        table: dict[str, list[str]] = {}
        for attr, value in members.items():
            for method_name in getattr(value, _HANDLES_ATTR, ()):
                table.setdefault(method_name, []).append(attr)
        cls._action_table = {name: tuple(attrs) for name, attrs in table.items()}

    @classmethod
    def handled_methods(cls) -> list[str]:
        return list(cls._action_table)

    @classmethod
    def service_name(cls) -> str | None:
        service = getattr(cls, "service", None)
        return service if isinstance(service, str) and service else None

    def actions_for(self, method_name: str) -> list[Action]:
        """Actions to queue for one call of *method_name*, in run order.

        Override to compute the action list per call.
        """
        return [getattr(self, attr) for attr in self._action_table.get(method_name, ())]
