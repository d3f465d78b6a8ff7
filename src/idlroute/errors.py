"""Exception taxonomy.

Two families:

- :class:`StartupError`: the IDL, the handler or the configuration is
  unusable.  Always aborts initialization; a service never starts half
  configured.
- :class:`CallError`: one request failed.  Never fatal to the process;
  the route boundary converts it into a failure value.

Every error carries a stable ``code`` and a JSON-friendly ``detail``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from idlroute.services.auditor import AuditError


class IdlrouteError(Exception):
    """Root of all idlroute errors."""

    code = "IDLROUTE_ERROR"

    @property
    def detail(self) -> dict[str, Any]:
        return {}


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


class StartupError(IdlrouteError):
    code = "STARTUP_FAILED"


class ConfigurationError(StartupError):
    code = "CONFIGURATION_ERROR"


class IdlParseError(StartupError):
    """The IDL text is not syntactically valid."""

    code = "IDL_PARSE_ERROR"

    def __init__(self, message: str, *, source: str = "<string>", line: int = 0, column: int = 0):
        super().__init__(f"{source}:{line}:{column}: {message}")
        self.source = source
        self.line = line
        self.column = column

    @property
    def detail(self) -> dict[str, Any]:
        return {"source": self.source, "line": self.line, "column": self.column}


class SchemaAuditError(StartupError):
    """The IDL parsed but failed the completeness/consistency audit."""

    code = "SCHEMA_AUDIT_FAILED"

    def __init__(self, errors: list[AuditError], *, source: str = "<string>") -> None:
        self.errors = list(errors)
        self.source = source
        listing = "\n".join(f" - {e}" for e in self.errors)
        super().__init__(
            f"Invalid IDL document '{source}'; the following errors were found:\n{listing}"
        )

    @property
    def detail(self) -> dict[str, Any]:
        return {"source": self.source, "errors": [e.as_dict() for e in self.errors]}


class HandlerBindingError(StartupError):
    """The handler class does not satisfy the service it claims to serve."""

    code = "HANDLER_BINDING_ERROR"


# ---------------------------------------------------------------------------
# Per request
# ---------------------------------------------------------------------------


class CallError(IdlrouteError):
    """A single call failed; the process keeps serving."""

    code = "CALL_FAILED"
    client_error = False


@dataclass(frozen=True)
class FieldError:
    """One offending field in a composed message."""

    field: str
    message: str
    kind: str = "type_mismatch"

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "kind": self.kind}

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class InputValidationError(CallError):
    """Raw request parameters do not compose into a valid call message."""

    code = "INPUT_VALIDATION_ERROR"
    client_error = True

    def __init__(self, method: str, errors: list[FieldError]) -> None:
        self.method = method
        self.errors = list(errors)
        listing = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Error in composing {method} call: {listing}")

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    @property
    def detail(self) -> dict[str, Any]:
        return {"method": self.method, "errors": [e.as_dict() for e in self.errors]}


class BusinessException(CallError):
    """An action recorded an exception outcome."""

    code = "BUSINESS_EXCEPTION"

    def __init__(self, value: Any, *, method: str = "") -> None:
        self.value = value
        self.method = method
        super().__init__(str(value))

    @property
    def detail(self) -> dict[str, Any]:
        return {"method": self.method, "value": self.value}


class BusinessError(CallError):
    """An action recorded an error outcome."""

    code = "BUSINESS_ERROR"

    def __init__(self, value: Any, *, method: str = "") -> None:
        self.value = value
        self.method = method
        super().__init__(str(value))

    @property
    def detail(self) -> dict[str, Any]:
        return {"method": self.method, "value": self.value}


class ReplyValidationError(CallError):
    """A handler's result violates the declared return type."""

    code = "REPLY_VALIDATION_ERROR"

    def __init__(self, method: str, errors: list[FieldError]) -> None:
        self.method = method
        self.errors = list(errors)
        listing = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Error in composing {method} result: {listing}")

    @property
    def detail(self) -> dict[str, Any]:
        return {"method": self.method, "errors": [e.as_dict() for e in self.errors]}


class HandlerIncompleteError(CallError):
    """No action recorded a terminal outcome."""

    code = "HANDLER_INCOMPLETE"

    def __init__(self, handler: str, method: str) -> None:
        self.handler = handler
        self.method = method
        super().__init__(
            f"{handler} in handling {method} never called set_result, set_exception or set_error"
        )

    @property
    def detail(self) -> dict[str, Any]:
        return {"handler": self.handler, "method": self.method}


class HandlerFailedError(CallError):
    """An action raised an exception outside this taxonomy."""

    code = "HANDLER_FAILED"

    def __init__(self, handler: str, method: str, action: str) -> None:
        self.handler = handler
        self.method = method
        self.action = action
        super().__init__(f"{handler} in handling {method} failed in action {action}")

    @property
    def detail(self) -> dict[str, Any]:
        return {"handler": self.handler, "method": self.method, "action": self.action}


class OutcomeConflictError(CallError):
    """A second outcome was recorded on a call that already has one."""

    code = "OUTCOME_CONFLICT"

    def __init__(self, method: str, existing: str, attempted: str) -> None:
        self.method = method
        self.existing = existing
        self.attempted = attempted
        super().__init__(
            f"Call to {method} already has a {existing} outcome; refusing to set {attempted}"
        )

    @property
    def detail(self) -> dict[str, Any]:
        return {"method": self.method, "existing": self.existing, "attempted": self.attempted}
