"""ServiceResult and ServiceError: the boundary envelope.

INVARIANT: ``BoundRoute.dispatch`` and every CLI operation return a
ServiceResult; per-request failures become ``ok=False`` results instead
of escaping the route boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from idlroute.errors import IdlrouteError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: IdlrouteError) -> ServiceError:
        return cls(code=exc.code, message=str(exc), detail=exc.detail)


class ServiceResult(BaseModel):
    """Envelope for one dispatched call or CLI operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (a method name, or e.g. ``"audit"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry, timing).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: IdlrouteError, **kwargs: Any) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc), **kwargs)
