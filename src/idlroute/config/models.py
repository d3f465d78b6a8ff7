"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, idlroute.toml only contains
overrides.  A working service needs only ``[service] idl`` and
``[service] handler``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- idlroute.toml sections ---


class ServiceConfig(BaseModel):
    """[service] section."""

    model_config = {"frozen": True}

    idl: str | None = None
    handler: str | None = None


class AuditConfig(BaseModel):
    """[audit] section.

    ``require_rest`` only affects ``idlroute audit``; binding routes always
    needs a REST binding on every method.
    """

    model_config = {"frozen": True}

    require_method_docs: bool = True
    require_rest: bool = True
    audit_types: bool = True


class HttpConfig(BaseModel):
    """[http] section."""

    model_config = {"frozen": True}

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    prefix: str = ""


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
