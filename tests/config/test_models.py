"""Tests for the idlroute.toml section models."""

import pytest
from pydantic import ValidationError

from idlroute.config.models import AuditConfig, HttpConfig, PluginsConfig, ServiceConfig


class TestSectionDefaults:
    def test_service(self) -> None:
        assert ServiceConfig() == ServiceConfig(idl=None, handler=None)

    def test_audit_is_strict_by_default(self) -> None:
        audit = AuditConfig()
        assert audit.require_method_docs and audit.require_rest and audit.audit_types

    def test_http(self) -> None:
        http = HttpConfig()
        assert (http.host, http.port, http.prefix) == ("127.0.0.1", 8000, "")

    def test_plugins_enabled(self) -> None:
        assert PluginsConfig().enabled is True


class TestValidation:
    @pytest.mark.parametrize("port", [0, 70000])
    def test_port_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            HttpConfig(port=port)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            HttpConfig().port = 1  # type: ignore[misc]
