"""Shared pytest fixtures for idlroute tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner
from sample_service import SAMPLE_IDL, AccountsHandler

from idlroute.domain.idl import Document
from idlroute.domain.parser import parse_idl
from idlroute.services.auditor import SchemaAuditor
from idlroute.services.binder import BoundRoute, RouteBinder
from idlroute.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None]:
    """Keep telemetry, structlog and root handlers from leaking between tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    disable_telemetry()
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def document() -> Document:
    """The sample IDL, parsed but not audited."""
    return parse_idl(SAMPLE_IDL, source="accounts.thrift")


@pytest.fixture
def verified(document: Document) -> Document:
    """The sample IDL after a clean audit (REST bindings filled in)."""
    return SchemaAuditor().audit(document).verified()


@pytest.fixture
def routes(verified: Document) -> dict[str, BoundRoute]:
    """Bound routes of the sample service keyed by method name."""
    return {r.method.name: r for r in RouteBinder(verified, AccountsHandler).bind()}


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with idlroute.toml, the IDL file, and CWD inside it.

    The handler reference points at ``sample_service``, which is importable
    from the test path.
    """
    monkeypatch.delenv("IDLROUTE_CONFIG", raising=False)
    (tmp_path / "accounts.thrift").write_text(SAMPLE_IDL, encoding="utf-8")
    (tmp_path / "idlroute.toml").write_text(
        '[service]\nidl = "accounts.thrift"\nhandler = "sample_service:AccountsHandler"\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path
