"""Tests for the routes command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from idlroute.cli import cli


@pytest.mark.usefixtures("project_root")
class TestRoutesCommand:
    def test_table(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["routes"])
        assert result.exit_code == 0, result.output
        for text in ("POST", "/accounts/:id/tags", "tagAccount", "3 route(s)"):
            assert text in result.output

    def test_quiet(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "routes"])
        assert result.output.splitlines() == [
            "POST /accounts",
            "GET /accounts/:id",
            "PUT /accounts/:id/tags",
        ]

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "routes"])
        data = json.loads(result.output)
        assert data["data"]["count"] == 3
        assert data["data"]["routes"][1]["method"] == "getAccount"

    def test_verbose_adds_signatures(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "routes"])
        assert result.exit_code == 0, result.output
        assert "Signature" in result.output

    def test_signature_in_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "routes"])
        signature = json.loads(result.output)["data"]["routes"][2]["signature"]
        assert signature == "list<string> tagAccount(i32 id, list<string> tags, Plan plan)"

    def test_missing_rest_fails(self, cli_runner: CliRunner, project_root: Path) -> None:
        (project_root / "idlroute.toml").write_text("[audit]\nrequire_rest = false\n")
        (project_root / "bare.thrift").write_text("service S {\n  /* Doc */\n  void m()\n}\n")
        result = cli_runner.invoke(cli, ["routes", "bare.thrift"])
        assert result.exit_code == 1
        assert "missing_rest" in result.output
