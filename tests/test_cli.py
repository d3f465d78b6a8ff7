"""Tests for the root CLI group and global flags."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from idlroute import __version__
from idlroute.cli import cli


class TestRootGroup:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_subcommand_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "expose Thrift IDL methods as REST handlers" in result.output

    def test_unknown_command(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["deploy"])
        assert result.exit_code == 2

    def test_missing_config_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["-c", str(tmp_path / "nope.toml"), "routes"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_explicit_config(
        self, cli_runner: CliRunner, project_root: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        elsewhere = tmp_path_factory.mktemp("elsewhere")
        config = elsewhere / "deploy.toml"
        config.write_text(f'[service]\nidl = "{project_root / "accounts.thrift"}"\n')
        result = cli_runner.invoke(cli, ["-q", "-c", str(config), "routes"])
        assert result.exit_code == 0, result.output
        assert "GET /accounts/:id" in result.output

    def test_verbose_configures_debug_logging(
        self, cli_runner: CliRunner, project_root: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["-v", "-q", "routes"])
        assert result.exit_code == 0, result.output
        assert logging.getLogger("idlroute").level == logging.DEBUG

    def test_plugins_disabled(self, cli_runner: CliRunner, project_root: Path) -> None:
        with (project_root / "idlroute.toml").open("a", encoding="utf-8") as fh:
            fh.write("\n[plugins]\nenabled = false\n")
        result = cli_runner.invoke(cli, ["-q", "call", "getAccount", "-p", "id=4"])
        assert result.exit_code == 0, result.output
        assert '"id":4' in result.output


class TestAppContext:
    def test_plugins_lazy(self, project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        from idlroute.commands._context import AppContext
        from idlroute.config.settings import IdlrouteSettings
        from idlroute.plugins.manager import PluginManager

        monkeypatch.setattr(PluginManager, "discover_and_load", lambda self: [])
        app = AppContext(IdlrouteSettings.from_cli())
        assert app._plugins is None
        assert app.plugins is app.plugins
        assert isinstance(app.plugins, PluginManager)

    def test_emit_warnings_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        from idlroute.commands._context import AppContext
        from idlroute.config.settings import IdlrouteSettings
        from idlroute.services.result import ServiceResult

        app = AppContext(IdlrouteSettings(quiet=True))
        app.emit(ServiceResult(ok=True, op="audit", warnings=["handler handles extra method"]))
        captured = capsys.readouterr()
        assert captured.out.strip() == "OK: audit"
        assert "WARNING: handler handles extra method" in captured.err

    def test_emit_failure_exits(self) -> None:
        from idlroute.commands._context import AppContext
        from idlroute.config.settings import IdlrouteSettings
        from idlroute.errors import BusinessError
        from idlroute.services.result import ServiceResult

        app = AppContext(IdlrouteSettings())
        with pytest.raises(SystemExit) as exc_info:
            app.emit(ServiceResult.failure("op", BusinessError("down")))
        assert exc_info.value.code == 1
