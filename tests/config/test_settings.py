"""Tests for IdlrouteSettings: unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from idlroute.config.settings import IdlrouteSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("IDLROUTE_CONFIG", "IDLROUTE_SERVICE__IDL", "IDLROUTE_HTTP__PORT"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = IdlrouteSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.service.idl is None
        assert settings.service.handler is None
        assert settings.audit.require_method_docs is True
        assert settings.audit.require_rest is True
        assert settings.http.port == 8000
        assert settings.plugins.enabled is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = IdlrouteSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_sections(self, tmp_path: Path) -> None:
        (tmp_path / "idlroute.toml").write_text(
            '[service]\nidl = "api.thrift"\nhandler = "app:Handler"\n'
            "[audit]\nrequire_method_docs = false\n"
            '[http]\nport = 9001\nprefix = "/v1"\n'
        )
        settings = IdlrouteSettings.from_cli(project_root=tmp_path)
        assert settings.service.idl == "api.thrift"
        assert settings.service.handler == "app:Handler"
        assert settings.audit.require_method_docs is False
        assert settings.audit.audit_types is True  # default preserved
        assert settings.http.port == 9001
        assert settings.http.prefix == "/v1"

    def test_project_root_is_config_parent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "idlroute.toml").write_text("")
        nested = tmp_path / "src" / "app"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = IdlrouteSettings.from_cli()
        assert settings.project_root == tmp_path.resolve()
        assert settings.config_path == tmp_path.resolve() / "idlroute.toml"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "idlroute.toml").write_text("[service\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            IdlrouteSettings.from_cli(project_root=tmp_path)

    def test_invalid_port(self, tmp_path: Path) -> None:
        (tmp_path / "idlroute.toml").write_text("[http]\nport = 0\n")
        with pytest.raises(Exception):
            IdlrouteSettings.from_cli(project_root=tmp_path)


class TestPriority:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = IdlrouteSettings.from_cli(project_root=tmp_path, json_output=True, quiet=True)
        assert settings.json_output is True
        assert settings.quiet is True

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "idlroute.toml").write_text('[service]\nidl = "toml.thrift"\n')
        monkeypatch.setenv("IDLROUTE_SERVICE__IDL", "env.thrift")
        settings = IdlrouteSettings.from_cli(project_root=tmp_path)
        assert settings.service.idl == "env.thrift"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("[http]\nport = 7000\n")
        settings = IdlrouteSettings.from_cli(config_path=str(custom), project_root=tmp_path)
        assert settings.http.port == 7000
        assert settings.config_path == custom

    def test_explicit_config_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            IdlrouteSettings.from_cli(config_path=str(tmp_path / "nope.toml"))


class TestResolvePath:
    def test_relative(self, tmp_path: Path) -> None:
        settings = IdlrouteSettings(project_root=tmp_path)
        assert settings.resolve_path("api/accounts.thrift") == tmp_path / "api/accounts.thrift"

    def test_absolute(self, tmp_path: Path) -> None:
        settings = IdlrouteSettings(project_root=tmp_path / "elsewhere")
        assert settings.resolve_path(tmp_path / "x.thrift") == tmp_path / "x.thrift"
