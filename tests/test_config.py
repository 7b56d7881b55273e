"""Tests for knoxauth.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from knoxauth.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_project_config,
    load_user_config,
    resolve_config,
    save_user_config,
    user_config_path,
)
from knoxauth.exceptions import ConfigError
from knoxauth.models import ClientConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


class TestDirectories:
    def test_xdg_config_dir(self, isolated_config: Path) -> None:
        path = get_config_dir()
        assert path == isolated_config / "config" / "knoxauth"
        assert path.is_dir()

    def test_xdg_data_dir(self, isolated_config: Path) -> None:
        assert get_data_dir() == isolated_config / "data" / "knoxauth"

    def test_xdg_defaults_under_home(
        self, home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("knoxauth.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        assert get_config_dir() == home / ".config" / "knoxauth"
        assert get_data_dir() == home / ".local" / "share" / "knoxauth"

    def test_fallback_dirs(self, home: Path) -> None:
        with patch("knoxauth.config._is_xdg_platform", return_value=False):
            assert get_config_dir() == home / ".knoxauth"
            assert get_data_dir() == home / ".knoxauth" / "data"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text() == '{"a": 1}'

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "file.json"
        _atomic_write(target, "x")
        _atomic_write(target, "y")
        assert [p.name for p in target.parent.iterdir()] == ["file.json"]

    def test_failure_cleans_up(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "file.json"
        with patch("knoxauth.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                _atomic_write(target, "x")
        assert list(target.parent.iterdir()) == []


# ---------------------------------------------------------------------------
# User and project config
# ---------------------------------------------------------------------------


class TestUserConfig:
    def test_missing_returns_defaults(self, isolated_config: Path) -> None:
        assert load_user_config() == ClientConfig()

    def test_round_trip(self, isolated_config: Path) -> None:
        save_user_config(ClientConfig(host="knox.internal:9000", verify_server=False))
        loaded = load_user_config()
        assert loaded.host == "knox.internal:9000"
        assert loaded.verify_server is False

    def test_invalid_json(self, isolated_config: Path) -> None:
        path = user_config_path()
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid user config"):
            load_user_config()

    def test_not_an_object(self, isolated_config: Path) -> None:
        user_config_path().write_text("[1, 2]")
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_user_config()

    def test_invalid_field(self, isolated_config: Path) -> None:
        _write_json(user_config_path(), {"request": {"timeout": "soon"}})
        with pytest.raises(ConfigError):
            load_user_config()

    def test_unknown_keys_ignored(self, isolated_config: Path) -> None:
        _write_json(user_config_path(), {"host": "a:1", "legacy": True})
        assert load_user_config().host == "a:1"


class TestProjectConfig:
    def test_absent(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_present(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "knoxauth.json", {"host": "proj:9000"})
        assert load_project_config() == {"host": "proj:9000"}

    def test_invalid(self, isolated_config: Path) -> None:
        (isolated_config / "knoxauth.json").write_text("nope")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.host == "localhost:9000"
        assert config.server_name == "knox"
        assert config.key_folder == "/var/lib/knox/v0/keys/"
        assert config.verify_server is True

    def test_user_config_layer(self, isolated_config: Path) -> None:
        save_user_config(ClientConfig(host="user:9000"))
        assert resolve_config().host == "user:9000"

    def test_project_overrides_user(self, isolated_config: Path) -> None:
        save_user_config(ClientConfig(key_folder="/user/keys/", server_name="user-sni"))
        _write_json(
            isolated_config / "knoxauth.json",
            {"key_folder": "/proj/keys/", "request": {"timeout": 5}},
        )
        config = resolve_config()
        assert config.key_folder == "/proj/keys/"
        assert config.server_name == "user-sni"
        assert config.request.timeout == 5
        assert config.request.max_retries == 3

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "knoxauth.json", {"key_folder": "/proj/keys/"})
        monkeypatch.setenv("KNOXAUTH_KEY_FOLDER", "/env/keys/")
        monkeypatch.setenv("KNOXAUTH_CERT_FILE", "/etc/knox/env.crt")
        config = resolve_config()
        assert config.key_folder == "/env/keys/"
        assert config.cert_file == "/etc/knox/env.crt"

    def test_empty_env_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KNOXAUTH_HOST", "")
        assert resolve_config().host == "localhost:9000"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KNOXAUTH_HOST", "env:9000")
        monkeypatch.setenv("KNOXAUTH_KEY_FILE", "/env.key")
        config = resolve_config(cli_host="cli:9000", cli_key_file="/cli.key")
        assert config.host == "cli:9000"
        assert config.key_file == "/cli.key"

    @pytest.mark.parametrize(
        ("value", "verify"),
        [("1", False), ("true", False), ("YES", False), ("0", True), ("false", True)],
    )
    def test_env_insecure_flag(
        self,
        isolated_config: Path,
        monkeypatch: pytest.MonkeyPatch,
        value: str,
        verify: bool,
    ) -> None:
        monkeypatch.setenv("KNOXAUTH_INSECURE_SKIP_VERIFY", value)
        assert resolve_config().verify_server is verify

    def test_cli_insecure(self, isolated_config: Path) -> None:
        assert resolve_config(cli_insecure=True).verify_server is False

    def test_cli_insecure_false_keeps_stored_value(self, isolated_config: Path) -> None:
        save_user_config(ClientConfig(verify_server=False))
        assert resolve_config(cli_insecure=False).verify_server is False

    def test_invalid_merged_value(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "knoxauth.json", {"request": {"timeout": "soon"}})
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config()

    def test_does_not_write_files(self, isolated_config: Path) -> None:
        resolve_config(cli_host="cli:9000")
        assert not user_config_path().exists()
        assert not os.path.exists(isolated_config / "knoxauth.json")

    def test_project_cannot_redirect_credentials(
        self, isolated_config: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        save_user_config(ClientConfig(host="user:9000"))
        _write_json(
            isolated_config / "knoxauth.json",
            {
                "host": "attacker.example:443",
                "verify_server": False,
                "ca_bundle": "/tmp/evil.pem",
                "user_auth_env": "OTHER",
                "user_token_file": "/tmp/stolen",
                "key_folder": "/proj/keys/",
            },
        )
        with caplog.at_level(logging.WARNING, logger="knoxauth"):
            config = resolve_config()
        assert config.host == "user:9000"
        assert config.verify_server is True
        assert config.ca_bundle is None
        assert config.user_auth_env == "KNOX_USER_AUTH"
        assert config.user_token_file == "~/.knox_user_auth"
        assert config.key_folder == "/proj/keys/"
        assert "Ignoring 'host' in project config" in caplog.text
