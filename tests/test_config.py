"""Tests for settings resolution and credential sources."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from authcore.config import (
    CONFIG_ENV_VAR,
    ClientSettings,
    load_settings,
    load_settings_file,
    resolve_credential,
)
from authcore.exceptions import ConfigError


# ---------------------------------------------------------------------------
# Credential sources
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self) -> None:
        assert resolve_credential("env:CORE_KEY", {"CORE_KEY": "abc"}) == "abc"

    def test_env_source_missing(self) -> None:
        with pytest.raises(ConfigError, match="CORE_KEY"):
            resolve_credential("env:CORE_KEY", {})

    def test_file_source_strips_whitespace(self, tmp_path: Path) -> None:
        key_file = tmp_path / "key.txt"
        key_file.write_text("  secret-key\n")
        assert resolve_credential(f"file:{key_file}") == "secret-key"

    def test_file_source_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope.txt'}")

    def test_value_source(self) -> None:
        assert resolve_credential("value:literal") == "literal"

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("keyring:core:key")


# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------


class TestLoadSettingsFile:
    def test_reads_object(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text(json.dumps({"app_name": "shop"}))
        assert load_settings_file(path) == {"app_name": "shop"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_settings_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid settings file"):
            load_settings_file(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_settings_file(path)


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestLoadSettings:
    def test_defaults(self, isolated_env: pytest.MonkeyPatch) -> None:
        settings = load_settings()
        assert settings == ClientSettings()
        assert settings.telemetry is False

    def test_file_values(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text(
            json.dumps(
                {
                    "app_name": "shop",
                    "api_base_path": "/api",
                    "supported_versions": ["2.14"],
                }
            )
        )
        settings = load_settings(path, environ={})
        assert settings.app_name == "shop"
        assert settings.api_base_path == "/api"
        assert settings.supported_versions == ["2.14"]

    def test_file_from_env_var(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text(json.dumps({"app_name": "from-env-file"}))
        settings = load_settings(environ={CONFIG_ENV_VAR: str(path)})
        assert settings.app_name == "from-env-file"

    def test_env_overrides_file(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text(json.dumps({"app_name": "shop", "telemetry": False}))
        settings = load_settings(
            path,
            environ={
                "AUTHCORE_APP_NAME": "override",
                "AUTHCORE_TELEMETRY": "true",
                "AUTHCORE_TIMEOUT": "2.5",
            },
        )
        assert settings.app_name == "override"
        assert settings.telemetry is True
        assert settings.timeout == 2.5

    def test_recipe_discovery_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "authcore.json"
        path.write_text(json.dumps({"disabled_recipes": ["console-email"]}))
        settings = load_settings(path, environ={"AUTHCORE_DISCOVER_RECIPES": "1"})
        assert settings.discover_recipes is True
        assert settings.enabled_recipes == []
        assert settings.disabled_recipes == ["console-email"]

    def test_api_key_env_shorthand(self, isolated_env: pytest.MonkeyPatch) -> None:
        isolated_env.setenv("AUTHCORE_API_KEY", "from-env")
        settings = load_settings()
        assert settings.api_key_source == "env:AUTHCORE_API_KEY"
        assert settings.connection().api_key == "from-env"

    def test_invalid_values(self) -> None:
        with pytest.raises(ConfigError, match="Invalid client settings"):
            load_settings(environ={"AUTHCORE_TELEMETRY": "maybe"})


class TestClientSettings:
    def test_app_info(self) -> None:
        info = ClientSettings(app_name="shop", api_base_path="api").app_info()
        assert info.app_name == "shop"
        assert info.api_base_path == "/api"

    def test_app_info_invalid_domain(self) -> None:
        with pytest.raises(ConfigError, match="Invalid application settings"):
            ClientSettings(api_domain="api.shop.example").app_info()

    def test_connection_without_key(self) -> None:
        conn = ClientSettings(connection_uri="https://core.example").connection()
        assert conn.uri == "https://core.example"
        assert conn.api_key == ""

    def test_connection_invalid_uri(self) -> None:
        with pytest.raises(ConfigError, match="Invalid connection settings"):
            ClientSettings(connection_uri="ftp://core.example").connection()

    def test_connection_bad_key_source(self) -> None:
        with pytest.raises(ConfigError):
            ClientSettings(api_key_source="env:AUTHCORE_TEST_UNSET_KEY").connection()
