"""Settings resolution for embedding applications.

The library itself only consumes :class:`~authcore.models.AppInfo` and
:class:`~authcore.models.ConnectionConfig`. This module builds them from the
places applications usually keep such settings:

* **Settings file** -- a JSON document deserialised into
  :class:`ClientSettings` (path given explicitly or via ``AUTHCORE_CONFIG``).
* **Environment variables** -- ``AUTHCORE_*`` overrides, see :data:`ENV_FIELDS`.
* **Credential sources** -- the API key is referenced by a source descriptor
  (``env:VAR``, ``file:/path`` or ``value:...``) and resolved by
  :func:`resolve_credential`, so secrets need not live in the settings file.

Precedence (high to low): environment, settings file, defaults.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from authcore.exceptions import ConfigError
from authcore.models import AppInfo, ConnectionConfig

CONFIG_ENV_VAR = "AUTHCORE_CONFIG"

ENV_FIELDS: dict[str, str] = {
    "AUTHCORE_APP_NAME": "app_name",
    "AUTHCORE_WEBSITE_DOMAIN": "website_domain",
    "AUTHCORE_API_DOMAIN": "api_domain",
    "AUTHCORE_WEBSITE_BASE_PATH": "website_base_path",
    "AUTHCORE_API_BASE_PATH": "api_base_path",
    "AUTHCORE_API_GATEWAY_PATH": "api_gateway_path",
    "AUTHCORE_CONNECTION_URI": "connection_uri",
    "AUTHCORE_API_KEY_SOURCE": "api_key_source",
    "AUTHCORE_TELEMETRY": "telemetry",
    "AUTHCORE_TIMEOUT": "timeout",
    "AUTHCORE_DISCOVER_RECIPES": "discover_recipes",
}
"""Environment variable name -> :class:`ClientSettings` field."""

_API_KEY_ENV_VAR = "AUTHCORE_API_KEY"


class ClientSettings(BaseModel):
    """Everything needed to construct a :class:`~authcore.client.CoreClient`."""

    app_name: str = ""
    website_domain: str = "http://127.0.0.1:80"
    api_domain: str = "http://127.0.0.1:3567"
    website_base_path: str = "/auth"
    api_base_path: str = "/auth"
    api_gateway_path: str = ""
    connection_uri: str = "http://127.0.0.1:3567"
    api_key_source: Optional[str] = Field(
        default=None,
        description="Credential source for the API key: env:VAR, file:/path, value:KEY",
    )
    telemetry: bool = False
    supported_versions: Optional[list[str]] = None
    timeout: Optional[float] = None
    discover_recipes: bool = False
    enabled_recipes: list[str] = Field(default_factory=list)
    disabled_recipes: list[str] = Field(default_factory=list)

    def app_info(self) -> AppInfo:
        """Build the application routing metadata.

        Raises:
            ConfigError: If a domain is not an absolute http(s) URL.
        """
        try:
            return AppInfo(
                app_name=self.app_name,
                website_domain=self.website_domain,
                api_domain=self.api_domain,
                website_base_path=self.website_base_path,
                api_base_path=self.api_base_path,
                api_gateway_path=self.api_gateway_path,
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid application settings: {exc}") from exc

    def connection(self) -> ConnectionConfig:
        """Build the connection config, resolving the API key source.

        Raises:
            ConfigError: If the API key source cannot be resolved.
        """
        api_key = resolve_credential(self.api_key_source) if self.api_key_source else ""
        try:
            return ConnectionConfig(
                uri=self.connection_uri, api_key=api_key, timeout=self.timeout
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid connection settings: {exc}") from exc


def load_settings_file(path: Union[str, Path]) -> dict[str, Any]:
    """Read a JSON settings file into a dict.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a JSON object.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid settings file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")
    return data


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, field_name in ENV_FIELDS.items():
        value = environ.get(var)
        if value:
            overrides[field_name] = value
    # A literal key in the environment is shorthand for an env: source.
    if "api_key_source" not in overrides and environ.get(_API_KEY_ENV_VAR):
        overrides["api_key_source"] = f"env:{_API_KEY_ENV_VAR}"
    return overrides


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientSettings:
    """Resolve :class:`ClientSettings` with full precedence.

    Args:
        path: Optional settings file. Falls back to ``$AUTHCORE_CONFIG``;
            without either only defaults and environment are used.
        environ: Environment mapping, defaults to :data:`os.environ`.

    Raises:
        ConfigError: If the file is invalid or the merged settings fail
            validation.
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    file_path = path or environ.get(CONFIG_ENV_VAR)
    if file_path:
        data.update(load_settings_file(file_path))

    data.update(_env_overrides(environ))

    try:
        return ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client settings: {exc}") from exc


def resolve_credential(source: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads the environment variable
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"value:SECRET"`` -- the literal value after the prefix

    Raises:
        ConfigError: If the source can't be resolved.
    """
    environ = os.environ if environ is None else environ

    if source.startswith("env:"):
        var_name = source[4:]
        value = environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source.startswith("value:"):
        return source[6:]

    raise ConfigError(f"Unknown credential source format: {source}")
