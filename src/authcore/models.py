"""Canonical Pydantic models shared across all authcore modules.

The models fall into three groups:

**Connection models** -- immutable values owned by the client facade for its
whole lifetime: :class:`AppInfo` and :class:`ConnectionConfig`.

**Response models** -- the JSON shapes returned by the core:
:class:`ApiVersions`, :class:`CoreConfig`, :class:`TelemetryStatus` and
:class:`StatusResponse`.

**Domain values** -- :class:`UserIdentity` (embedded in email delivery
requests) and :class:`HealthReport` (result of a connectivity check).

All models use Pydantic v2. Connection models and domain values are frozen;
changing the API key or core URI means constructing a new client.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


# --- Connection ---


def _normalise_path(value: str) -> str:
    """Return *value* with exactly one leading slash and no trailing slash."""
    value = value.strip()
    if not value or value == "/":
        return ""
    return "/" + value.strip("/")


def _check_http_url(value: str, label: str) -> str:
    """Reject anything that is not an absolute http(s) URL."""
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise ValueError(f"Invalid {label} '{value}': {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"Invalid {label} '{value}': expected an absolute http(s) URL")
    return value


class AppInfo(BaseModel):
    """Application routing metadata supplied by the embedding application.

    ``website_base_path`` is where public-facing auth pages live;
    ``api_base_path`` is the internal API root on the core and becomes the
    path component of every request URI.

    Example::

        AppInfo(app_name="shop", api_base_path="/api")
    """

    model_config = ConfigDict(frozen=True)

    app_name: str = ""
    website_domain: str = "http://127.0.0.1:80"
    api_domain: str = "http://127.0.0.1:3567"
    website_base_path: str = "/auth"
    api_base_path: str = "/auth"
    api_gateway_path: str = ""

    @field_validator("website_domain", "api_domain")
    @classmethod
    def _check_domain(cls, value: str, info: ValidationInfo) -> str:
        return _check_http_url(value, info.field_name.replace("_", " "))

    @field_validator("website_base_path", "api_base_path", "api_gateway_path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return _normalise_path(value)


class ConnectionConfig(BaseModel):
    """Where the core lives and how to authenticate against it.

    Attributes:
        uri: Root URI of the core service.
        api_key: Sent as the ``api-key`` header on every request.
        timeout: Optional transport timeout in seconds. ``None`` leaves
            deadlines entirely to the caller.
    """

    model_config = ConfigDict(frozen=True)

    uri: str = "http://127.0.0.1:3567"
    api_key: str = Field(default="", repr=False)
    timeout: Optional[float] = None

    @field_validator("uri")
    @classmethod
    def _check_uri(cls, value: str) -> str:
        return _check_http_url(value, "core URI")

    def rooted_at(self, base_path: str) -> ConnectionConfig:
        """Return a copy whose URI path is replaced by *base_path*.

        Every endpoint path is later joined onto this rooted URI, so the
        original path of :attr:`uri` never takes part in request routing.
        """
        url = httpx.URL(self.uri).copy_with(path=_normalise_path(base_path) or "/")
        return self.model_copy(update={"uri": str(url)})


# --- Core responses ---


class ApiVersions(BaseModel):
    """Body of ``GET /apiversion``."""

    versions: list[str]


class CoreConfig(BaseModel):
    """Body of ``GET /config``."""

    status: str
    path: Optional[str] = None


class TelemetryStatus(BaseModel):
    """Body of ``GET /telemetry``."""

    model_config = ConfigDict(populate_by_name=True)

    exists: bool
    telemetry_id: Optional[str] = Field(default=None, alias="telemetryId")


class StatusResponse(BaseModel):
    """Generic ``{"status": ...}`` body, e.g. from ``POST /user/remove``.

    A status other than ``"OK"`` is a normal, caller-visible result and not
    an error.
    """

    status: str

    @property
    def is_ok(self) -> bool:
        return self.status == "OK"


# --- Domain values ---


class UserIdentity(BaseModel):
    """A user as referenced by email delivery requests."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str


class HealthReport(BaseModel):
    """Outcome of calling ``/hello`` with several HTTP verbs.

    Attributes:
        expected: Greeting the trimmed body of every response must equal.
        results: Trimmed response text keyed by HTTP method.
        mismatches: Methods whose trimmed text was not the expected greeting.
    """

    expected: str = "Hello"
    results: dict[str, str] = Field(default_factory=dict)
    mismatches: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.mismatches
