"""Authenticated request dispatch against the core.

:class:`RequestPipeline` wraps a single pooled :class:`httpx.AsyncClient`
and turns every call into the same sequence of steps:

1. Join the endpoint path onto the rooted core URI.
2. Attach the ``api-key`` header.
3. For version-gated endpoints, resolve the CDI version through the
   :class:`~authcore.versioning.VersionNegotiator` and attach ``cdi-version``.
4. Attach query parameters and the JSON body.
5. Send, map failures to typed errors, and decode the body.

The pipeline keeps no per-request state, so one instance can serve
concurrent calls. It never retries and sets no timeout unless the
:class:`~authcore.models.ConnectionConfig` asks for one.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Collection, Optional, TypeVar, Union
from uuid import UUID

import httpx
from pydantic import BaseModel, ValidationError

from authcore.exceptions import (
    DecodeError,
    HttpStatusError,
    ProtocolError,
    TransportError,
)
from authcore.models import (
    ApiVersions,
    ConnectionConfig,
    CoreConfig,
    StatusResponse,
    TelemetryStatus,
)
from authcore.versioning import VersionNegotiator

logger = logging.getLogger(__name__)

API_KEY_HEADER = "api-key"
VERSION_HEADER = "cdi-version"

ModelT = TypeVar("ModelT", bound=BaseModel)


def join_url(root: Union[str, httpx.URL], path: str) -> httpx.URL:
    """Append the relative endpoint *path* to the path of *root*.

    Unlike RFC 3986 reference resolution, a leading ``/`` on *path* does not
    replace the root's path, so the API base path is always kept::

        >>> str(join_url("https://core.example/api", "/config"))
        'https://core.example/api/config'
    """
    root_url = httpx.URL(root)
    base = root_url.path.rstrip("/")
    relative = path.lstrip("/")
    return root_url.copy_with(path=f"{base}/{relative}")


class RequestPipeline:
    """Builds, sends, and decodes authenticated requests to the core.

    Must be used as an async context manager (or closed with :meth:`aclose`)
    so the underlying connection pool is released.

    Args:
        connection: Connection settings whose ``uri`` is already rooted at
            the API base path.
        supported_versions: Optional CDI versions this client understands;
            see :func:`~authcore.versioning.select_version`.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with RequestPipeline(connection) as pipeline:
            config = await pipeline.config("10512")
    """

    def __init__(
        self,
        connection: ConnectionConfig,
        supported_versions: Optional[Collection[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._connection = connection
        self._root = httpx.URL(connection.uri)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.negotiator = VersionNegotiator(self.api_versions, supported_versions)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestPipeline:
        self._open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    def _open(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._connection.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the pooled HTTP client, if one was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def root(self) -> httpx.URL:
        """The rooted core URI every endpoint path is joined onto."""
        return self._root

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    async def dispatch(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        requires_version: bool = True,
        response_model: Optional[type[ModelT]] = None,
    ) -> Union[ModelT, str]:
        """Send one authenticated request and decode its response.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, ...).
            path: Endpoint path relative to the API base path.
            params: Query parameters.
            json_body: JSON-serialisable request body.
            requires_version: Attach the negotiated ``cdi-version`` header.
            response_model: Pydantic model the JSON body must validate
                against. When ``None`` the raw text body is returned.

        Returns:
            An instance of *response_model*, or the response text.

        Raises:
            TransportError: On connection, DNS, or timeout failures.
            HttpStatusError: On a non-2xx status.
            DecodeError: If the body does not match *response_model*.
            NoSupportedVersion: If version negotiation finds no usable version.
            ProtocolError: If version discovery returns an unexpected body.
        """
        url = join_url(self._root, path)
        headers = {API_KEY_HEADER: self._connection.api_key}
        if requires_version:
            headers[VERSION_HEADER] = await self.negotiator.resolve()

        response = await self._send(method.upper(), url, headers, params, json_body)

        if not response.is_success:
            body = response.text[:200] if response.text else ""
            if (
                requires_version
                and response.status_code == 400
                and VERSION_HEADER in body.lower()
            ):
                self.negotiator.invalidate()
            raise HttpStatusError(response.status_code, body)

        if response_model is None:
            return response.text
        return self._decode(response, response_model)

    async def _send(
        self,
        method: str,
        url: httpx.URL,
        headers: dict[str, str],
        params: Optional[dict[str, Any]],
        json_body: Optional[Any],
    ) -> httpx.Response:
        client = self._open()
        kwargs: dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body

        logger.debug("%s %s", method, url)
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response, model: type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except json.JSONDecodeError as exc:
            raise DecodeError(
                f"Expected JSON for {model.__name__}, got: {response.text[:200]!r}"
            ) from exc
        except ValidationError as exc:
            raise DecodeError(
                f"Response does not match {model.__name__}: {exc}"
            ) from exc

    # ------------------------------------------------------------------ #
    # Core endpoints
    # ------------------------------------------------------------------ #

    async def api_versions(self) -> list[str]:
        """``GET /apiversion`` -- the versions offered by the core, most preferred first.

        Sent without a ``cdi-version`` header since it is how that header's
        value is discovered.

        Raises:
            ProtocolError: If the body is not ``{"versions": [str, ...]}``.
        """
        try:
            result = await self.dispatch(
                "GET", "/apiversion", requires_version=False, response_model=ApiVersions
            )
        except DecodeError as exc:
            raise ProtocolError(f"Could not parse CDI version list: {exc}") from exc
        return list(result.versions)

    async def config(self, pid: str) -> CoreConfig:
        """``GET /config?pid=...`` -- the core's config file location for a process."""
        return await self.dispatch(
            "GET", "/config", params={"pid": pid}, response_model=CoreConfig
        )

    async def telemetry(self) -> TelemetryStatus:
        """``GET /telemetry`` -- whether telemetry is registered and its id."""
        return await self.dispatch("GET", "/telemetry", response_model=TelemetryStatus)

    async def remove_user(self, user_id: Union[UUID, str]) -> StatusResponse:
        """``POST /user/remove`` with body ``{"userId": "<id>"}``."""
        return await self.dispatch(
            "POST",
            "/user/remove",
            json_body={"userId": str(user_id)},
            response_model=StatusResponse,
        )

    async def hello(self, method: str = "GET") -> str:
        """Send *method* to ``/hello`` and return the trimmed text body."""
        text = await self.dispatch(method, "/hello", requires_version=False)
        return text.strip()

