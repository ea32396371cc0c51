"""Client facade -- one object per application talking to one core.

:class:`CoreClient` owns the :class:`~authcore.models.AppInfo`, the rooted
:class:`~authcore.models.ConnectionConfig`, a
:class:`~authcore.client.pipeline.RequestPipeline` and a
:class:`~authcore.recipes.RecipeRegistry`. Backend operations go through the
pipeline; extensible flows such as email delivery go through the registry.

All configuration is fixed at construction. To talk to a different core or
use a different API key, build a new client.
"""

from __future__ import annotations

import logging
from typing import Any, Collection, Iterable, Optional, Sequence, Union
from uuid import UUID

import httpx

from authcore.client.pipeline import RequestPipeline
from authcore.config import ClientSettings
from authcore.exceptions import OperationNotImplemented
from authcore.ingredients.emaildelivery import EmailDelivery, EmailDeliveryRequest
from authcore.models import (
    AppInfo,
    ConnectionConfig,
    CoreConfig,
    HealthReport,
    StatusResponse,
    TelemetryStatus,
)
from authcore.recipes.base import Recipe
from authcore.recipes.registry import RecipeRegistry

logger = logging.getLogger(__name__)

HEALTH_CHECK_METHODS: tuple[str, ...] = ("GET", "PUT", "POST", "DELETE")
HELLO_TEXT = "Hello"


class CoreClient:
    """Async client for the core service.

    Args:
        app_info: Application routing metadata. ``api_base_path`` becomes
            the path of every request URI.
        connection: Core URI and API key. Its path is replaced by
            ``app_info.api_base_path``.
        recipes: Recipes registered in order; later ones override earlier
            ones for the same capability.
        telemetry: Whether the embedding application opted into telemetry.
        supported_versions: Optional CDI versions this client understands.
        transport: Optional httpx transport, mainly for tests.
        discover: Also register recipes advertised through the
            ``authcore.recipes`` entry points. They are registered before
            *recipes*, so explicit recipes override discovered ones.
        enabled: Entry-point names to load when discovering (all if empty).
        disabled: Entry-point names to skip when discovering.

    Example::

        async with CoreClient(AppInfo(app_name="shop"), connection) as client:
            print(await client.api_version())
    """

    def __init__(
        self,
        app_info: Optional[AppInfo] = None,
        connection: Optional[ConnectionConfig] = None,
        recipes: Iterable[Recipe] = (),
        telemetry: bool = False,
        supported_versions: Optional[Collection[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        discover: bool = False,
        enabled: Iterable[str] = (),
        disabled: Iterable[str] = (),
    ) -> None:
        self._app_info = app_info or AppInfo()
        self._connection = (connection or ConnectionConfig()).rooted_at(
            self._app_info.api_base_path
        )
        self._telemetry = telemetry
        self._pipeline = RequestPipeline(
            self._connection,
            supported_versions=supported_versions,
            transport=transport,
        )
        self._recipes = RecipeRegistry()
        if discover:
            self._recipes.discover(self._app_info, enabled, disabled)
        for recipe in recipes:
            self._recipes.register(recipe, self._app_info)
        self._recipes.freeze()

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        recipes: Iterable[Recipe] = (),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> CoreClient:
        """Build a client from resolved :class:`~authcore.config.ClientSettings`."""
        return cls(
            app_info=settings.app_info(),
            connection=settings.connection(),
            recipes=recipes,
            telemetry=settings.telemetry,
            supported_versions=settings.supported_versions,
            transport=transport,
            discover=settings.discover_recipes,
            enabled=settings.enabled_recipes,
            disabled=settings.disabled_recipes,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> CoreClient:
        await self._pipeline.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP connection pool and tear down all recipes."""
        await self._pipeline.aclose()
        await self._recipes.aclose()

    # ------------------------------------------------------------------ #
    # Read-only state
    # ------------------------------------------------------------------ #

    @property
    def app_info(self) -> AppInfo:
        return self._app_info

    @property
    def connection(self) -> ConnectionConfig:
        """The connection config rooted at the API base path."""
        return self._connection

    @property
    def telemetry_enabled(self) -> bool:
        return self._telemetry

    @property
    def recipes(self) -> RecipeRegistry:
        return self._recipes

    @property
    def pipeline(self) -> RequestPipeline:
        return self._pipeline

    # ------------------------------------------------------------------ #
    # Backend operations
    # ------------------------------------------------------------------ #

    async def api_version(self) -> str:
        """Return the negotiated CDI version, discovering it on first use."""
        return await self._pipeline.negotiator.resolve()

    def invalidate_api_version(self) -> None:
        """Drop the cached CDI version; the next gated call re-negotiates."""
        self._pipeline.negotiator.invalidate()

    async def config(self, pid: str) -> CoreConfig:
        """Ask the core where its config file lives for process *pid*."""
        return await self._pipeline.config(pid)

    async def telemetry(self) -> TelemetryStatus:
        """Whether telemetry is registered with the core, and its id."""
        return await self._pipeline.telemetry()

    async def remove_user(self, user_id: Union[UUID, str]) -> StatusResponse:
        """Remove a user from the core.

        A status other than ``"OK"`` is returned as-is for the caller to
        inspect; it is not raised.
        """
        result = await self._pipeline.remove_user(user_id)
        if not result.is_ok:
            logger.debug("Core answered %s when removing user %s", result.status, user_id)
        return result

    async def hello(self, method: str = "GET") -> str:
        """Send *method* to ``/hello`` and return the trimmed body."""
        return await self._pipeline.hello(method)

    async def health_check(
        self, methods: Sequence[str] = HEALTH_CHECK_METHODS
    ) -> HealthReport:
        """Call ``/hello`` with every verb in *methods*.

        Unexpected bodies are listed in :attr:`HealthReport.mismatches`;
        transport and status failures still raise.
        """
        report = HealthReport(expected=HELLO_TEXT)
        for method in methods:
            text = await self.hello(method)
            report.results[method.upper()] = text
            if text != HELLO_TEXT:
                report.mismatches.append(method.upper())
        return report

    async def users_count(self, recipe_ids: Sequence[str] = ()) -> int:
        raise OperationNotImplemented("users_count")

    async def users(
        self,
        pagination_token: Optional[str] = None,
        limit: Optional[int] = None,
        recipe_ids: Sequence[str] = (),
    ) -> list[Any]:
        raise OperationNotImplemented("users")

    async def delete_user(self, user_id: Union[UUID, str]) -> None:
        raise OperationNotImplemented("delete_user", "use remove_user instead")

    # ------------------------------------------------------------------ #
    # Extensible flows
    # ------------------------------------------------------------------ #

    async def send_email(
        self,
        request: EmailDeliveryRequest,
        user_context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Deliver *request* through the last registered email delivery recipe.

        Raises:
            CapabilityNotImplemented: If no recipe implements email delivery.
            RecipeError: If the recipe fails.
        """
        await self._recipes.invoke(
            EmailDelivery, "send_email", request, dict(user_context or {})
        )
