"""Recipe registry -- ordered registration and capability resolution.

:class:`RecipeRegistry` keeps recipes in registration order and resolves a
capability to the **last** registered recipe implementing it. Applications
register built-in defaults first and layer their own overrides afterwards.

The registry is append-only: there is no unregister operation. After
:meth:`RecipeRegistry.freeze` it is read-only, so concurrent capability
invocations need no locking.

Third-party packages can also contribute recipes through the
``authcore.recipes`` entry-point group::

    [project.entry-points."authcore.recipes"]
    my-mailer = "my_package.recipe:MyMailer"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Iterable, Optional

from authcore.exceptions import AuthCoreError, CapabilityNotImplemented, RecipeError
from authcore.models import AppInfo
from authcore.recipes.base import Capability, Recipe, RecipeHandle

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "authcore.recipes"
"""The entry-point group name used for recipe discovery."""


class RecipeRegistry:
    """Ordered, append-only collection of recipes.

    Example::

        registry = RecipeRegistry()
        registry.register(DefaultMailer())
        registry.register(AppMailer())      # overrides DefaultMailer
        registry.freeze()
        await registry.invoke(EmailDelivery, "send_email", request, {})
    """

    def __init__(self) -> None:
        self._handles: list[RecipeHandle] = []
        self._frozen = False

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def handles(self) -> tuple[RecipeHandle, ...]:
        """All handles in registration order."""
        return tuple(self._handles)

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, recipe: Recipe, app_info: Optional[AppInfo] = None) -> RecipeHandle:
        """Append *recipe* to the registry.

        Calls :meth:`~authcore.recipes.base.Recipe.on_init` and records the
        capabilities the recipe implements at this moment.

        Args:
            recipe: The recipe instance to register.
            app_info: Passed through to ``on_init``.

        Returns:
            The new :class:`~authcore.recipes.base.RecipeHandle`.

        Raises:
            RecipeError: If the registry is frozen or a recipe with the same
                name is already registered.
        """
        if self._frozen:
            raise RecipeError(
                f"Cannot register recipe '{recipe.name}': registry is frozen"
            )
        if any(handle.name == recipe.name for handle in self._handles):
            raise RecipeError(f"Recipe '{recipe.name}' is already registered")

        recipe.on_init(app_info)
        handle = RecipeHandle(
            recipe=recipe,
            capabilities=recipe.capabilities(),
            index=len(self._handles),
        )
        self._handles.append(handle)
        logger.info(
            "Registered recipe '%s' v%s (capabilities: %s)",
            recipe.name,
            recipe.version,
            ", ".join(c.__name__ for c in handle.capabilities) or "none",
        )
        return handle

    def discover(
        self,
        app_info: Optional[AppInfo] = None,
        enabled: Iterable[str] = (),
        disabled: Iterable[str] = (),
    ) -> list[str]:
        """Register recipes advertised through the ``authcore.recipes`` entry points.

        When *enabled* is non-empty only those names are loaded; otherwise
        every discovered recipe not in *disabled* is loaded. Entry points are
        registered in name order so the override order is reproducible.

        Returns:
            Names of the recipes that were registered. Recipes that fail to
            load are logged as warnings and skipped.

        Raises:
            RecipeError: If the registry is already frozen.
        """
        if self._frozen:
            raise RecipeError("Cannot discover recipes: registry is frozen")

        enabled_set = set(enabled)
        disabled_set = set(disabled)
        loaded: list[str] = []

        entry_points = importlib.metadata.entry_points(group=ENTRY_POINT_GROUP)
        for ep in sorted(entry_points, key=lambda e: e.name):
            if enabled_set and ep.name not in enabled_set:
                logger.debug("Recipe '%s' not in enabled list, skipping", ep.name)
                continue
            if ep.name in disabled_set:
                logger.debug("Recipe '%s' is disabled, skipping", ep.name)
                continue

            try:
                recipe_cls = ep.load()
                self.register(recipe_cls(), app_info)
                loaded.append(ep.name)
            except Exception as exc:
                logger.warning("Failed to load recipe '%s': %s", ep.name, exc)

        return loaded

    def freeze(self) -> None:
        """End the setup phase; further :meth:`register` calls fail."""
        self._frozen = True

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def implementers(self, capability: type[Capability]) -> list[RecipeHandle]:
        """Handles implementing *capability*, in registration order."""
        return [h for h in self._handles if h.implements(capability)]

    def resolve(self, capability: type[Capability]) -> Recipe:
        """Return the last registered recipe implementing *capability*.

        Raises:
            CapabilityNotImplemented: If no registered recipe implements it.
        """
        for handle in reversed(self._handles):
            if handle.implements(capability):
                return handle.recipe
        raise CapabilityNotImplemented(capability)

    async def invoke(
        self,
        capability: type[Capability],
        hook: str,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Await *hook* of the recipe that handles *capability*.

        The hook's return value is discarded; capabilities are side effects.

        Raises:
            CapabilityNotImplemented: If no registered recipe implements it.
            RecipeError: If the hook raises anything other than an
                :class:`~authcore.exceptions.AuthCoreError`.
        """
        if not hasattr(capability, hook):
            raise RecipeError(
                f"Capability '{capability.__name__}' has no hook named '{hook}'"
            )
        recipe = self.resolve(capability)
        logger.debug(
            "Dispatching %s.%s to recipe '%s'", capability.__name__, hook, recipe.name
        )
        try:
            await getattr(recipe, hook)(*args, **kwargs)
        except AuthCoreError:
            raise
        except Exception as exc:
            raise RecipeError(
                f"Recipe '{recipe.name}' failed in {capability.__name__}.{hook}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Tear down every recipe in reverse registration order.

        Exceptions from individual recipes are logged so that one recipe's
        failure does not prevent the others from closing.
        """
        for handle in reversed(self._handles):
            try:
                await handle.recipe.aclose()
            except Exception as exc:
                logger.warning("Error closing recipe '%s': %s", handle.name, exc)
