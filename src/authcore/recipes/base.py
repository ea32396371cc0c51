"""Abstract base classes for recipes and the capabilities they implement.

A :class:`Recipe` is a pluggable unit registered with the client at
construction time. A recipe opts into an extension point by also
subclassing one or more :class:`Capability` interfaces, for example
:class:`~authcore.ingredients.emaildelivery.EmailDelivery`.

Example:
    Recipe overriding email delivery::

        class MyMailer(Recipe, EmailDelivery):
            @property
            def name(self) -> str:
                return "my-mailer"

            async def send_email(self, request, user_context):
                await smtp.send(...)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from authcore.models import AppInfo


class Capability(ABC):
    """Marker base class for capability interfaces.

    Every direct or indirect subclass that is itself abstract describes an
    extension point. The registry matches recipes to capabilities with
    ``isinstance``.
    """


class Recipe(ABC):
    """Base class for all recipes.

    Subclasses must implement the :attr:`name` property. Lifecycle hooks have
    no-op defaults so recipes only override what they need.

    The recipe lifecycle is:

    1. Instantiation by the embedding application.
    2. :meth:`on_init` -- called once at registration with the app info.
    3. Capability hooks -- called zero or more times.
    4. :meth:`aclose` -- called once when the registry is torn down.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique recipe name used for registration and logging."""
        ...

    @property
    def version(self) -> str:
        """Return the recipe version string. Defaults to ``"0.1.0"``."""
        return "0.1.0"

    @property
    def description(self) -> str:
        """Return a brief description of the recipe. Defaults to ``""``."""
        return ""

    def on_init(self, app_info: Optional[AppInfo]) -> None:
        """Called once when the recipe is registered.

        Args:
            app_info: Routing metadata of the embedding application, or
                ``None`` when the registry is used standalone.
        """

    def capabilities(self) -> tuple[type[Capability], ...]:
        """Return the capability interfaces this recipe implements.

        Only abstract subclasses of :class:`Capability` count, so concrete
        helper mixins do not register as extension points.
        """
        found: list[type[Capability]] = []
        for cls in type(self).__mro__:
            if (
                isinstance(cls, type)
                and issubclass(cls, Capability)
                and cls is not Capability
                and getattr(cls, "__abstractmethods__", None)
            ):
                found.append(cls)
        return tuple(found)

    async def aclose(self) -> None:
        """Called once during teardown to release recipe resources."""


@dataclass(frozen=True)
class RecipeHandle:
    """Stable reference to one registered recipe.

    Attributes:
        recipe: The registered recipe instance.
        capabilities: Capability interfaces declared at registration time.
        index: Registration position; later handles override earlier ones.
    """

    recipe: Recipe
    capabilities: tuple[type[Capability], ...]
    index: int

    @property
    def name(self) -> str:
        return self.recipe.name

    def implements(self, capability: type[Capability]) -> bool:
        return any(issubclass(declared, capability) for declared in self.capabilities)
