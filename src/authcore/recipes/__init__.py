"""Recipe system for authcore -- registration and capability dispatch.

Key classes:

* :class:`Recipe` -- Abstract base class every recipe extends.
* :class:`Capability` -- Marker base class for extension-point interfaces.
* :class:`RecipeHandle` -- Stable reference to one registered recipe.
* :class:`RecipeRegistry` -- Ordered registry resolving capabilities with
  "last registration wins".
"""

from authcore.recipes.base import Capability, Recipe, RecipeHandle
from authcore.recipes.registry import ENTRY_POINT_GROUP, RecipeRegistry

__all__ = ["Capability", "Recipe", "RecipeHandle", "RecipeRegistry", "ENTRY_POINT_GROUP"]
