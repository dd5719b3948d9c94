"""Local (JSON-backed) catalog provider.

Wraps RecipeDB and FoodDB; workout templates come from the built-in table
unless another tuple is passed in.
"""

import logging
from typing import Sequence, Tuple

from fitplan.data_layer.catalog import FoodDB, RecipeDB
from fitplan.data_layer.exceptions import UnknownReferenceError
from fitplan.data_layer.models import FoodItem, Recipe, WorkoutTemplate
from fitplan.providers.catalog_provider import CatalogProvider
from fitplan.workouts.templates import WORKOUT_TEMPLATES

logger = logging.getLogger(__name__)


class LocalCatalogProvider(CatalogProvider):
    """Provider backed by local JSON recipe and food catalogs.

    Both files are read once at construction; lookups never touch disk.
    """

    def __init__(
        self,
        recipe_db: RecipeDB,
        food_db: FoodDB,
        workout_templates: Sequence[WorkoutTemplate] = WORKOUT_TEMPLATES,
    ) -> None:
        self._recipes = tuple(recipe_db.get_all_recipes())
        self._foods = tuple(food_db.get_all_foods())
        self._workout_templates = tuple(workout_templates)

    @classmethod
    def from_paths(cls, recipes_path: str, foods_path: str) -> "LocalCatalogProvider":
        provider = cls(RecipeDB(recipes_path), FoodDB(foods_path))
        provider.check_references()
        return provider

    def check_references(self) -> None:
        """Ensure every recipe ingredient names a food in the catalog.

        Raises:
            UnknownReferenceError: For the first ingredient with an unknown food id
        """
        food_ids = {food.id for food in self._foods}
        for recipe in self._recipes:
            for ingredient in recipe.ingredients:
                if ingredient.food_id not in food_ids:
                    logger.error("Recipe %s uses unknown food %s", recipe.id, ingredient.food_id)
                    raise UnknownReferenceError("food", ingredient.food_id)

    def recipes(self) -> Tuple[Recipe, ...]:
        return self._recipes

    def foods(self) -> Tuple[FoodItem, ...]:
        return self._foods

    def workout_templates(self) -> Tuple[WorkoutTemplate, ...]:
        return self._workout_templates
