"""Abstract base class for catalog providers.

Generators and front ends depend only on this interface; concrete providers
supply recipes, foods and workout templates from JSON files or built-in
tables without changing downstream logic.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from fitplan.data_layer.models import FoodItem, Recipe, WorkoutTemplate


class CatalogProvider(ABC):
    """Read-only access to the reference catalogs.

    Returned collections are tuples so callers cannot mutate shared state.
    """

    @abstractmethod
    def recipes(self) -> Tuple[Recipe, ...]:
        """Return every recipe in catalog order."""
        ...

    @abstractmethod
    def foods(self) -> Tuple[FoodItem, ...]:
        """Return every food item."""
        ...

    @abstractmethod
    def workout_templates(self) -> Tuple[WorkoutTemplate, ...]:
        """Return every workout template in catalog order."""
        ...

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        for recipe in self.recipes():
            if recipe.id == recipe_id:
                return recipe
        return None

    def get_food(self, food_id: str) -> Optional[FoodItem]:
        for food in self.foods():
            if food.id == food_id:
                return food
        return None
