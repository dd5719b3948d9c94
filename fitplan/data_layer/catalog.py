"""Recipe and food catalogs loaded from JSON."""
import json
from pathlib import Path
from typing import Dict, List, Optional

from fitplan.data_layer.models import (
    FoodItem,
    MealCategory,
    NutritionPer100g,
    PortionNutrition,
    Recipe,
    RecipeIngredient,
    RecipeTag,
)
from fitplan.data_layer.validation import validate_recipe_nutrition

# Spellings used by older exported catalogs
LEGACY_TAGS = {
    "sin_aceite": RecipeTag.NO_OIL,
    "sin_azucar": RecipeTag.NO_SUGAR,
    "alta_prote": RecipeTag.HIGH_PROTEIN,
    "batch_cooking": RecipeTag.BATCH_COOKABLE,
    "rapida": RecipeTag.QUICK,
    "colesterol_friendly": RecipeTag.CHOLESTEROL_FRIENDLY,
    "vegetal": RecipeTag.PLANT_BASED,
    "bajo_sodio": RecipeTag.LOW_SODIUM,
}

LEGACY_CATEGORIES = {
    "desayuno": MealCategory.BREAKFAST,
    "almuerzo": MealCategory.LUNCH,
    "colacion": MealCategory.SNACK,
    "cena": MealCategory.DINNER,
}


def parse_tag(raw: str) -> RecipeTag:
    """Map a tag string (current or legacy spelling) to a RecipeTag.

    Raises:
        ValueError: If the tag is not part of the vocabulary
    """
    key = raw.strip().lower().replace("-", "_")
    if key in LEGACY_TAGS:
        return LEGACY_TAGS[key]
    return RecipeTag(key)


def parse_category(raw: str) -> MealCategory:
    key = raw.strip().lower()
    if key in LEGACY_CATEGORIES:
        return LEGACY_CATEGORIES[key]
    return MealCategory(key)


def parse_recipe(recipe_data: dict) -> Recipe:
    """Parse a single recipe from dictionary data.

    Args:
        recipe_data: Dictionary containing recipe data

    Returns:
        Recipe object
    """
    ingredients = tuple(
        RecipeIngredient(
            food_id=ing["food_id"],
            grams=float(ing["grams"]),
            note=ing.get("notes") or ing.get("note"),
        )
        for ing in recipe_data.get("ingredients", [])
    )
    nutrition = recipe_data["per_portion"]
    cost = recipe_data.get("cost_estimate")

    return Recipe(
        id=recipe_data["id"],
        name=recipe_data.get("name", recipe_data["id"]),
        category=parse_category(recipe_data["category"]),
        ingredients=ingredients,
        per_portion=PortionNutrition(
            kcal=float(nutrition["kcal"]),
            protein=float(nutrition["protein"]),
            fat=float(nutrition["fat"]),
            carbs=float(nutrition["carbs"]),
            fiber=float(nutrition.get("fiber", 0.0)),
        ),
        tags=frozenset(parse_tag(t) for t in recipe_data.get("tags", [])),
        steps=tuple(recipe_data.get("steps", [])),
        portions=int(recipe_data.get("portions", 1)),
        prep_time_min=int(recipe_data.get("prep_time_min", 0)),
        cook_time_min=int(recipe_data.get("cooking_time_min", recipe_data.get("cook_time_min", 0))),
        cost_estimate=float(cost) if cost is not None else None,
    )


def parse_food(food_data: dict) -> FoodItem:
    nutrition = food_data.get("per_100g", {})
    cost = food_data.get("cost_per_kg")
    return FoodItem(
        id=food_data["id"],
        name=food_data.get("name", food_data["id"]),
        per_100g=NutritionPer100g(
            kcal=float(nutrition.get("kcal", 0.0)),
            protein=float(nutrition.get("protein", 0.0)),
            fat=float(nutrition.get("fat", 0.0)),
            carbs=float(nutrition.get("carbs", 0.0)),
            fiber=float(nutrition.get("fiber", 0.0)),
            sodium=float(nutrition.get("sodium", 0.0)),
        ),
        cost_per_kg=float(cost) if cost is not None else None,
        seasonal_months=frozenset(int(m) for m in food_data.get("seasonal_months", [])),
    )


class RecipeDB:
    """Read-only recipe catalog loaded from JSON."""

    def __init__(self, json_path: str, strict: bool = True):
        """Initialize recipe database from JSON file.

        Args:
            json_path: Path to JSON file containing recipes
            strict: Reject recipes whose macros disagree with their calories

        Raises:
            NutritionDataError: If strict and a recipe is inconsistent
        """
        self.json_path = Path(json_path)
        self.strict = strict
        self._recipes: List[Recipe] = []
        self._load_recipes()

    def _load_recipes(self):
        with open(self.json_path, "r") as f:
            data = json.load(f)

        for recipe_data in data.get("recipes", []):
            recipe = parse_recipe(recipe_data)
            if self.strict:
                validate_recipe_nutrition(recipe)
            self._recipes.append(recipe)

    def get_all_recipes(self) -> List[Recipe]:
        """Get all recipes in catalog order."""
        return self._recipes.copy()

    def get_recipe_by_id(self, recipe_id: str) -> Optional[Recipe]:
        """Get a recipe by its ID.

        Args:
            recipe_id: Unique recipe identifier

        Returns:
            Recipe object if found, None otherwise
        """
        for recipe in self._recipes:
            if recipe.id == recipe_id:
                return recipe
        return None


class FoodDB:
    """Read-only food catalog (nutrition, prices, seasons) loaded from JSON."""

    def __init__(self, json_path: str):
        self.json_path = Path(json_path)
        self._foods: Dict[str, FoodItem] = {}
        with open(self.json_path, "r") as f:
            data = json.load(f)
        for food_data in data.get("foods", []):
            food = parse_food(food_data)
            self._foods[food.id] = food

    def get_all_foods(self) -> List[FoodItem]:
        return list(self._foods.values())

    def get_food(self, food_id: str) -> Optional[FoodItem]:
        return self._foods.get(food_id)
