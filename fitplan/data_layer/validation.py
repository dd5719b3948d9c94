"""Input validation for profiles and catalog records.

Fail fast: every check raises on the first violation and never clamps.
"""
from typing import Iterable

from fitplan.data_layer.exceptions import NutritionDataError, ProfileValidationError
from fitplan.data_layer.models import Recipe, UserProfile

AGE_RANGE = (14, 100)
HEIGHT_CM_RANGE = (100.0, 250.0)
WEIGHT_KG_RANGE = (30.0, 300.0)

# Relative tolerance between stated kcal and 4/9/4 macro calories
NUTRITION_RECONCILE_TOLERANCE = 0.15


def _check_range(field_name: str, value, low, high) -> None:
    if value is None or not (low <= value <= high):
        raise ProfileValidationError(field_name, value, f"[{low}, {high}]")


def validate_user_profile(profile: UserProfile) -> None:
    """Reject implausible biometrics and malformed preferences.

    Raises:
        ProfileValidationError: On the first offending field
    """
    _check_range("age", profile.age, *AGE_RANGE)
    _check_range("height_cm", profile.height_cm, *HEIGHT_CM_RANGE)
    _check_range("weight_kg", profile.weight_kg, *WEIGHT_KG_RANGE)
    _check_range("goal_weight_kg", profile.goal_weight_kg, *WEIGHT_KG_RANGE)

    minutes = profile.preferences.preferred_workout_minutes
    if minutes is not None and minutes <= 0:
        raise ProfileValidationError("preferences.preferred_workout_minutes", minutes, "> 0")
    if profile.equipment.dumbbells_kg is not None and profile.equipment.dumbbells_kg < 0:
        raise ProfileValidationError("equipment.dumbbells_kg", profile.equipment.dumbbells_kg, ">= 0")
    if profile.calorie_target is not None and profile.calorie_target <= 0:
        raise ProfileValidationError("calorie_target", profile.calorie_target, "> 0")
    for term in _all_terms(profile):
        if not isinstance(term, str) or not term.strip():
            raise ProfileValidationError("preferences", term, "non-empty strings")


def _all_terms(profile: UserProfile) -> Iterable[str]:
    yield from profile.preferences.dislikes
    yield from profile.preferences.likes
    yield from profile.health.allergies
    yield from profile.health.intolerances


def macro_kcal(protein: float, fat: float, carbs: float) -> float:
    """Calories implied by macros (4/9/4 kcal per gram)."""
    return protein * 4 + fat * 9 + carbs * 4


def validate_recipe_nutrition(recipe: Recipe) -> None:
    """Check a recipe's macros reconcile with its stated calories within 15%.

    Raises:
        NutritionDataError: If the recipe is inconsistent or has no calories
    """
    nutrition = recipe.per_portion
    computed = macro_kcal(nutrition.protein, nutrition.fat, nutrition.carbs)
    if nutrition.kcal <= 0:
        raise NutritionDataError(recipe.id, nutrition.kcal, computed, 1.0)
    deviation = abs(computed - nutrition.kcal) / nutrition.kcal
    if deviation > NUTRITION_RECONCILE_TOLERANCE:
        raise NutritionDataError(recipe.id, nutrition.kcal, computed, deviation)
