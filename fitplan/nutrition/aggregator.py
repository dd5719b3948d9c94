"""Nutrition aggregator for summing nutrition across meals and plan days."""
from typing import Iterable, List

from fitplan.data_layer.models import DayTotals, Meal, MealNutrition, MealPlanDay, Recipe
from fitplan.nutrition.metrics import round_int


class NutritionAggregator:
    """Aggregator for combining nutrition from multiple sources."""

    @staticmethod
    def scale_recipe(recipe: Recipe, portions: float) -> MealNutrition:
        """Scale a recipe's per-portion nutrition to a portion count.

        Args:
            recipe: Recipe to scale
            portions: Portion multiplier

        Returns:
            MealNutrition with integer kcal and grams
        """
        nutrition = recipe.per_portion
        return MealNutrition(
            kcal=round_int(nutrition.kcal * portions),
            protein=round_int(nutrition.protein * portions),
            fat=round_int(nutrition.fat * portions),
            carbs=round_int(nutrition.carbs * portions),
            fiber=round_int(nutrition.fiber * portions),
        )

    @staticmethod
    def aggregate_meals(meals: Iterable[Meal]) -> DayTotals:
        """Aggregate nutrition from multiple meals.

        Args:
            meals: Planned meals

        Returns:
            DayTotals with summed nutrition
        """
        total_kcal = 0
        total_protein = 0
        total_fat = 0
        total_carbs = 0
        total_fiber = 0

        for meal in meals:
            total_kcal += meal.nutrition.kcal
            total_protein += meal.nutrition.protein
            total_fat += meal.nutrition.fat
            total_carbs += meal.nutrition.carbs
            total_fiber += meal.nutrition.fiber

        return DayTotals(
            kcal=total_kcal,
            protein=total_protein,
            fat=total_fat,
            carbs=total_carbs,
            fiber=total_fiber,
        )

    @staticmethod
    def average_daily_totals(days: List[MealPlanDay]) -> DayTotals:
        """Average the daily totals of several plan days (0 for no days)."""
        if not days:
            return DayTotals()
        count = len(days)
        return DayTotals(
            kcal=round_int(sum(d.totals.kcal for d in days) / count),
            protein=round_int(sum(d.totals.protein for d in days) / count),
            fat=round_int(sum(d.totals.fat for d in days) / count),
            carbs=round_int(sum(d.totals.carbs for d in days) / count),
            fiber=round_int(sum(d.totals.fiber for d in days) / count),
        )
