"""Formatters for plan output (JSON and Markdown)."""

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from fitplan.data_layer.models import (
    BasicDetails,
    IntervalDetails,
    Meal,
    MealPlanDay,
    Metrics,
    Recipe,
    RunDetails,
    ShoppingList,
    StrengthDetails,
    StrengthExercise,
    WorkoutBlock,
)
from fitplan.planning.meal_planner import PlanningResult
from fitplan.progress.tracker import WeeklyProgressAnalysis, WeeklyReport
from fitplan.shopping.shopping_list import BatchCookingSuggestion, GroupedItem
from fitplan.workouts.workout_planner import WorkoutPlanningResult

SLOT_NAMES = {
    "breakfast": "Breakfast",
    "lunch": "Lunch",
    "snack": "Snack",
    "post_workout": "Post-workout",
    "dinner": "Dinner",
}


def format_portions(portions: float) -> str:
    """Format a portion count without trailing zeros (1.0 -> "1", 1.25 -> "1.25")."""
    if portions == int(portions):
        return str(int(portions))
    return f"{portions:.2f}".rstrip("0").rstrip(".")


def format_exercise(exercise: StrengthExercise) -> str:
    """Format a strength exercise as a string (e.g., "3 x 12 Push-ups, rest 60 s")."""
    if exercise.duration_sec is not None:
        volume = f"{exercise.sets} x {exercise.duration_sec} s"
    elif exercise.reps is not None:
        volume = f"{exercise.sets} x {exercise.reps}"
    else:
        volume = f"{exercise.sets} x max"
    load = f" @ {exercise.weight_kg:g} kg" if exercise.weight_kg else ""
    return f"{volume} {exercise.name}{load}, rest {exercise.rest_sec} s"


def format_metrics_json(metrics: Metrics) -> Dict[str, Any]:
    return {
        "bmi": metrics.bmi,
        "basal_rate": metrics.basal_rate,
        "total_expenditure": metrics.total_expenditure,
        "activity_factor": metrics.activity_factor,
        "calorie_range": {
            "min": metrics.calorie_range.min,
            "max": metrics.calorie_range.max,
            "target": metrics.calorie_range.target,
        },
        "macros": {
            "protein_g": metrics.macros.protein_g,
            "fat_g": metrics.macros.fat_g,
            "carbs_g": metrics.macros.carbs_g,
        },
    }


def _meal_json(meal: Meal, recipes: Mapping[str, Recipe]) -> Dict[str, Any]:
    recipe = recipes.get(meal.recipe_id)
    return {
        "slot": meal.slot.value,
        "recipe_id": meal.recipe_id,
        "recipe_name": recipe.name if recipe else None,
        "portions": meal.portions,
        "scheduled_time": meal.scheduled_time,
        "completed": meal.completed,
        "nutrition": {
            "kcal": meal.nutrition.kcal,
            "protein": meal.nutrition.protein,
            "fat": meal.nutrition.fat,
            "carbs": meal.nutrition.carbs,
            "fiber": meal.nutrition.fiber,
        },
    }


def format_meal_day_json(
    result: PlanningResult,
    recipes: Optional[Mapping[str, Recipe]] = None,
) -> Dict[str, Any]:
    """Format a meal PlanningResult as JSON (for API usage).

    Args:
        result: PlanningResult from meal planning
        recipes: Optional recipe lookup by id, used to add recipe names

    Returns:
        Dictionary ready for JSON serialization
    """
    if not result.success or result.daily_plan is None:
        body = {"success": False, "warnings": list(result.warnings)}
        if result.failure is not None:
            body.update(result.failure.to_dict())
        return body

    recipes = recipes or {}
    plan = result.daily_plan
    return {
        "success": True,
        "date": plan.date.isoformat(),
        "template_id": plan.template_id,
        "target_kcal": plan.target_kcal,
        "target_protein_g": plan.target_protein_g,
        "meals": [_meal_json(meal, recipes) for meal in plan.meals],
        "totals": {
            "kcal": plan.totals.kcal,
            "protein": plan.totals.protein,
            "fat": plan.totals.fat,
            "carbs": plan.totals.carbs,
            "fiber": plan.totals.fiber,
        },
        "validation": {
            "valid": plan.validation.valid,
            "issues": list(plan.validation.issues),
        },
        "adherence": plan.adherence,
        "notes": plan.notes,
        "warnings": list(result.warnings),
    }


def _block_details_json(block: WorkoutBlock) -> Dict[str, Any]:
    details = block.details
    if isinstance(details, RunDetails):
        return {
            "speed_kmh": details.speed_kmh,
            "continuous": details.continuous,
            "distance_km": details.distance_km,
            "incline": details.incline,
        }
    if isinstance(details, IntervalDetails):
        return {
            "work_sec": details.work_sec,
            "rest_sec": details.rest_sec,
            "rounds": details.rounds,
            "exercises": list(details.exercises),
        }
    if isinstance(details, StrengthDetails):
        return {
            "exercises": [
                {
                    "name": e.name,
                    "sets": e.sets,
                    "reps": e.reps,
                    "duration_sec": e.duration_sec,
                    "weight_kg": e.weight_kg,
                    "rest_sec": e.rest_sec,
                }
                for e in details.exercises
            ]
        }
    if isinstance(details, BasicDetails):
        return {"description": details.description, "intensity": details.intensity.value}
    raise TypeError(f"Unsupported block details: {type(details).__name__}")


def format_workout_day_json(result: WorkoutPlanningResult) -> Dict[str, Any]:
    """Format a WorkoutPlanningResult as JSON."""
    if not result.success or result.workout is None:
        body: Dict[str, Any] = {"success": False}
        if result.failure is not None:
            body.update(result.failure.to_dict())
        return body

    workout = result.workout
    return {
        "success": True,
        "date": workout.date.isoformat(),
        "template_id": workout.template_id,
        "fitness_level": workout.fitness_level.value,
        "session_number": workout.session_number,
        "intensity_multiplier": workout.intensity_multiplier,
        "duration_min": workout.duration_min,
        "kcal_estimate": workout.kcal_estimate,
        "blocks": [
            {
                "phase": block.phase.value,
                "kind": block.kind.value,
                "name": block.name,
                "duration_min": block.duration_min,
                "kcal_estimate": block.kcal_estimate,
                "details": _block_details_json(block),
            }
            for block in workout.blocks
        ],
        "notes": workout.notes,
    }


def format_shopping_list_json(
    shopping_list: ShoppingList,
    grouped: Optional[Mapping[str, Sequence[GroupedItem]]] = None,
    batch_suggestions: Optional[Sequence[BatchCookingSuggestion]] = None,
) -> Dict[str, Any]:
    """Format a ShoppingList as JSON. Costs are whole currency units.

    Args:
        shopping_list: Generated shopping list
        grouped: Optional output of ``group_by_store``, adds a ``by_store`` section
        batch_suggestions: Optional batch cooking ideas, adds ``batch_cooking``

    Returns:
        Dictionary ready for JSON serialization
    """
    body: Dict[str, Any] = {
        "week_start": shopping_list.week_start.isoformat(),
        "store_mode": shopping_list.store_mode,
        "items": [
            {
                "food_id": item.food_id,
                "name": item.name,
                "grams_total": item.grams_total,
                "store": item.store,
                "priority": item.priority.value,
                "original_cost": item.original_cost,
                "estimated_cost": item.estimated_cost,
                "savings": item.savings,
                "applied_discounts": list(item.applied_discounts),
                "used_in_recipes": list(item.used_in_recipes),
                "purchased": item.purchased,
            }
            for item in shopping_list.items
        ],
        "store_subtotals": dict(shopping_list.store_subtotals),
        "delivery_costs": dict(shopping_list.delivery_costs),
        "total_cost": shopping_list.total_cost,
        "total_savings": shopping_list.total_savings,
        "unpriced_food_ids": list(shopping_list.unpriced_food_ids),
    }
    if grouped is not None:
        body["by_store"] = {
            store: [
                {
                    "food_id": entry.item.food_id,
                    "name": entry.item.name,
                    "priority": entry.item.priority.value,
                    "notes": entry.notes,
                }
                for entry in entries
            ]
            for store, entries in grouped.items()
        }
    if batch_suggestions is not None:
        body["batch_cooking"] = [
            {
                "food_id": s.food_id,
                "batch_size_kg": s.batch_size_kg,
                "suggested_recipes": list(s.suggested_recipes),
                "prep_instructions": list(s.prep_instructions),
                "storage_days": s.storage_days,
            }
            for s in batch_suggestions
        ]
    return body


def format_meal_day_markdown(
    plan: MealPlanDay,
    recipes: Optional[Mapping[str, Recipe]] = None,
) -> str:
    """Format a MealPlanDay as Markdown.

    Args:
        plan: Planned day
        recipes: Optional recipe lookup by id, used for names and steps

    Returns:
        Formatted Markdown string
    """
    recipes = recipes or {}
    lines: List[str] = []

    lines.append(f"# Meal Plan for {plan.date.isoformat()}\n")
    if plan.validation.valid:
        lines.append("✅ **Plan meets nutrition targets**\n")
    else:
        lines.append("⚠️ **Plan has issues**\n")
        for issue in plan.validation.issues:
            lines.append(f"- {issue}")
        lines.append("")

    for meal in plan.meals:
        recipe = recipes.get(meal.recipe_id)
        name = recipe.name if recipe else meal.recipe_id
        slot = SLOT_NAMES.get(meal.slot.value, meal.slot.value.capitalize())
        time = f" ({meal.scheduled_time})" if meal.scheduled_time else ""
        lines.append(f"## {slot}{time}: {name}")
        lines.append(f"**Portions:** {format_portions(meal.portions)}")
        lines.append(
            f"**Nutrition:** {meal.nutrition.kcal} kcal, {meal.nutrition.protein} g protein, "
            f"{meal.nutrition.fat} g fat, {meal.nutrition.carbs} g carbs"
        )
        if recipe and recipe.steps:
            lines.append("")
            lines.append("### Steps")
            for idx, step in enumerate(recipe.steps, 1):
                lines.append(f"{idx}. {step}")
        lines.append("")

    lines.append("## Daily Totals")
    lines.append(f"**Calories:** {plan.totals.kcal} kcal (target {plan.target_kcal})")
    lines.append(f"**Protein:** {plan.totals.protein} g (target {plan.target_protein_g})")
    lines.append(f"**Fat:** {plan.totals.fat} g")
    lines.append(f"**Carbs:** {plan.totals.carbs} g")
    lines.append("")
    return "\n".join(lines)


def format_progress_markdown(analysis: WeeklyProgressAnalysis, report: WeeklyReport) -> str:
    """Format a weekly progress analysis and its report as Markdown."""
    lines = ["# Weekly Progress\n", report.summary, ""]

    lines.append("## Key Metrics")
    for label, value in report.metrics.items():
        lines.append(f"- **{label}:** {value}")
    lines.append("")

    if report.achievements:
        lines.append("## Achievements")
        for achievement in report.achievements:
            lines.append(f"- {achievement}")
        lines.append("")

    if analysis.suggestions:
        lines.append("## Suggestions")
        for suggestion in analysis.suggestions:
            marker = "❗" if suggestion.action_required else "ℹ️"
            lines.append(f"- {marker} {suggestion.message}")
        lines.append("")

    return "\n".join(lines)


def to_json_string(data: Dict[str, Any], indent: int = 2) -> str:
    """Serialize a formatted dictionary as a JSON string."""
    return json.dumps(data, indent=indent)
