"""Unit tests for output formatters."""

import json
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from fitplan.data_layer.models import (
    BudgetLevel,
    DayTotals,
    Equipment,
    Meal,
    MealNutrition,
    MealPlanDay,
    MealSlot,
    Measurement,
    StrengthExercise,
)
from fitplan.nutrition.metrics import calculate_all_metrics
from fitplan.output.formatters import (
    format_exercise,
    format_meal_day_json,
    format_meal_day_markdown,
    format_metrics_json,
    format_portions,
    format_progress_markdown,
    format_shopping_list_json,
    format_workout_day_json,
    to_json_string,
)
from fitplan.planning.meal_planner import MealPlanner
from fitplan.progress.tracker import analyze_weekly_progress, weekly_report
from fitplan.shopping.shopping_list import ShoppingListGenerator, batch_cooking_suggestions, group_by_store
from fitplan.workouts.workout_planner import WorkoutPlanner

PLAN_DATE = date(2026, 4, 6)


@pytest.fixture
def meal_result(profile, recipes):
    return MealPlanner(recipes).plan_daily_meals(profile, PLAN_DATE)


@pytest.fixture
def recipe_lookup(recipes):
    return {recipe.id: recipe for recipe in recipes}


class TestSmallFormatters:
    """Test portion and exercise formatting."""

    def test_format_portions(self):
        assert format_portions(1.0) == "1"
        assert format_portions(1.25) == "1.25"
        assert format_portions(0.5) == "0.5"

    def test_format_exercise_reps(self):
        exercise = StrengthExercise(name="Push-ups", sets=3, rest_sec=60, reps=12)
        assert format_exercise(exercise) == "3 x 12 Push-ups, rest 60 s"

    def test_format_exercise_amrap_and_load(self):
        amrap = StrengthExercise(name="Push-ups", sets=3, rest_sec=90)
        assert format_exercise(amrap) == "3 x max Push-ups, rest 90 s"
        loaded = StrengthExercise(name="Goblet squat", sets=4, rest_sec=90, reps=10, weight_kg=7.5)
        assert format_exercise(loaded) == "4 x 10 Goblet squat @ 7.5 kg, rest 90 s"

    def test_format_exercise_timed(self):
        plank = StrengthExercise(name="Plank", sets=3, rest_sec=60, duration_sec=45)
        assert format_exercise(plank) == "3 x 45 s Plank, rest 60 s"


class TestJsonFormatters:
    """Test JSON formatting."""

    def test_metrics_json(self, profile):
        data = format_metrics_json(calculate_all_metrics(profile))
        assert data["bmi"] == 25.7
        assert data["calorie_range"]["target"] == 1884
        assert set(data["macros"]) == {"protein_g", "fat_g", "carbs_g"}

    def test_meal_day_json(self, meal_result, recipe_lookup):
        data = format_meal_day_json(meal_result, recipe_lookup)

        assert data["success"] is True
        assert data["date"] == "2026-04-06"
        assert data["template_id"] == "normal_day"
        assert data["totals"]["kcal"] == 1910
        assert data["meals"][0]["recipe_name"] == "Egg scramble"
        assert data["meals"][0]["slot"] == "breakfast"
        assert data["validation"] == {"valid": True, "issues": []}
        json.dumps(data)

    def test_meal_day_json_without_recipes(self, meal_result):
        data = format_meal_day_json(meal_result)
        assert data["meals"][0]["recipe_name"] is None

    def test_meal_day_json_failure(self, profile):
        data = format_meal_day_json(MealPlanner([]).plan_daily_meals(profile, PLAN_DATE))
        assert data["success"] is False
        assert data["failure_code"] == "NO_MEALS"
        assert data["warnings"]

    def test_workout_day_json(self, profile, records):
        result = WorkoutPlanner().plan_workout(profile, records, PLAN_DATE)
        data = format_workout_day_json(result)

        assert data["success"] is True
        assert data["template_id"] == "strength_bodyweight"
        assert data["fitness_level"] == "intermediate"
        assert [b["kind"] for b in data["blocks"]] == ["basic", "strength", "basic"]
        push_ups = data["blocks"][1]["details"]["exercises"][0]
        assert push_ups["reps"] == 9
        json.dumps(data)

    def test_workout_day_json_failure(self, profile, records):
        bare = replace(profile, equipment=Equipment())
        data = format_workout_day_json(WorkoutPlanner().plan_workout(bare, records, PLAN_DATE))
        assert data == {
            "success": False,
            "failure_code": "NO_ELIGIBLE_TEMPLATE",
            "message": "No workout template fits the available equipment",
            "context": {"date": "2026-04-06", "capabilities": []},
        }

    def test_shopping_list_json(self, profile, foods, recipes, meal_result):
        shopping_list = ShoppingListGenerator(foods, recipes).generate(
            profile, [meal_result.daily_plan], PLAN_DATE
        )
        data = format_shopping_list_json(shopping_list)

        assert data["week_start"] == "2026-04-06"
        assert data["total_cost"] == shopping_list.total_cost
        assert data["unpriced_food_ids"] == ["protein_powder"]
        assert all(isinstance(item["estimated_cost"], int) for item in data["items"])
        json.loads(to_json_string(data))
        assert "by_store" not in data
        assert "batch_cooking" not in data

    def test_shopping_list_json_with_notes_and_batch_cooking(self, profile, foods, recipes):
        bulk_chicken = MealPlanDay(
            date=PLAN_DATE,
            meals=[Meal(MealSlot.LUNCH, "chicken_rice", 6.0, MealNutrition(kcal=0, protein=0, fat=0, carbs=0))],
            totals=DayTotals(),
            template_id="simple_3_meals",
            target_kcal=1884,
            target_protein_g=124,
        )
        low_budget = replace(profile, budget_level=BudgetLevel.LOW)
        shopping_list = ShoppingListGenerator(foods, recipes).generate(low_budget, [bulk_chicken], PLAN_DATE)

        data = format_shopping_list_json(
            shopping_list,
            grouped=group_by_store(shopping_list, foods),
            batch_suggestions=batch_cooking_suggestions(shopping_list, recipes),
        )

        chicken = data["by_store"]["discount_store"][0]
        assert chicken["food_id"] == "chicken_breast"
        assert chicken["notes"] == "1.2 kg approx. • prefer skinless breast"
        assert data["batch_cooking"] == [
            {
                "food_id": "chicken_breast",
                "batch_size_kg": 1.2,
                "suggested_recipes": ["Grilled chicken with rice"],
                "prep_instructions": [
                    "Grill in large batches",
                    "Cut into 150 g portions",
                    "Vacuum-pack or store in airtight containers",
                ],
                "storage_days": 4,
            }
        ]
        json.loads(to_json_string(data))


class TestMarkdownFormatters:
    """Test Markdown formatting."""

    def test_meal_day_markdown(self, meal_result, recipe_lookup):
        markdown = format_meal_day_markdown(meal_result.daily_plan, recipe_lookup)

        assert markdown.startswith("# Meal Plan for 2026-04-06")
        assert "Plan meets nutrition targets" in markdown
        assert "## Breakfast (08:00): Egg scramble" in markdown
        assert "**Portions:** 1.5" in markdown
        assert "## Daily Totals" in markdown
        assert "**Calories:** 1910 kcal (target 1884)" in markdown

    def test_meal_day_markdown_falls_back_to_recipe_id(self, meal_result):
        markdown = format_meal_day_markdown(meal_result.daily_plan)
        assert "Egg scramble" not in markdown
        assert "egg_scramble" in markdown

    def test_progress_markdown(self, profile, records):
        measurements = [
            Measurement(date=date(2026, 4, 1), weight_kg=80.0),
            Measurement(date=date(2026, 4, 8), weight_kg=78.8),
        ]
        analysis = analyze_weekly_progress(
            profile, measurements, [], [], records, now=datetime(2026, 4, 8, tzinfo=timezone.utc)
        )
        report = weekly_report(profile, analysis, measurements, start_weight_kg=80.0)
        markdown = format_progress_markdown(analysis, report)

        assert markdown.startswith("# Weekly Progress")
        assert "- **Weekly weight change:** -1.5%" in markdown
        assert "## Suggestions" in markdown
        assert "very fast" in markdown
        assert "## Achievements" not in markdown
