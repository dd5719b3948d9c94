"""Tests for day templates and the meal planner."""
from dataclasses import replace
from datetime import date, timedelta

import pytest

from fitplan.data_layer.exceptions import FailureCode, NutritionDataError, ProfileValidationError
from fitplan.data_layer.models import (
    BudgetLevel,
    DayTotals,
    Meal,
    MealCategory,
    MealNutrition,
    MealPlanDay,
    MealSlot,
    PortionNutrition,
    Recipe,
)
from fitplan.nutrition.metrics import calculate_all_metrics
from fitplan.planning.day_templates import (
    DAY_TEMPLATES,
    FASTING_MORNING,
    NORMAL_DAY,
    SIMPLE_3_MEALS,
    select_day_template,
)
from fitplan.planning.meal_planner import MealPlanner, scale_portions, validate_day

PLAN_DATE = date(2026, 4, 6)


def _with_preferences(profile, **changes):
    return replace(profile, preferences=replace(profile.preferences, **changes))


def _meal(slot, completed=False):
    return Meal(
        slot=slot,
        recipe_id="r",
        portions=1.0,
        nutrition=MealNutrition(kcal=400, protein=30, fat=10, carbs=40),
        completed=completed,
    )


class TestDayTemplates:
    """Day template table and selection."""

    @pytest.mark.parametrize("template", DAY_TEMPLATES, ids=lambda t: t.id)
    def test_fractions_sum_to_one(self, template):
        assert abs(template.total_fraction() - 1.0) <= 0.01

    def test_normal_day_slot_targets(self):
        targets = NORMAL_DAY.slot_targets(1884)
        assert targets == {
            MealSlot.BREAKFAST: 339,
            MealSlot.LUNCH: 659,
            MealSlot.SNACK: 283,
            MealSlot.POST_WORKOUT: 94,
            MealSlot.DINNER: 509,
        }

    def test_rest_day_drops_post_workout(self):
        targets = NORMAL_DAY.slot_targets(2000, include_post_workout=False)
        assert MealSlot.POST_WORKOUT not in targets
        assert sum(targets.values()) == 1900

    def test_selection(self, profile):
        assert select_day_template(profile) is NORMAL_DAY
        assert select_day_template(_with_preferences(profile, intermittent_fasting=True)) is FASTING_MORNING
        low_budget = replace(profile, budget_level=BudgetLevel.LOW)
        assert select_day_template(low_budget) is SIMPLE_3_MEALS
        assert select_day_template(_with_preferences(low_budget, batch_cooking=True)) is NORMAL_DAY


class TestScalePortions:
    """Portion scaling."""

    def test_rounds_to_quarters(self, recipes):
        yogurt = next(r for r in recipes if r.id == "yogurt_snack")
        assert scale_portions(yogurt, 283) == 1.5
        assert scale_portions(yogurt, 250) == 1.25

    def test_clamped(self, recipes):
        yogurt = next(r for r in recipes if r.id == "yogurt_snack")
        assert scale_portions(yogurt, 10) == 0.5
        assert scale_portions(yogurt, 5000) == 2.0

    def test_idempotent(self, recipes):
        for recipe in recipes:
            for target in (90, 283, 509, 659, 1200):
                assert scale_portions(recipe, target) == scale_portions(recipe, target)


class TestValidateDay:
    """Day validation thresholds."""

    def test_valid_day(self):
        result = validate_day(DayTotals(kcal=1900, protein=120), 4, 1884, 124)
        assert result.valid
        assert result.issues == ()

    def test_calorie_deviation(self):
        result = validate_day(DayTotals(kcal=1200, protein=120), 4, 1884, 124)
        assert not result.valid
        assert len(result.issues) == 1

    def test_low_protein_and_too_few_meals(self):
        result = validate_day(DayTotals(kcal=1884, protein=90), 1, 1884, 124)
        assert not result.valid
        assert len(result.issues) == 2


class TestMealPlanDayAdherence:
    """Adherence of a single day."""

    def test_one_of_three_completed(self):
        day = MealPlanDay(
            date=PLAN_DATE,
            meals=[_meal(MealSlot.BREAKFAST, True), _meal(MealSlot.LUNCH), _meal(MealSlot.DINNER)],
            totals=DayTotals(),
            template_id="simple_3_meals",
            target_kcal=1800,
            target_protein_g=120,
        )
        assert day.adherence == 33

    def test_empty_day(self):
        day = MealPlanDay(
            date=PLAN_DATE, meals=[], totals=DayTotals(), template_id="normal_day",
            target_kcal=1800, target_protein_g=120,
        )
        assert day.adherence == 0


class TestMealPlanner:
    """End-to-end daily planning over the fixture catalog."""

    def test_plans_every_slot_of_normal_day(self, recipes, profile):
        result = MealPlanner(recipes).plan_daily_meals(profile, PLAN_DATE)

        assert result.success
        plan = result.daily_plan
        assert plan.template_id == "normal_day"
        assert [(m.slot, m.recipe_id, m.portions) for m in plan.meals] == [
            (MealSlot.BREAKFAST, "egg_scramble", 1.0),
            (MealSlot.LUNCH, "oily_chicken_lunch", 1.0),
            (MealSlot.SNACK, "yogurt_snack", 1.5),
            (MealSlot.POST_WORKOUT, "protein_shake", 0.75),
            (MealSlot.DINNER, "beef_mushroom_dinner", 1.0),
        ]
        assert plan.totals.kcal == 1910
        assert plan.target_kcal == 1884
        assert plan.validation.valid
        assert plan.meals[0].scheduled_time == "08:00"
        assert plan.notes == "Generated with template: Normal day"

    def test_no_oil_never_selects_untagged_recipe(self, recipes, profile):
        no_oil = _with_preferences(profile, no_oil=True)
        result = MealPlanner(recipes).plan_daily_meals(no_oil, PLAN_DATE)

        chosen = {m.recipe_id for m in result.daily_plan.meals}
        assert "oily_chicken_lunch" not in chosen
        assert "egg_scramble" not in chosen
        assert result.daily_plan.meals[1].recipe_id == "chicken_rice"

    def test_rest_day_has_no_post_workout(self, recipes, profile):
        result = MealPlanner(recipes).plan_daily_meals(profile, PLAN_DATE, include_post_workout=False)
        assert MealSlot.POST_WORKOUT not in [m.slot for m in result.daily_plan.meals]
        assert len(result.daily_plan.meals) == 4

    def test_fasting_day_has_no_breakfast(self, recipes, profile):
        fasting = _with_preferences(profile, intermittent_fasting=True)
        plan = MealPlanner(recipes).plan_daily_meals(fasting, PLAN_DATE).daily_plan
        assert plan.template_id == "fasting_morning"
        assert MealSlot.BREAKFAST not in [m.slot for m in plan.meals]

    def test_slot_without_candidates_is_skipped(self, recipes, profile):
        no_breakfast = [r for r in recipes if r.category.value != "breakfast"]
        result = MealPlanner(no_breakfast).plan_daily_meals(profile, PLAN_DATE)
        assert result.success
        assert MealSlot.BREAKFAST not in [m.slot for m in result.daily_plan.meals]
        assert any("breakfast" in w for w in result.warnings)

    def test_empty_catalog_is_a_failure(self, profile):
        result = MealPlanner([]).plan_daily_meals(profile, PLAN_DATE)
        assert not result.success
        assert result.daily_plan is None
        assert result.failure.code == FailureCode.NO_MEALS

    def test_inputs_are_not_mutated(self, recipes, profile):
        before = list(recipes)
        MealPlanner(recipes).plan_daily_meals(profile, PLAN_DATE)
        assert recipes == before


class TestInputChecks:
    """Invalid records handed straight to the planner are rejected."""

    ZERO_KCAL = Recipe(
        id="water_bowl",
        name="Water bowl",
        category=MealCategory.LUNCH,
        ingredients=(),
        per_portion=PortionNutrition(kcal=0, protein=0, fat=0, carbs=0),
    )

    def test_zero_calorie_recipe_rejected_by_planner(self, recipes):
        with pytest.raises(NutritionDataError) as exc_info:
            MealPlanner(list(recipes) + [self.ZERO_KCAL])
        assert exc_info.value.context["recipe_id"] == "water_bowl"

    def test_zero_calorie_recipe_cannot_be_scaled(self):
        with pytest.raises(NutritionDataError):
            scale_portions(self.ZERO_KCAL, 500)

    def test_out_of_range_profile(self, recipes, profile):
        with pytest.raises(ProfileValidationError) as exc_info:
            MealPlanner(recipes).plan_daily_meals(replace(profile, age=-3), PLAN_DATE)
        assert exc_info.value.field_name == "age"

    def test_out_of_range_profile_with_precomputed_metrics(self, recipes, profile):
        metrics = calculate_all_metrics(profile)
        with pytest.raises(ProfileValidationError):
            MealPlanner(recipes).plan_daily_meals(replace(profile, weight_kg=5000), PLAN_DATE, metrics=metrics)


class TestPlanWeek:
    """Weekly planning."""

    def test_seven_days(self, recipes, profile):
        week = MealPlanner(recipes).plan_week(profile, PLAN_DATE)
        assert week.success
        assert [d.date for d in week.days] == [PLAN_DATE + timedelta(days=i) for i in range(7)]

    def test_training_days_get_post_workout(self, recipes, profile):
        training = {PLAN_DATE, PLAN_DATE + timedelta(days=2)}
        week = MealPlanner(recipes).plan_week(profile, PLAN_DATE, training_days=training)
        for day in week.days:
            has_post_workout = MealSlot.POST_WORKOUT in [m.slot for m in day.meals]
            assert has_post_workout == (day.date in training)

    def test_failed_days_are_reported(self, profile):
        week = MealPlanner([]).plan_week(profile, PLAN_DATE)
        assert not week.success
        assert len(week.failed_dates) == 7


class TestSubstitutions:
    """Alternative recipes for an existing plan."""

    def test_closest_calories_first(self, recipes, profile):
        planner = MealPlanner(recipes)
        plan = planner.plan_daily_meals(profile, PLAN_DATE).daily_plan
        substitutions = planner.suggest_substitutions(plan, profile)

        lunch = next(s for s in substitutions if s.current_recipe_id == "oily_chicken_lunch")
        assert [r.id for r in lunch.alternatives] == ["chicken_rice", "beef_bowl"]

    def test_alternatives_respect_filters(self, recipes, profile):
        planner = MealPlanner(recipes)
        plan = planner.plan_daily_meals(profile, PLAN_DATE).daily_plan
        no_oil = _with_preferences(profile, no_oil=True)
        for substitution in planner.suggest_substitutions(plan, no_oil):
            assert "oily_chicken_lunch" not in [r.id for r in substitution.alternatives]
            assert substitution.current_recipe_id not in [r.id for r in substitution.alternatives]
