"""Meal planning system for generating daily and weekly meal plans."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Collection, List, Optional, Sequence, Tuple

from fitplan.data_layer.exceptions import FailureCode, NutritionDataError, PlanningFailure
from fitplan.data_layer.models import (
    DayTotals,
    Meal,
    MealPlanDay,
    Metrics,
    PlanValidation,
    Recipe,
    UserProfile,
)
from fitplan.data_layer.validation import macro_kcal, validate_recipe_nutrition, validate_user_profile
from fitplan.nutrition.aggregator import NutritionAggregator
from fitplan.nutrition.metrics import DEFAULT_ACTIVITY_FACTOR, calculate_all_metrics
from fitplan.planning.day_templates import DAY_TEMPLATES, SLOT_TIMES, DayTemplate, select_day_template
from fitplan.scoring.recipe_scorer import PersonalizationRules, RecipeScorer, filter_recipes

logger = logging.getLogger(__name__)

MIN_PORTIONS = 0.5
MAX_PORTIONS = 2.0
SELECTION_TOLERANCE = 0.15
SUBSTITUTION_TOLERANCE = 0.25
MAX_SUBSTITUTIONS = 3

# Day validation thresholds
MAX_KCAL_DEVIATION = 0.30
MIN_PROTEIN_RATIO = 0.80
MIN_MEALS = 2


def scale_portions(recipe: Recipe, target_kcal: float) -> float:
    """Portion count that brings a recipe closest to a calorie target.

    Clamped to [0.5, 2.0] and rounded to the nearest quarter portion.

    Raises:
        NutritionDataError: If the recipe states no calories per portion
    """
    nutrition = recipe.per_portion
    if nutrition.kcal <= 0:
        raise NutritionDataError(
            recipe.id, nutrition.kcal, macro_kcal(nutrition.protein, nutrition.fat, nutrition.carbs), 1.0
        )
    portions = target_kcal / nutrition.kcal
    portions = max(MIN_PORTIONS, min(MAX_PORTIONS, portions))
    return math.floor(portions * 4 + 0.5) / 4


def validate_day(totals: DayTotals, meal_count: int, target_kcal: int, target_protein_g: int) -> PlanValidation:
    """Flag a day whose totals stray too far from its targets.

    Invalid when calories deviate more than 30%, protein is below 80% of
    target, or fewer than two meals were produced.
    """
    issues = []
    if target_kcal > 0:
        deviation = abs(totals.kcal - target_kcal) / target_kcal
        if deviation > MAX_KCAL_DEVIATION:
            issues.append(
                f"Calories out of range: {totals.kcal} kcal (target {target_kcal}, {deviation:.0%} off)"
            )
    if target_protein_g > 0 and totals.protein < target_protein_g * MIN_PROTEIN_RATIO:
        issues.append(f"Protein too low: {totals.protein} g (target {target_protein_g} g)")
    if meal_count < MIN_MEALS:
        issues.append(f"Only {meal_count} meal(s) planned, at least {MIN_MEALS} required")
    return PlanValidation(valid=not issues, issues=tuple(issues))


@dataclass
class PlanningResult:
    """Result of planning one day: a plan or an explicit failure."""

    success: bool
    daily_plan: Optional[MealPlanDay] = None
    failure: Optional[PlanningFailure] = None
    warnings: List[str] = field(default_factory=list)


@dataclass
class WeekPlanningResult:
    """Seven days of planning; days that produced no meals are listed by date."""

    days: List[MealPlanDay]
    failed_dates: List[date]
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed_dates


@dataclass(frozen=True)
class Substitution:
    """Alternatives for one meal of an existing plan."""

    meal_index: int
    current_recipe_id: str
    alternatives: Tuple[Recipe, ...]


class MealPlanner:
    """Plans meals by template distribution, filtering and scored selection."""

    def __init__(
        self,
        recipes: Sequence[Recipe],
        recipe_scorer: Optional[RecipeScorer] = None,
        nutrition_aggregator: Optional[NutritionAggregator] = None,
        day_templates: Tuple[DayTemplate, ...] = DAY_TEMPLATES,
        activity_factor: float = DEFAULT_ACTIVITY_FACTOR,
    ):
        """Initialize meal planner.

        Args:
            recipes: Catalog recipes, in catalog order
            recipe_scorer: RecipeScorer instance for scoring recipes
            nutrition_aggregator: NutritionAggregator instance for summing nutrition
            day_templates: Day templates to choose from
            activity_factor: Activity factor used when metrics are not supplied

        Raises:
            NutritionDataError: If a recipe's macros do not reconcile with its calories
        """
        self.recipes = tuple(recipes)
        for recipe in self.recipes:
            validate_recipe_nutrition(recipe)
        self.recipe_scorer = recipe_scorer or RecipeScorer()
        self.nutrition_aggregator = nutrition_aggregator or NutritionAggregator()
        self.day_templates = day_templates
        self.activity_factor = activity_factor

    def plan_daily_meals(
        self,
        user_profile: UserProfile,
        plan_date: date,
        include_post_workout: bool = True,
        metrics: Optional[Metrics] = None,
    ) -> PlanningResult:
        """Plan every slot of one day.

        Select day template, split the calorie target across its slots, then
        per slot filter, score, select and scale. Slots without candidates are
        skipped; a day left with no meals is a NO_MEALS failure.

        Args:
            user_profile: User profile (read only)
            plan_date: Date of the plan
            include_post_workout: Plan the post-workout allowance (training day)
            metrics: Precomputed metrics; derived from the profile when None

        Returns:
            PlanningResult with the day plan or a failure

        Raises:
            ProfileValidationError: If the profile's biometrics are out of range
        """
        validate_user_profile(user_profile)
        if metrics is None:
            metrics = calculate_all_metrics(user_profile, self.activity_factor)
        rules = PersonalizationRules.from_profile(user_profile)
        template = select_day_template(user_profile, self.day_templates)
        target_kcal = metrics.calorie_range.target
        target_protein = metrics.macros.protein_g

        meals: List[Meal] = []
        warnings: List[str] = []
        slot_targets = template.slot_targets(target_kcal, include_post_workout)

        for slot, slot_kcal in slot_targets.items():
            candidates = filter_recipes(self.recipes, rules, slot.category)
            recipe = self.recipe_scorer.select_best(candidates, slot_kcal, rules, SELECTION_TOLERANCE)
            if recipe is None:
                message = f"No recipe for {slot.value} ({slot_kcal} kcal) on {plan_date.isoformat()}"
                logger.warning(message)
                warnings.append(message)
                continue

            portions = scale_portions(recipe, slot_kcal)
            meals.append(
                Meal(
                    slot=slot,
                    recipe_id=recipe.id,
                    portions=portions,
                    nutrition=self.nutrition_aggregator.scale_recipe(recipe, portions),
                    scheduled_time=SLOT_TIMES.get(slot),
                )
            )
            logger.debug("Slot %s: %s x%.2f", slot.value, recipe.id, portions)

        if not meals:
            return PlanningResult(
                success=False,
                failure=PlanningFailure(
                    code=FailureCode.NO_MEALS,
                    message=f"No meals could be planned for {plan_date.isoformat()}",
                    context={"date": plan_date.isoformat(), "template_id": template.id},
                ),
                warnings=warnings,
            )

        totals = self.nutrition_aggregator.aggregate_meals(meals)
        day = MealPlanDay(
            date=plan_date,
            meals=meals,
            totals=totals,
            template_id=template.id,
            target_kcal=target_kcal,
            target_protein_g=target_protein,
            validation=validate_day(totals, len(meals), target_kcal, target_protein),
            user_id=user_profile.id,
            notes=f"Generated with template: {template.name}",
        )
        warnings.extend(day.validation.issues)
        return PlanningResult(success=True, daily_plan=day, warnings=warnings)

    def plan_week(
        self,
        user_profile: UserProfile,
        start_date: date,
        training_days: Optional[Collection[date]] = None,
    ) -> WeekPlanningResult:
        """Plan seven consecutive days starting at ``start_date``.

        Args:
            user_profile: User profile (read only)
            start_date: First day of the week
            training_days: Dates that get the post-workout slot; all days when None

        Returns:
            WeekPlanningResult with planned days and failed dates
        """
        metrics = calculate_all_metrics(user_profile, self.activity_factor)
        days: List[MealPlanDay] = []
        failed: List[date] = []
        warnings: List[str] = []

        for offset in range(7):
            current = start_date + timedelta(days=offset)
            training = training_days is None or current in training_days
            result = self.plan_daily_meals(user_profile, current, training, metrics)
            warnings.extend(result.warnings)
            if result.success:
                days.append(result.daily_plan)
            else:
                failed.append(current)

        return WeekPlanningResult(days=days, failed_dates=failed, warnings=warnings)

    def suggest_substitutions(self, plan: MealPlanDay, user_profile: UserProfile) -> List[Substitution]:
        """Propose up to three alternatives per meal of an existing plan.

        Alternatives share the meal's category, pass the user's filters, sit
        within 25% of the current recipe's per-portion calories and exclude the
        current recipe. Closest calories first.
        """
        rules = PersonalizationRules.from_profile(user_profile)
        by_id = {recipe.id: recipe for recipe in self.recipes}
        suggestions = []

        for index, meal in enumerate(plan.meals):
            current = by_id.get(meal.recipe_id)
            if current is None:
                logger.warning("Meal %d references unknown recipe '%s'", index, meal.recipe_id)
                continue

            base_kcal = current.per_portion.kcal
            alternatives = [
                recipe
                for recipe in filter_recipes(self.recipes, rules, current.category)
                if recipe.id != current.id
                and abs(recipe.per_portion.kcal - base_kcal) / base_kcal <= SUBSTITUTION_TOLERANCE
            ]
            if not alternatives:
                continue
            alternatives.sort(key=lambda r: abs(r.per_portion.kcal - base_kcal))
            suggestions.append(
                Substitution(
                    meal_index=index,
                    current_recipe_id=current.id,
                    alternatives=tuple(alternatives[:MAX_SUBSTITUTIONS]),
                )
            )
        return suggestions
