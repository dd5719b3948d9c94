"""Recipe filtering and scoring for meal planning."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from fitplan.data_layer.models import (
    BudgetLevel,
    MealCategory,
    ProteinPreference,
    Recipe,
    RecipeTag,
    UserProfile,
)

HIGH_LDL_THRESHOLD = 130
LOW_BUDGET_MAX_TIME_MIN = 30
HIGH_COST_THRESHOLD = 1500


@dataclass(frozen=True)
class PersonalizationRules:
    """Hard filters and score modifiers derived from a user profile."""

    no_oil: bool = False
    no_sugar: bool = False
    budget_priority: bool = False
    cholesterol_friendly: bool = False
    high_protein: bool = False
    batch_cooking: bool = False
    excluded_ingredients: Tuple[str, ...] = ()
    preferred_ingredients: Tuple[str, ...] = ()
    max_total_time_min: Optional[int] = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "PersonalizationRules":
        prefs = profile.preferences
        health = profile.health
        low_budget = profile.budget_level == BudgetLevel.LOW
        excluded = prefs.dislikes + health.allergies + health.intolerances
        return cls(
            no_oil=prefs.no_oil,
            no_sugar=prefs.no_sugar,
            budget_priority=low_budget,
            cholesterol_friendly=health.ldl is not None and health.ldl > HIGH_LDL_THRESHOLD,
            high_protein=(
                profile.goal_weight_kg < profile.weight_kg
                or prefs.protein_preference == ProteinPreference.HIGH
            ),
            batch_cooking=prefs.batch_cooking,
            excluded_ingredients=tuple(term.lower() for term in excluded),
            preferred_ingredients=tuple(term.lower() for term in prefs.likes),
            max_total_time_min=LOW_BUDGET_MAX_TIME_MIN if low_budget else None,
        )


def _mentions_any(recipe: Recipe, terms: Iterable[str]) -> bool:
    """True if any ingredient food id contains one of the terms."""
    return any(
        term in ingredient.food_id.lower()
        for term in terms
        for ingredient in recipe.ingredients
    )


def passes_rules(recipe: Recipe, rules: PersonalizationRules) -> bool:
    """Hard elimination by mandatory preferences, exclusions and time."""
    if rules.no_oil and not recipe.has_tag(RecipeTag.NO_OIL):
        return False
    if rules.no_sugar and not recipe.has_tag(RecipeTag.NO_SUGAR):
        return False
    if _mentions_any(recipe, rules.excluded_ingredients):
        return False
    if rules.max_total_time_min is not None and recipe.total_time_min > rules.max_total_time_min:
        return False
    return True


def filter_recipes(
    recipes: Iterable[Recipe],
    rules: PersonalizationRules,
    category: Optional[MealCategory] = None,
) -> List[Recipe]:
    """Filter recipes by category and personalization rules, keeping catalog order.

    Args:
        recipes: Candidate recipes
        rules: Personalization rules for the user
        category: Required category, or None for any

    Returns:
        Recipes that survive every hard filter
    """
    return [
        recipe
        for recipe in recipes
        if (category is None or recipe.category == category) and passes_rules(recipe, rules)
    ]


@dataclass(frozen=True)
class ScoringWeights:
    """Points awarded by the scorer."""

    base: float = 60.0
    deviation_penalty: float = 100.0
    budget_bonus: float = 15.0
    cholesterol_bonus: float = 10.0
    high_protein_bonus: float = 10.0
    batch_cooking_bonus: float = 5.0
    quick_bonus: float = 5.0
    liked_ingredient_bonus: float = 5.0
    high_cost_penalty: float = 10.0

    def __post_init__(self):
        values = [
            self.base, self.deviation_penalty, self.budget_bonus,
            self.cholesterol_bonus, self.high_protein_bonus,
            self.batch_cooking_bonus, self.quick_bonus,
            self.liked_ingredient_bonus, self.high_cost_penalty,
        ]
        if any(v < 0 for v in values):
            raise ValueError("All scoring weights must be non-negative")


class RecipeScorer:
    """Scores recipes against a slot calorie target and the user's rules."""

    def __init__(self, weights: Optional[ScoringWeights] = None):
        """Initialize recipe scorer.

        Args:
            weights: Optional custom scoring weights
        """
        self.weights = weights or ScoringWeights()

    def score_recipe(self, recipe: Recipe, target_kcal: float, rules: PersonalizationRules) -> float:
        """Score a recipe for a meal slot.

        Args:
            recipe: Recipe to score
            target_kcal: Calorie target of the slot
            rules: Personalization rules

        Returns:
            Score from 0.0 to 100.0 (higher is better)
        """
        w = self.weights
        score = w.base - w.deviation_penalty * self.kcal_deviation(recipe, target_kcal)
        score += self._tag_bonus(recipe, rules)

        if _mentions_any(recipe, rules.preferred_ingredients):
            score += w.liked_ingredient_bonus

        if (
            rules.budget_priority
            and recipe.cost_estimate is not None
            and recipe.cost_estimate > HIGH_COST_THRESHOLD
        ):
            score -= w.high_cost_penalty

        return max(0.0, min(100.0, score))

    def _tag_bonus(self, recipe: Recipe, rules: PersonalizationRules) -> float:
        w = self.weights
        bonus = 0.0
        if rules.budget_priority and recipe.has_tag(RecipeTag.BUDGET):
            bonus += w.budget_bonus
        if rules.cholesterol_friendly and recipe.has_tag(RecipeTag.CHOLESTEROL_FRIENDLY):
            bonus += w.cholesterol_bonus
        if rules.high_protein and recipe.has_tag(RecipeTag.HIGH_PROTEIN):
            bonus += w.high_protein_bonus
        if rules.batch_cooking and recipe.has_tag(RecipeTag.BATCH_COOKABLE):
            bonus += w.batch_cooking_bonus
        if recipe.has_tag(RecipeTag.QUICK):
            bonus += w.quick_bonus
        return bonus

    @staticmethod
    def kcal_deviation(recipe: Recipe, target_kcal: float) -> float:
        """Relative deviation of one portion from the target."""
        if target_kcal <= 0:
            return 1.0
        return abs(recipe.per_portion.kcal - target_kcal) / target_kcal

    def select_best(
        self,
        candidates: List[Recipe],
        target_kcal: float,
        rules: PersonalizationRules,
        tolerance: float = 0.15,
    ) -> Optional[Recipe]:
        """Pick the best candidate for a slot.

        Only candidates within ``tolerance`` of the target compete when any
        exist. Highest score wins; ties go to the smallest absolute calorie
        difference, then to catalog order.

        Returns:
            The chosen recipe, or None if there are no candidates
        """
        if not candidates:
            return None

        in_range = [r for r in candidates if self.kcal_deviation(r, target_kcal) <= tolerance]
        pool = in_range or candidates

        ranked = sorted(
            pool,
            key=lambda r: (
                -self.score_recipe(r, target_kcal, rules),
                abs(r.per_portion.kcal - target_kcal),
            ),
        )
        return ranked[0]
