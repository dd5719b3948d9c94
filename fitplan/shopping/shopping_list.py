"""Weekly shopping list: consolidation, store assignment, notes and batch cooking."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from fitplan.data_layer.models import (
    BudgetLevel,
    FoodItem,
    MealPlanDay,
    Priority,
    Recipe,
    RecipeTag,
    ShoppingItem,
    ShoppingList,
    UserProfile,
)
from fitplan.nutrition.metrics import round_half_up, round_int
from fitplan.shopping.stores import (
    DEFAULT_STORE_CONFIGS,
    DISCOUNT_STORE,
    StoreConfig,
    available_stores,
    cheapest_quote,
    quote_price,
)

logger = logging.getLogger(__name__)

PRIMARY_PROTEINS = frozenset({"chicken_breast", "ground_beef_lean", "white_fish", "eggs", "protein_powder"})
STAPLE_VEGETABLES = frozenset({"mushrooms", "onion", "zucchini", "green_beans", "cucumber"})
STAPLE_MEDIUM_MIN_G = 500

BATCH_PROTEINS = ("chicken_breast", "ground_beef_lean", "white_fish")
BATCH_MIN_G = 1000
MAX_BATCH_RECIPES = 3
DEFAULT_STORAGE_DAYS = 3

PREP_INSTRUCTIONS: Mapping[str, Tuple[Tuple[str, ...], int]] = MappingProxyType({
    "chicken_breast": (
        (
            "Grill in large batches",
            "Cut into 150 g portions",
            "Vacuum-pack or store in airtight containers",
        ),
        4,
    ),
    "ground_beef_lean": (
        (
            "Cook the mince with onion",
            "Shape patties and freeze them separately",
            "Store in dated bags",
        ),
        5,
    ),
    "white_fish": (
        (
            "Bake fillets on trays at once",
            "Portion and chill quickly",
        ),
        DEFAULT_STORAGE_DAYS,
    ),
})

PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}
EGG_GRAMS = 60
MIXED_MODE = "mixed"


@dataclass
class ConsolidatedIngredient:
    food_id: str
    grams_total: float
    used_in_recipes: List[str] = field(default_factory=list)
    priority: Priority = Priority.LOW


@dataclass(frozen=True)
class GroupedItem:
    """A shopping item with its human-readable notes."""

    item: ShoppingItem
    notes: str


@dataclass(frozen=True)
class BatchCookingSuggestion:
    food_id: str
    batch_size_kg: float
    suggested_recipes: Tuple[str, ...]
    prep_instructions: Tuple[str, ...]
    storage_days: int


def ingredient_priority(food_id: str, grams_total: float) -> Priority:
    """High for primary proteins, medium for staple vegetables of 500 g or more."""
    if food_id in PRIMARY_PROTEINS:
        return Priority.HIGH
    if food_id in STAPLE_VEGETABLES and grams_total >= STAPLE_MEDIUM_MIN_G:
        return Priority.MEDIUM
    return Priority.LOW


def consolidate_ingredients(
    meal_plans: Iterable[MealPlanDay],
    recipes: Sequence[Recipe],
) -> List[ConsolidatedIngredient]:
    """Sum grams per food across every meal, scaled by portions.

    Meals pointing at unknown recipes are logged and skipped. Priority is
    assigned once the totals are known.
    """
    by_id = {recipe.id: recipe for recipe in recipes}
    consolidated: Dict[str, ConsolidatedIngredient] = {}

    for plan in meal_plans:
        for meal in plan.meals:
            recipe = by_id.get(meal.recipe_id)
            if recipe is None:
                logger.warning("Skipping meal on %s: unknown recipe '%s'", plan.date, meal.recipe_id)
                continue
            for ingredient in recipe.ingredients:
                entry = consolidated.setdefault(
                    ingredient.food_id, ConsolidatedIngredient(food_id=ingredient.food_id, grams_total=0.0)
                )
                entry.grams_total += ingredient.grams * meal.portions
                if recipe.id not in entry.used_in_recipes:
                    entry.used_in_recipes.append(recipe.id)

    for entry in consolidated.values():
        entry.priority = ingredient_priority(entry.food_id, entry.grams_total)
    return list(consolidated.values())


def store_mode(used_store_ids: Sequence[str], budget_level: BudgetLevel) -> str:
    """Single store used -> that store; low budget -> discount store; else mixed."""
    if len(used_store_ids) == 1:
        return used_store_ids[0]
    if budget_level == BudgetLevel.LOW:
        return DISCOUNT_STORE.id
    return MIXED_MODE


class ShoppingListGenerator:
    """Builds priced shopping lists from meal plans."""

    def __init__(
        self,
        foods: Sequence[FoodItem],
        recipes: Sequence[Recipe],
        store_configs: Sequence[StoreConfig] = DEFAULT_STORE_CONFIGS,
    ):
        """Initialize shopping list generator.

        Args:
            foods: Food catalog with prices and seasons
            recipes: Recipe catalog
            store_configs: Stores in tie-break order
        """
        self.foods = {food.id: food for food in foods}
        self.recipes = tuple(recipes)
        self.store_configs = tuple(store_configs)

    def generate(
        self,
        user_profile: UserProfile,
        meal_plans: Sequence[MealPlanDay],
        week_start: date,
        month: Optional[int] = None,
    ) -> ShoppingList:
        """Consolidate, price and assign every ingredient to its cheapest store.

        Args:
            user_profile: User profile (budget tier)
            meal_plans: Plan days to shop for
            week_start: First day of the shopping week
            month: Month for seasonal discounts; defaults to week_start's month

        Returns:
            ShoppingList with totals, savings and store mode
        """
        month = month or week_start.month
        budget = user_profile.budget_level
        stores = available_stores(self.store_configs, budget)
        subtotals = {store.id: 0 for store in stores}
        items: List[ShoppingItem] = []
        unpriced: List[str] = []
        total_savings = 0

        for ingredient in consolidate_ingredients(meal_plans, self.recipes):
            food = self.foods.get(ingredient.food_id)
            if food is None or food.cost_per_kg is None:
                logger.warning("No price for food '%s'; left off the priced list", ingredient.food_id)
                unpriced.append(ingredient.food_id)
                continue

            quote = cheapest_quote(
                [quote_price(food, ingredient.grams_total, store, budget, month) for store in stores]
            )
            subtotals[quote.store_id] += quote.final
            total_savings += quote.savings
            items.append(
                ShoppingItem(
                    food_id=food.id,
                    name=food.name,
                    grams_total=ingredient.grams_total,
                    store=quote.store_id,
                    priority=ingredient.priority,
                    original_cost=quote.original,
                    estimated_cost=quote.final,
                    applied_discounts=list(quote.applied_discounts),
                    used_in_recipes=list(ingredient.used_in_recipes),
                )
            )

        used = [store.id for store in stores if any(item.store == store.id for item in items)]
        delivery = {store.id: store.delivery_cost for store in stores if store.id in used}
        for store_id, cost in delivery.items():
            subtotals[store_id] += cost

        return ShoppingList(
            week_start=week_start,
            items=items,
            store_subtotals=subtotals,
            delivery_costs=delivery,
            total_cost=sum(item.estimated_cost for item in items) + sum(delivery.values()),
            total_savings=total_savings,
            store_mode=store_mode(used, budget),
            unpriced_food_ids=unpriced,
            user_id=user_profile.id,
        )


def quantity_note(grams: float) -> str:
    if grams >= 1000:
        return f"{round_half_up(grams / 1000, 1):g} kg approx."
    return f"{round_int(grams)} g"


def shopping_notes(item: ShoppingItem, food: Optional[FoodItem], month: int) -> str:
    """Quantity plus food-specific handling notes, joined with " • "."""
    notes = [quantity_note(item.grams_total)]
    if "chicken" in item.food_id:
        notes.append("prefer skinless breast")
    if "ground_beef" in item.food_id:
        notes.append("lean mince (90% meat)")
    if "fish" in item.food_id:
        notes.append("fresh or frozen")
    if item.food_id == "eggs":
        dozens = math.ceil(item.grams_total / EGG_GRAMS / 12)
        notes.append(f"{dozens} dozen")
    if food is not None and month in food.seasonal_months:
        notes.append("in season!")
    return " • ".join(notes)


def group_by_store(
    shopping_list: ShoppingList,
    foods: Sequence[FoodItem],
    month: Optional[int] = None,
) -> Dict[str, List[GroupedItem]]:
    """Items grouped by assigned store, high priority first within each store."""
    month = month or shopping_list.week_start.month
    by_id = {food.id: food for food in foods}
    grouped: Dict[str, List[GroupedItem]] = {}
    for item in shopping_list.items:
        notes = shopping_notes(item, by_id.get(item.food_id), month)
        grouped.setdefault(item.store, []).append(GroupedItem(item=item, notes=notes))
    for entries in grouped.values():
        entries.sort(key=lambda entry: PRIORITY_ORDER[entry.item.priority])
    return grouped


def batch_cooking_suggestions(
    shopping_list: ShoppingList,
    recipes: Sequence[Recipe],
) -> List[BatchCookingSuggestion]:
    """Batch preparation ideas for primary meats bought by the kilo."""
    suggestions = []
    for item in shopping_list.items:
        if item.food_id not in BATCH_PROTEINS or item.grams_total < BATCH_MIN_G:
            continue
        related = [
            recipe.name
            for recipe in recipes
            if recipe.uses_food(item.food_id) and recipe.has_tag(RecipeTag.BATCH_COOKABLE)
        ]
        instructions, storage_days = PREP_INSTRUCTIONS.get(item.food_id, ((), DEFAULT_STORAGE_DAYS))
        suggestions.append(
            BatchCookingSuggestion(
                food_id=item.food_id,
                batch_size_kg=round_half_up(item.grams_total / 1000, 1),
                suggested_recipes=tuple(related[:MAX_BATCH_RECIPES]),
                prep_instructions=instructions,
                storage_days=storage_days,
            )
        )
    return suggestions
