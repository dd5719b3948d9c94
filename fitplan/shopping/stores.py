"""Store configurations and discount pricing."""
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from fitplan.data_layer.models import BudgetLevel, FoodItem
from fitplan.nutrition.metrics import round_int


@dataclass(frozen=True)
class StoreConfig:
    """Discount policy of one store. Percentages are 0-100."""

    id: str
    name: str
    budget_discount_pct: float
    seasonal_discount_pct: float
    bulk_threshold_g: float
    bulk_discount_pct: float
    delivery_cost: int = 0
    low_budget_only: bool = False


@dataclass(frozen=True)
class PriceQuote:
    store_id: str
    original: int
    final: int
    applied_discounts: Tuple[str, ...] = ()

    @property
    def savings(self) -> int:
        return self.original - self.final


SUPERMARKET = StoreConfig(
    id="supermarket",
    name="Supermarket",
    budget_discount_pct=0,
    seasonal_discount_pct=5,
    bulk_threshold_g=2000,
    bulk_discount_pct=8,
    delivery_cost=2000,
)
MARKET = StoreConfig(
    id="market",
    name="Street market",
    budget_discount_pct=15,
    seasonal_discount_pct=20,
    bulk_threshold_g=1000,
    bulk_discount_pct=12,
)
DISCOUNT_STORE = StoreConfig(
    id="discount_store",
    name="Discount store",
    budget_discount_pct=25,
    seasonal_discount_pct=10,
    bulk_threshold_g=500,
    bulk_discount_pct=15,
    low_budget_only=True,
)

DEFAULT_STORE_CONFIGS: Tuple[StoreConfig, ...] = (SUPERMARKET, MARKET, DISCOUNT_STORE)


def available_stores(configs: Sequence[StoreConfig], budget_level: BudgetLevel) -> List[StoreConfig]:
    """Stores open to a budget tier; low budget unlocks the discount store."""
    return [c for c in configs if not c.low_budget_only or budget_level == BudgetLevel.LOW]


def quote_price(
    food: FoodItem,
    grams: float,
    store: StoreConfig,
    budget_level: BudgetLevel,
    month: int,
) -> PriceQuote:
    """Price ``grams`` of a food at one store.

    Budget (low tier only), seasonal and bulk discounts are each applied to
    the running price when their condition holds. Only the final price is
    rounded.

    Raises:
        ValueError: If the food has no price
    """
    if food.cost_per_kg is None:
        raise ValueError(f"Food '{food.id}' has no price")

    original = round_int(food.cost_per_kg / 1000 * grams)
    price = float(original)
    applied = []

    if budget_level == BudgetLevel.LOW and store.budget_discount_pct > 0:
        price -= price * store.budget_discount_pct / 100
        applied.append(f"budget {store.budget_discount_pct:g}%")
    if month in food.seasonal_months and store.seasonal_discount_pct > 0:
        price -= price * store.seasonal_discount_pct / 100
        applied.append(f"seasonal {store.seasonal_discount_pct:g}%")
    if grams >= store.bulk_threshold_g and store.bulk_discount_pct > 0:
        price -= price * store.bulk_discount_pct / 100
        applied.append(f"bulk {store.bulk_discount_pct:g}%")

    return PriceQuote(
        store_id=store.id,
        original=original,
        final=round_int(price),
        applied_discounts=tuple(applied),
    )


def cheapest_quote(quotes: Sequence[PriceQuote]) -> PriceQuote:
    """Lowest final price; the first store in order wins ties."""
    best = quotes[0]
    for quote in quotes[1:]:
        if quote.final < best.final:
            best = quote
    return best
