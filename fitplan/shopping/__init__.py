"""Shopping list generation and store pricing."""

from .shopping_list import (
    BatchCookingSuggestion,
    GroupedItem,
    ShoppingListGenerator,
    batch_cooking_suggestions,
    consolidate_ingredients,
    group_by_store,
    shopping_notes,
)
from .stores import DEFAULT_STORE_CONFIGS, PriceQuote, StoreConfig, quote_price

__all__ = [
    "BatchCookingSuggestion",
    "GroupedItem",
    "ShoppingListGenerator",
    "batch_cooking_suggestions",
    "consolidate_ingredients",
    "group_by_store",
    "shopping_notes",
    "DEFAULT_STORE_CONFIGS",
    "PriceQuote",
    "StoreConfig",
    "quote_price",
]
