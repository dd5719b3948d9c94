"""Scoring module for recipe filtering and evaluation."""

from .recipe_scorer import (
    PersonalizationRules,
    RecipeScorer,
    ScoringWeights,
    filter_recipes,
    passes_rules,
)

__all__ = [
    "PersonalizationRules",
    "RecipeScorer",
    "ScoringWeights",
    "filter_recipes",
    "passes_rules",
]
