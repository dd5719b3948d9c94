"""Workout planning: fitness levels, template catalog and progression."""

from .fitness import count_improved_records, evaluate_fitness_level
from .templates import WORKOUT_TEMPLATES, eligible_templates
from .workout_planner import (
    WeeklyVolume,
    WorkoutPlanner,
    WorkoutPlanningResult,
    WorkoutPreferences,
    suggest_progression,
    weekly_volume,
)

__all__ = [
    "count_improved_records",
    "evaluate_fitness_level",
    "WORKOUT_TEMPLATES",
    "eligible_templates",
    "WeeklyVolume",
    "WorkoutPlanner",
    "WorkoutPlanningResult",
    "WorkoutPreferences",
    "suggest_progression",
    "weekly_volume",
]
