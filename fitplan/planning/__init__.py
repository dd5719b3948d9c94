"""Planning module for daily and weekly meal plans."""

from .day_templates import DAY_TEMPLATES, DayTemplate, select_day_template
from .meal_planner import (
    MealPlanner,
    PlanningResult,
    Substitution,
    WeekPlanningResult,
    scale_portions,
    validate_day,
)

__all__ = [
    "DAY_TEMPLATES",
    "DayTemplate",
    "select_day_template",
    "MealPlanner",
    "PlanningResult",
    "Substitution",
    "WeekPlanningResult",
    "scale_portions",
    "validate_day",
]
