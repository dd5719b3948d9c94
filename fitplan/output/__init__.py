"""Output formatting for plans, shopping lists and progress reports."""

from fitplan.output.formatters import (
    format_meal_day_json,
    format_meal_day_markdown,
    format_metrics_json,
    format_progress_markdown,
    format_shopping_list_json,
    format_workout_day_json,
    to_json_string,
)

__all__ = [
    "format_meal_day_json",
    "format_meal_day_markdown",
    "format_metrics_json",
    "format_progress_markdown",
    "format_shopping_list_json",
    "format_workout_day_json",
    "to_json_string",
]
