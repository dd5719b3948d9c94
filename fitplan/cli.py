#!/usr/bin/env python3
"""Command-line interface for the fitplan planners."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from fitplan.data_layer.exceptions import PlannerError
from fitplan.data_layer.planner_config import PlannerConfig, PlannerConfigLoader
from fitplan.data_layer.user_profile import UserProfileLoader
from fitplan.nutrition.metrics import calculate_all_metrics
from fitplan.output.formatters import (
    format_meal_day_json,
    format_meal_day_markdown,
    format_metrics_json,
    format_shopping_list_json,
    format_workout_day_json,
    to_json_string,
)
from fitplan.planning.meal_planner import MealPlanner
from fitplan.providers.local_provider import LocalCatalogProvider
from fitplan.shopping.shopping_list import (
    ShoppingListGenerator,
    batch_cooking_suggestions,
    group_by_store,
)
from fitplan.workouts.workout_planner import WorkoutPlanner

logger = logging.getLogger(__name__)


def _parse_date(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def load_config(path: Optional[str]) -> PlannerConfig:
    if path is None:
        return PlannerConfig.default()
    return PlannerConfigLoader(path).load()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate metrics, meal plans, workouts and shopping lists from a user profile"
    )
    parser.add_argument(
        "--profile",
        type=str,
        default="config/user_profile.yaml",
        help="Path to user profile YAML file (default: config/user_profile.yaml)"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Optional planner config YAML (activity factor, store overrides)"
    )
    parser.add_argument(
        "--recipes",
        type=str,
        default="data/recipes.json",
        help="Path to recipes JSON file (default: data/recipes.json)"
    )
    parser.add_argument(
        "--foods",
        type=str,
        default="data/foods.json",
        help="Path to foods JSON file (default: data/foods.json)"
    )
    parser.add_argument(
        "--output",
        type=str,
        choices=["markdown", "json"],
        default="json",
        help="Output format (default: json; markdown is available for meals)"
    )
    parser.add_argument(
        "--output-file",
        type=str,
        help="Optional file path to save output (default: print to stdout)"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("metrics", help="Show BMI, expenditure, calorie range and macros")

    meals = commands.add_parser("meals", help="Plan the meals of one day")
    meals.add_argument("--date", type=str, help="Plan date YYYY-MM-DD (default: today)")
    meals.add_argument("--rest-day", action="store_true", help="Leave out the post-workout slot")

    workout = commands.add_parser("workout", help="Plan one workout session")
    workout.add_argument("--date", type=str, help="Session date YYYY-MM-DD (default: today)")

    shopping = commands.add_parser("shopping", help="Plan a week of meals and build its shopping list")
    shopping.add_argument("--week-start", type=str, help="First day of the week YYYY-MM-DD (default: today)")
    return parser


def run(args: argparse.Namespace) -> str:
    """Execute one subcommand and return its rendered output."""
    profile_loader = UserProfileLoader(args.profile)
    user_profile = profile_loader.load()
    config = load_config(args.config)
    logger.info("Loaded profile %s", user_profile.id)

    if args.command == "metrics":
        metrics = calculate_all_metrics(user_profile, config.activity_factor)
        return to_json_string(format_metrics_json(metrics))

    if args.command == "workout":
        planner = WorkoutPlanner(config.workout_templates)
        result = planner.plan_workout(user_profile, profile_loader.load_records(), _parse_date(args.date))
        return to_json_string(format_workout_day_json(result))

    provider = LocalCatalogProvider.from_paths(args.recipes, args.foods)
    logger.info("Found %d recipes and %d foods", len(provider.recipes()), len(provider.foods()))
    meal_planner = MealPlanner(
        provider.recipes(),
        day_templates=config.day_templates,
        activity_factor=config.activity_factor,
    )

    if args.command == "meals":
        result = meal_planner.plan_daily_meals(
            user_profile, _parse_date(args.date), include_post_workout=not args.rest_day
        )
        recipes = {recipe.id: recipe for recipe in provider.recipes()}
        if args.output == "markdown" and result.success:
            return format_meal_day_markdown(result.daily_plan, recipes)
        return to_json_string(format_meal_day_json(result, recipes))

    week_start = _parse_date(args.week_start)
    week = meal_planner.plan_week(user_profile, week_start)
    for failed in week.failed_dates:
        logger.warning("No meals planned for %s", failed.isoformat())
    generator = ShoppingListGenerator(provider.foods(), provider.recipes(), config.store_configs)
    shopping_list = generator.generate(user_profile, week.days, week_start)
    return to_json_string(
        format_shopping_list_json(
            shopping_list,
            grouped=group_by_store(shopping_list, provider.foods()),
            batch_suggestions=batch_cooking_suggestions(shopping_list, provider.recipes()),
        )
    )


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    profile_path = Path(args.profile)
    if not profile_path.exists():
        print(f"Error: User profile file not found: {profile_path}", file=sys.stderr)
        print(f"Hint: Copy config/user_profile.yaml.example to {profile_path} and customize it", file=sys.stderr)
        sys.exit(1)

    if args.command in ("meals", "shopping"):
        for path in (args.recipes, args.foods):
            if not Path(path).exists():
                print(f"Error: Catalog file not found: {path}", file=sys.stderr)
                sys.exit(1)

    try:
        output = run(args)
    except argparse.ArgumentTypeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except PlannerError as e:
        print(f"Error [{e.code.value}]: {e.message}", file=sys.stderr)
        sys.exit(1)

    if args.output_file:
        Path(args.output_file).write_text(output)
        print(f"Output saved to {args.output_file}", file=sys.stderr)
    else:
        print(output)


if __name__ == "__main__":
    main()
