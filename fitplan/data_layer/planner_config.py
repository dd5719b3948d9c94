"""Planner configuration: activity factor and catalog tables, with YAML overrides."""

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from fitplan.data_layer.exceptions import InputValidationError
from fitplan.data_layer.models import WorkoutTemplate
from fitplan.nutrition.metrics import (
    DEFAULT_ACTIVITY_FACTOR,
    activity_factor_for_label,
    validate_activity_factor,
)
from fitplan.planning.day_templates import DAY_TEMPLATES, DayTemplate
from fitplan.shopping.stores import DEFAULT_STORE_CONFIGS, StoreConfig
from fitplan.workouts.templates import WORKOUT_TEMPLATES

logger = logging.getLogger(__name__)

# setting -> type
STORE_OVERRIDE_FIELDS = {
    "budget_discount_pct": float,
    "seasonal_discount_pct": float,
    "bulk_threshold_g": float,
    "bulk_discount_pct": float,
    "delivery_cost": int,
}


@dataclass(frozen=True)
class PlannerConfig:
    """Immutable tables and tunables injected into the generators."""

    activity_factor: float
    store_configs: Tuple[StoreConfig, ...]
    workout_templates: Tuple[WorkoutTemplate, ...]
    day_templates: Tuple[DayTemplate, ...]

    @classmethod
    def default(cls) -> "PlannerConfig":
        return cls(
            activity_factor=DEFAULT_ACTIVITY_FACTOR,
            store_configs=DEFAULT_STORE_CONFIGS,
            workout_templates=WORKOUT_TEMPLATES,
            day_templates=DAY_TEMPLATES,
        )


def _activity_factor(value: Any) -> float:
    if isinstance(value, str):
        return activity_factor_for_label(value)
    return validate_activity_factor(float(value))


def _override_store(store: StoreConfig, overrides: Dict[str, Any]) -> StoreConfig:
    changes = {}
    for key, value in overrides.items():
        if key not in STORE_OVERRIDE_FIELDS:
            raise InputValidationError(f"Unknown store setting '{key}'", store=store.id)
        if float(value) < 0:
            raise InputValidationError(f"Store setting '{key}' must not be negative", store=store.id)
        changes[key] = STORE_OVERRIDE_FIELDS[key](value)
    return dataclasses.replace(store, **changes)


def config_from_dict(data: Dict[str, Any]) -> PlannerConfig:
    """Apply ``activity_factor`` and per-store ``stores`` overrides to the defaults.

    Args:
        data: Parsed YAML mapping

    Returns:
        PlannerConfig

    Raises:
        InputValidationError: If a value is out of range or a store is unknown
    """
    config = PlannerConfig.default()
    data = data or {}

    activity = config.activity_factor
    if "activity_factor" in data:
        activity = _activity_factor(data["activity_factor"])

    store_overrides = data.get("stores") or {}
    by_id = {store.id: store for store in config.store_configs}
    unknown = sorted(set(store_overrides) - set(by_id))
    if unknown:
        raise InputValidationError(f"Unknown store(s): {', '.join(unknown)}", allowed=sorted(by_id))

    stores = tuple(
        _override_store(store, store_overrides[store.id]) if store.id in store_overrides else store
        for store in config.store_configs
    )
    logger.debug("Planner config: activity factor %s, %d store override(s)", activity, len(store_overrides))
    return dataclasses.replace(config, activity_factor=activity, store_configs=stores)


class PlannerConfigLoader:
    """Loader for planner configuration from YAML."""

    def __init__(self, yaml_path: str):
        self.yaml_path = Path(yaml_path)

    def load(self) -> PlannerConfig:
        """Load planner configuration from YAML file.

        Returns:
            PlannerConfig with overrides applied

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            InputValidationError: If a value is invalid
        """
        with open(self.yaml_path, "r") as f:
            data = yaml.safe_load(f)
        return config_from_dict(data)
