"""User profile loader for loading biometrics and preferences from YAML."""
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from fitplan.data_layer.exceptions import ProfileValidationError
from fitplan.data_layer.models import (
    BudgetLevel,
    Equipment,
    HealthData,
    PersonalRecords,
    Preferences,
    PreferredWorkout,
    ProteinPreference,
    Sex,
    UserProfile,
)
from fitplan.data_layer.validation import validate_user_profile


def _as_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _as_enum(enum_cls, field_name: str, value: Any, default=None):
    if value is None:
        return default
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ProfileValidationError(field_name, value, f"one of {{{allowed}}}")


def _str_tuple(values) -> tuple:
    return tuple(str(v) for v in (values or []))


def profile_from_dict(data: Dict[str, Any]) -> UserProfile:
    """Build and validate a UserProfile from a plain mapping.

    Expected sections: ``user`` (biometrics), and optional ``preferences``,
    ``health`` and ``equipment``.

    Raises:
        KeyError: If a required biometric field is missing
        ProfileValidationError: If a value is malformed or out of range
    """
    user = data["user"]
    prefs = data.get("preferences") or {}
    health = data.get("health") or {}
    equipment = data.get("equipment") or {}

    minutes = prefs.get("preferred_workout_minutes")
    calorie_target = user.get("calorie_target")

    profile = UserProfile(
        id=str(user["id"]),
        name=str(user.get("name", "")),
        sex=_as_enum(Sex, "sex", user["sex"]),
        age=int(user["age"]),
        height_cm=float(user["height_cm"]),
        weight_kg=float(user["weight_kg"]),
        goal_weight_kg=float(user["goal_weight_kg"]),
        goal_date=_as_date(user.get("goal_date")),
        budget_level=_as_enum(BudgetLevel, "budget_level", user.get("budget_level"), BudgetLevel.MEDIUM),
        calorie_target=int(calorie_target) if calorie_target is not None else None,
        created_at=_as_date(user.get("created_at")),
        preferences=Preferences(
            no_oil=bool(prefs.get("no_oil", False)),
            no_sugar=bool(prefs.get("no_sugar", False)),
            no_fried=bool(prefs.get("no_fried", False)),
            dislikes=_str_tuple(prefs.get("dislikes")),
            likes=_str_tuple(prefs.get("likes")),
            protein_preference=_as_enum(
                ProteinPreference,
                "preferences.protein_preference",
                prefs.get("protein_preference"),
                ProteinPreference.MEDIUM,
            ),
            intermittent_fasting=bool(prefs.get("intermittent_fasting", False)),
            batch_cooking=bool(prefs.get("batch_cooking", False)),
            avoid_high_impact=bool(prefs.get("avoid_high_impact", False)),
            preferred_workout=_as_enum(
                PreferredWorkout, "preferences.preferred_workout", prefs.get("preferred_workout")
            ),
            preferred_workout_minutes=int(minutes) if minutes is not None else None,
        ),
        health=HealthData(
            ldl=health.get("ldl"),
            hdl=health.get("hdl"),
            triglycerides=health.get("triglycerides"),
            allergies=_str_tuple(health.get("allergies")),
            intolerances=_str_tuple(health.get("intolerances")),
        ),
        equipment=Equipment(
            treadmill=bool(equipment.get("treadmill", False)),
            dumbbells_kg=float(equipment.get("dumbbells_kg") or 0.0),
            rope=bool(equipment.get("rope", False)),
            mat=bool(equipment.get("mat", False)),
            resistance_bands=bool(equipment.get("resistance_bands", False)),
        ),
    )
    validate_user_profile(profile)
    return profile


def records_from_dict(data: Optional[Dict[str, Any]]) -> PersonalRecords:
    """Build PersonalRecords from a ``records`` mapping; missing values are 0."""
    data = data or {}
    updated_at = data.get("updated_at")
    if updated_at is not None and not isinstance(updated_at, datetime):
        updated_at = datetime.fromisoformat(str(updated_at))
    return PersonalRecords(
        pushups_max=int(data.get("pushups_max", 0)),
        situps_max=int(data.get("situps_max", 0)),
        plank_sec=int(data.get("plank_sec", 0)),
        run_speed_kmh=float(data.get("run_speed_kmh", 0.0)),
        run_duration_min=float(data.get("run_duration_min", 0.0)),
        max_loads={str(k): float(v) for k, v in (data.get("max_loads") or {}).items()},
        updated_at=updated_at,
    )


class UserProfileLoader:
    """Loader for user profile configuration from YAML."""

    def __init__(self, yaml_path: str):
        """Initialize user profile loader from YAML file.

        Args:
            yaml_path: Path to YAML file containing user profile
        """
        self.yaml_path = Path(yaml_path)

    def load(self) -> UserProfile:
        """Load user profile from YAML file.

        Returns:
            UserProfile object

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            KeyError: If required fields are missing
            ProfileValidationError: If a value is out of range
        """
        with open(self.yaml_path, "r") as f:
            data = yaml.safe_load(f)
        return profile_from_dict(data)

    def load_records(self) -> PersonalRecords:
        """Load the optional ``records`` section of the same YAML file.

        Returns:
            PersonalRecords; all zero when the section is absent
        """
        with open(self.yaml_path, "r") as f:
            data = yaml.safe_load(f)
        return records_from_dict(data.get("records"))
