"""Metrics calculator: BMI, basal rate, expenditure, calorie target, macros.

Pure functions, no state. Rounding is half-up (``round_half_up``) so results
match the published worked examples rather than Python's banker's rounding.

References:
- Mifflin MD, St Jeor ST, et al. (1990). "A new predictive equation for
  resting energy expenditure in healthy individuals." Am J Clin Nutr.
"""

import math
from typing import Dict, Tuple

from fitplan.data_layer.exceptions import InputValidationError
from fitplan.data_layer.models import (
    BlockKind,
    CalorieRange,
    Intensity,
    MacroTargets,
    Metrics,
    ProteinPreference,
    Sex,
    UserProfile,
)
from fitplan.data_layer.validation import validate_user_profile

# label -> multiplier
ACTIVITY_FACTORS: Dict[str, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "high": 1.725,
    "very_high": 1.9,
}
DEFAULT_ACTIVITY_FACTOR = ACTIVITY_FACTORS["moderate"]

CALORIE_FLOOR = {Sex.MALE: 1500, Sex.FEMALE: 1200}

# Deficit fractions by weight gap; surpluses are applied as negative deficits
LARGE_CHANGE_KG = 5.0
DEFICIT_LARGE_LOSS = 0.225
DEFICIT_SMALL_LOSS = 0.15
SURPLUS_LARGE_GAIN = 0.125
SURPLUS_SMALL_GAIN = 0.075

PROTEIN_G_PER_KG: Tuple[float, float] = (1.6, 2.2)
FAT_G_PER_KG = 0.6
KCAL_PER_G = {"protein": 4, "fat": 9, "carbs": 4}

KCAL_PER_KG_FAT = 7700
MAX_SAFE_DEFICIT = 0.25

# METs by block kind and intensity
MET_TABLE: Dict[BlockKind, Dict[Intensity, float]] = {
    BlockKind.RUN: {Intensity.LOW: 6, Intensity.MEDIUM: 8, Intensity.HIGH: 10},
    BlockKind.INTERVAL: {Intensity.LOW: 8, Intensity.MEDIUM: 10, Intensity.HIGH: 12},
    BlockKind.STRENGTH: {Intensity.LOW: 3, Intensity.MEDIUM: 5, Intensity.HIGH: 6},
    BlockKind.BASIC: {Intensity.LOW: 2.5, Intensity.MEDIUM: 3.5, Intensity.HIGH: 4.5},
}


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves toward +inf (2.5 -> 3, -2.5 -> -2)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def _require_positive(**values: float) -> None:
    for name, value in values.items():
        if value is None or value <= 0:
            raise InputValidationError(f"{name} must be positive, got {value!r}", **{name: value})


def bmi(weight_kg: float, height_cm: float) -> float:
    """Body mass index, weight / height_m², one decimal.

    Raises:
        InputValidationError: If weight or height is not positive
    """
    _require_positive(weight_kg=weight_kg, height_cm=height_cm)
    height_m = height_cm / 100
    return round_half_up(weight_kg / (height_m * height_m), 1)


def basal_rate(sex: Sex, weight_kg: float, height_cm: float, age: int) -> int:
    """Mifflin-St Jeor basal metabolic rate.

    Male:   10 × kg + 6.25 × cm − 5 × age + 5
    Female: 10 × kg + 6.25 × cm − 5 × age − 161
    """
    _require_positive(weight_kg=weight_kg, height_cm=height_cm, age=age)
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    adjustment = 5 if sex == Sex.MALE else -161
    return round_int(base + adjustment)


def validate_activity_factor(activity_factor: float) -> float:
    """Return the factor if it belongs to the table.

    Raises:
        InputValidationError: For any value outside ACTIVITY_FACTORS
    """
    for value in ACTIVITY_FACTORS.values():
        if math.isclose(value, activity_factor):
            return value
    raise InputValidationError(
        f"Activity factor {activity_factor} is not one of {sorted(ACTIVITY_FACTORS.values())}",
        activity_factor=activity_factor,
    )


def activity_factor_for_label(label: str) -> float:
    """Look up an activity factor by its label (sedentary ... very_high)."""
    key = label.strip().lower().replace(" ", "_")
    if key not in ACTIVITY_FACTORS:
        raise InputValidationError(
            f"Unknown activity level '{label}'", allowed=list(ACTIVITY_FACTORS)
        )
    return ACTIVITY_FACTORS[key]


def total_expenditure(basal: int, activity_factor: float) -> int:
    """Total daily energy expenditure = basal rate × activity factor."""
    factor = validate_activity_factor(activity_factor)
    return round_int(basal * factor)


def calorie_floor(sex: Sex) -> int:
    return CALORIE_FLOOR[sex]


def deficit_fraction(goal_weight_kg: float, current_weight_kg: float) -> float:
    """Deficit (positive) or surplus (negative) chosen by the weight gap."""
    weight_diff = goal_weight_kg - current_weight_kg
    if weight_diff < -LARGE_CHANGE_KG:
        return DEFICIT_LARGE_LOSS
    if weight_diff < 0:
        return DEFICIT_SMALL_LOSS
    if weight_diff > LARGE_CHANGE_KG:
        return -SURPLUS_LARGE_GAIN
    if weight_diff > 0:
        return -SURPLUS_SMALL_GAIN
    return 0.0


def calorie_target(
    expenditure: int,
    goal_weight_kg: float,
    current_weight_kg: float,
    sex: Sex,
) -> CalorieRange:
    """Daily calorie range with the sex-specific safety floor applied.

    The floor is the one place the core clamps instead of rejecting.
    """
    floor = calorie_floor(sex)
    pct = deficit_fraction(goal_weight_kg, current_weight_kg)
    target = max(round_int(expenditure * (1 - pct)), floor)
    return CalorieRange(
        min=max(round_int(target * 0.95), floor),
        max=round_int(target * 1.05),
        target=target,
    )


def calorie_range_for_target(target: int, sex: Sex) -> CalorieRange:
    """Range around an explicit target (e.g. one written back after adjustments)."""
    floor = calorie_floor(sex)
    target = max(target, floor)
    return CalorieRange(
        min=max(round_int(target * 0.95), floor),
        max=round_int(target * 1.05),
        target=target,
    )


def protein_ratio(preference: ProteinPreference) -> float:
    low, high = PROTEIN_G_PER_KG
    if preference == ProteinPreference.LOW:
        return low
    if preference == ProteinPreference.HIGH:
        return high
    return (low + high) / 2


def macros(
    kcal_target: int,
    goal_weight_kg: float,
    preference: ProteinPreference = ProteinPreference.MEDIUM,
) -> MacroTargets:
    """Split a calorie target into protein, fat and carbs (grams).

    Protein from the g/kg table, fat at 0.6 g/kg of goal weight, carbs take
    the remaining calories and never go negative.
    """
    if not isinstance(preference, ProteinPreference):
        try:
            preference = ProteinPreference(preference)
        except ValueError:
            raise InputValidationError(
                f"Unknown protein preference '{preference}'", preference=preference
            )
    protein_g = round_int(goal_weight_kg * protein_ratio(preference))
    fat_g = round_int(goal_weight_kg * FAT_G_PER_KG)
    remaining = kcal_target - protein_g * KCAL_PER_G["protein"] - fat_g * KCAL_PER_G["fat"]
    carbs_g = max(0, round_int(remaining / KCAL_PER_G["carbs"]))
    return MacroTargets(protein_g=protein_g, fat_g=fat_g, carbs_g=carbs_g)


def calculate_all_metrics(
    profile: UserProfile,
    activity_factor: float = DEFAULT_ACTIVITY_FACTOR,
) -> Metrics:
    """All metrics for a profile in one call.

    A ``calorie_target`` stored on the profile (written back after progress
    adjustments) replaces the derived target; it is still floor-clamped.

    Raises:
        ProfileValidationError: If the profile's biometrics are out of range
    """
    validate_user_profile(profile)
    basal = basal_rate(profile.sex, profile.weight_kg, profile.height_cm, profile.age)
    expenditure = total_expenditure(basal, activity_factor)
    if profile.calorie_target is not None:
        kcal_range = calorie_range_for_target(profile.calorie_target, profile.sex)
    else:
        kcal_range = calorie_target(expenditure, profile.goal_weight_kg, profile.weight_kg, profile.sex)
    return Metrics(
        bmi=bmi(profile.weight_kg, profile.height_cm),
        basal_rate=basal,
        total_expenditure=expenditure,
        calorie_range=kcal_range,
        macros=macros(kcal_range.target, profile.goal_weight_kg, profile.preferences.protein_preference),
        activity_factor=activity_factor,
    )


# --- Supplementary helpers ---


def bmi_category(value: float) -> str:
    if value < 18.5:
        return "underweight"
    if value < 25:
        return "normal"
    if value < 30:
        return "overweight"
    return "obese"


def exercise_calories(
    kind: BlockKind,
    duration_min: float,
    weight_kg: float,
    intensity: Intensity = Intensity.MEDIUM,
) -> int:
    """Estimated kcal: MET × body weight × hours."""
    met = MET_TABLE[kind][intensity]
    return round_int(met * weight_kg * (duration_min / 60))


def weekly_weight_loss_rate(daily_deficit_kcal: float) -> float:
    """Expected kg lost per week for a daily deficit (7700 kcal per kg)."""
    return round_half_up(daily_deficit_kcal * 7 / KCAL_PER_KG_FAT, 2)


def validate_deficit(current_kcal: float, target_kcal: float, sex: Sex) -> Tuple[bool, str]:
    """Check a target is above the floor and at most 25% below current intake.

    Returns:
        (safe, message) with an empty message when safe
    """
    floor = calorie_floor(sex)
    if target_kcal < floor:
        return False, f"Calorie target is below the safe minimum ({floor} kcal)"
    if current_kcal > 0 and (current_kcal - target_kcal) / current_kcal > MAX_SAFE_DEFICIT:
        return False, f"Calorie deficit is too aggressive (>{int(MAX_SAFE_DEFICIT * 100)}%)"
    return True, ""


def weight_progress(current_kg: float, start_kg: float, goal_kg: float) -> float:
    """Percent of the way from start to goal weight, clamped to [0, 100]."""
    if start_kg == goal_kg:
        return 100.0
    progress = (current_kg - start_kg) / (goal_kg - start_kg) * 100
    return max(0.0, min(100.0, round_half_up(progress, 1)))
