"""Day templates: fixed distributions of daily calories across meal slots."""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from fitplan.data_layer.models import BudgetLevel, MealSlot, UserProfile
from fitplan.nutrition.metrics import round_int

# Default clock times per slot (HH:MM)
SLOT_TIMES: Mapping[MealSlot, str] = MappingProxyType({
    MealSlot.BREAKFAST: "08:00",
    MealSlot.LUNCH: "13:00",
    MealSlot.SNACK: "16:00",
    MealSlot.POST_WORKOUT: "18:30",
    MealSlot.DINNER: "20:00",
})


@dataclass(frozen=True)
class DayTemplate:
    """Calorie share per slot, in eating order. Shares sum to 1.0."""

    id: str
    name: str
    distribution: Tuple[Tuple[MealSlot, float], ...]

    @property
    def slots(self) -> Tuple[MealSlot, ...]:
        return tuple(slot for slot, _ in self.distribution)

    def fraction(self, slot: MealSlot) -> float:
        for candidate, share in self.distribution:
            if candidate == slot:
                return share
        return 0.0

    def total_fraction(self) -> float:
        return sum(share for _, share in self.distribution)

    def slot_targets(self, daily_kcal: int, include_post_workout: bool = True) -> Dict[MealSlot, int]:
        """Per-slot calorie targets (rounded kcal) for a daily total.

        On rest days (``include_post_workout=False``) the post-workout
        allowance is dropped and not redistributed.
        """
        targets = {}
        for slot, share in self.distribution:
            if slot is MealSlot.POST_WORKOUT and not include_post_workout:
                continue
            targets[slot] = round_int(daily_kcal * share)
        return targets


NORMAL_DAY = DayTemplate(
    id="normal_day",
    name="Normal day",
    distribution=(
        (MealSlot.BREAKFAST, 0.18),
        (MealSlot.LUNCH, 0.35),
        (MealSlot.SNACK, 0.15),
        (MealSlot.POST_WORKOUT, 0.05),
        (MealSlot.DINNER, 0.27),
    ),
)

FASTING_MORNING = DayTemplate(
    id="fasting_morning",
    name="Morning fast",
    distribution=(
        (MealSlot.LUNCH, 0.40),
        (MealSlot.SNACK, 0.20),
        (MealSlot.POST_WORKOUT, 0.05),
        (MealSlot.DINNER, 0.35),
    ),
)

SIMPLE_3_MEALS = DayTemplate(
    id="simple_3_meals",
    name="Three simple meals",
    distribution=(
        (MealSlot.BREAKFAST, 0.25),
        (MealSlot.LUNCH, 0.40),
        (MealSlot.DINNER, 0.35),
    ),
)

DAY_TEMPLATES: Tuple[DayTemplate, ...] = (NORMAL_DAY, FASTING_MORNING, SIMPLE_3_MEALS)


def get_day_template(template_id: str, templates: Tuple[DayTemplate, ...] = DAY_TEMPLATES) -> Optional[DayTemplate]:
    for template in templates:
        if template.id == template_id:
            return template
    return None


def select_day_template(
    profile: UserProfile,
    templates: Tuple[DayTemplate, ...] = DAY_TEMPLATES,
) -> DayTemplate:
    """Pick the day template for a profile.

    Intermittent fasting wins; a low budget without batch cooking gets the
    simple three-meal day; everyone else gets the normal day.
    """
    prefs = profile.preferences
    if prefs.intermittent_fasting:
        chosen = get_day_template(FASTING_MORNING.id, templates)
    elif profile.budget_level == BudgetLevel.LOW and not prefs.batch_cooking:
        chosen = get_day_template(SIMPLE_3_MEALS.id, templates)
    else:
        chosen = get_day_template(NORMAL_DAY.id, templates)
    return chosen or templates[0]
