"""Workout planning: template selection, progression and session feedback."""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from fitplan.data_layer.exceptions import FailureCode, InputValidationError, PlanningFailure
from fitplan.data_layer.models import (
    BlockKind,
    FitnessLevel,
    Intensity,
    IntervalDetails,
    PersonalRecords,
    PreferredWorkout,
    RunDetails,
    StrengthDetails,
    StrengthExercise,
    UserProfile,
    WorkoutBlock,
    WorkoutCategory,
    WorkoutPlanDay,
    WorkoutTemplate,
)
from fitplan.data_layer.validation import validate_user_profile
from fitplan.nutrition.metrics import exercise_calories, round_half_up, round_int
from fitplan.workouts.fitness import count_improved_records, evaluate_fitness_level
from fitplan.workouts.templates import WORKOUT_TEMPLATES, eligible_templates

logger = logging.getLogger(__name__)

LEVEL_MULTIPLIERS: Dict[FitnessLevel, float] = {
    FitnessLevel.BEGINNER: 0.8,
    FitnessLevel.INTERMEDIATE: 1.0,
    FitnessLevel.ADVANCED: 1.2,
}
SESSION_STEP = 0.05
DAYS_PER_SESSION = 2

MIN_PUSHUP_REPS = 5
MIN_SITUP_REPS = 10
MIN_PLANK_SEC = 15
MIN_RUN_SPEED_KMH = 5.0

HIGH_RPE = 8
RECENT_RECORD_DAYS = 7

WEEKLY_ROTATION = (PreferredWorkout.STRENGTH, PreferredWorkout.CARDIO, PreferredWorkout.MIXED)
WEEKLY_SESSION_MINUTES = 25

CATEGORY_MATCHES = {
    PreferredWorkout.CARDIO: frozenset({WorkoutCategory.RUN, WorkoutCategory.INTERVAL}),
    PreferredWorkout.STRENGTH: frozenset({WorkoutCategory.STRENGTH}),
    PreferredWorkout.MIXED: frozenset({WorkoutCategory.MIXED}),
}
HIGH_IMPACT = frozenset({WorkoutCategory.RUN, WorkoutCategory.INTERVAL})


@dataclass(frozen=True)
class WorkoutPreferences:
    """Selection preferences; any field may be unset."""

    preferred_minutes: Optional[int] = None
    preferred_category: Optional[PreferredWorkout] = None
    avoid_high_impact: bool = False

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "WorkoutPreferences":
        prefs = profile.preferences
        return cls(
            preferred_minutes=prefs.preferred_workout_minutes,
            preferred_category=prefs.preferred_workout,
            avoid_high_impact=prefs.avoid_high_impact,
        )


@dataclass
class WorkoutPlanningResult:
    """Result of planning one session: a plan or an explicit failure."""

    success: bool
    workout: Optional[WorkoutPlanDay] = None
    failure: Optional[PlanningFailure] = None


@dataclass(frozen=True)
class WeeklyVolume:
    total_duration_min: int
    total_kcal_estimate: int
    strength_sessions: int
    cardio_sessions: int
    avg_rpe: Optional[float] = None


def session_number(created_at: Optional[date], plan_date: date) -> int:
    """One session every two days since the account was created, from 1."""
    if created_at is None:
        return 1
    elapsed = (plan_date - created_at).days
    return max(1, elapsed // DAYS_PER_SESSION + 1)


def intensity_multiplier(level: FitnessLevel, session: int) -> float:
    """Level factor compounded with +5% per session after the first."""
    return LEVEL_MULTIPLIERS[level] * (1 + SESSION_STEP * (session - 1))


def intensity_band(multiplier: float) -> Intensity:
    if multiplier > 1:
        return Intensity.HIGH
    if multiplier < 1:
        return Intensity.LOW
    return Intensity.MEDIUM


def score_template(template: WorkoutTemplate, preferences: WorkoutPreferences) -> float:
    """Duration closeness (up to 10), category match (+5), high impact (-3)."""
    score = 0.0
    if preferences.preferred_minutes:
        diff = abs(template.duration_min - preferences.preferred_minutes)
        score += max(0.0, 10 - diff / 5)
    if preferences.preferred_category is not None:
        if template.category in CATEGORY_MATCHES[preferences.preferred_category]:
            score += 5
    if preferences.avoid_high_impact and template.category in HIGH_IMPACT:
        score -= 3
    return score


def _progress_exercise(exercise: StrengthExercise, records: PersonalRecords, multiplier: float) -> StrengthExercise:
    changes = {}
    if exercise.movement == "push_up":
        changes["reps"] = max(MIN_PUSHUP_REPS, round_int(records.pushups_max * 0.7 * multiplier))
    elif exercise.movement == "sit_up":
        changes["reps"] = max(MIN_SITUP_REPS, round_int(records.situps_max * 0.7 * multiplier))
    elif exercise.movement == "plank" and exercise.duration_sec is not None:
        changes["duration_sec"] = max(MIN_PLANK_SEC, round_int(records.plank_sec * 0.8 * multiplier))

    load = records.max_loads.get(exercise.name)
    if load is None and exercise.movement:
        load = records.max_loads.get(exercise.movement)
    if load:
        changes["weight_kg"] = round_half_up(load * 0.7 * multiplier, 1)
    return replace(exercise, **changes) if changes else exercise


def progress_block(
    block: WorkoutBlock,
    records: PersonalRecords,
    multiplier: float,
    weight_kg: float,
) -> WorkoutBlock:
    """Personalise one template block and attach its calorie estimate.

    Returns a new block; the template block is left untouched.
    """
    details = block.details
    if block.kind == BlockKind.STRENGTH and isinstance(details, StrengthDetails):
        details = StrengthDetails(
            exercises=tuple(_progress_exercise(ex, records, multiplier) for ex in details.exercises)
        )
    elif block.kind == BlockKind.RUN and isinstance(details, RunDetails):
        details = replace(details, speed_kmh=round_half_up(max(MIN_RUN_SPEED_KMH, details.speed_kmh * multiplier), 1))
    elif block.kind == BlockKind.INTERVAL and isinstance(details, IntervalDetails):
        details = replace(
            details,
            work_sec=round_int(details.work_sec * multiplier),
            rest_sec=round_int(details.rest_sec / multiplier),
        )

    kcal = exercise_calories(block.kind, block.duration_min, weight_kg, intensity_band(multiplier))
    return replace(block, details=details, kcal_estimate=kcal)


class WorkoutPlanner:
    """Selects and personalises workout templates for a user."""

    def __init__(self, templates: Sequence[WorkoutTemplate] = WORKOUT_TEMPLATES):
        """Initialize workout planner.

        Args:
            templates: Template catalog, in tie-break order
        """
        self.templates = tuple(templates)

    def select_template(
        self,
        candidates: List[WorkoutTemplate],
        level: FitnessLevel,
        preferences: WorkoutPreferences,
    ) -> Optional[WorkoutTemplate]:
        """Best-scoring level-appropriate template; all candidates if none fit the level."""
        if not candidates:
            return None
        pool = [t for t in candidates if level in t.levels] or candidates
        best = pool[0]
        best_score = score_template(best, preferences)
        for template in pool[1:]:
            score = score_template(template, preferences)
            if score > best_score:
                best, best_score = template, score
        return best

    def plan_workout(
        self,
        user_profile: UserProfile,
        records: PersonalRecords,
        plan_date: date,
        preferences: Optional[WorkoutPreferences] = None,
    ) -> WorkoutPlanningResult:
        """Build one personalised session.

        Args:
            user_profile: User profile (read only)
            records: Current personal records
            plan_date: Session date
            preferences: Selection preferences; taken from the profile when None

        Returns:
            WorkoutPlanningResult with the session or a NO_ELIGIBLE_TEMPLATE failure

        Raises:
            ProfileValidationError: If the profile's biometrics are out of range
        """
        validate_user_profile(user_profile)
        if preferences is None:
            preferences = WorkoutPreferences.from_profile(user_profile)

        candidates = eligible_templates(self.templates, user_profile.equipment)
        if not candidates:
            logger.warning("No workout template fits the equipment of user %s", user_profile.id)
            return WorkoutPlanningResult(
                success=False,
                failure=PlanningFailure(
                    code=FailureCode.NO_ELIGIBLE_TEMPLATE,
                    message="No workout template fits the available equipment",
                    context={
                        "date": plan_date.isoformat(),
                        "capabilities": sorted(c.value for c in user_profile.equipment.capabilities()),
                    },
                ),
            )

        level = evaluate_fitness_level(records, user_profile.sex)
        template = self.select_template(candidates, level, preferences)
        session = session_number(user_profile.created_at, plan_date)
        multiplier = intensity_multiplier(level, session)
        logger.debug("Selected %s for level %s, session %d", template.id, level.value, session)

        blocks = [progress_block(b, records, multiplier, user_profile.weight_kg) for b in template.blocks]
        workout = WorkoutPlanDay(
            date=plan_date,
            template_id=template.id,
            fitness_level=level,
            session_number=session,
            intensity_multiplier=round_half_up(multiplier, 3),
            blocks=blocks,
            duration_min=template.duration_min,
            kcal_estimate=sum(b.kcal_estimate for b in blocks),
            user_id=user_profile.id,
            notes=f"{template.name} for level {level.value}. Session #{session}",
        )
        return WorkoutPlanningResult(success=True, workout=workout)

    def plan_week(
        self,
        user_profile: UserProfile,
        records: PersonalRecords,
        start_date: date,
        days_per_week: int = 3,
    ) -> List[WorkoutPlanDay]:
        """Spread ``days_per_week`` sessions across seven days.

        Sessions fall every floor(7 / days_per_week) days and rotate the
        preferred category strength, cardio, mixed at 25 minutes. Days
        without an eligible template are logged and left out.

        Raises:
            InputValidationError: If days_per_week is outside 1-7
        """
        if not 1 <= days_per_week <= 7:
            raise InputValidationError(
                f"days_per_week must be between 1 and 7, got {days_per_week}",
                days_per_week=days_per_week,
            )
        spacing = 7 // days_per_week
        sessions: List[WorkoutPlanDay] = []

        for offset in range(7):
            if offset % spacing != 0 or len(sessions) >= days_per_week:
                continue
            preferences = WorkoutPreferences(
                preferred_minutes=WEEKLY_SESSION_MINUTES,
                preferred_category=WEEKLY_ROTATION[len(sessions) % len(WEEKLY_ROTATION)],
                avoid_high_impact=user_profile.preferences.avoid_high_impact,
            )
            current = start_date + timedelta(days=offset)
            result = self.plan_workout(user_profile, records, current, preferences)
            if result.success:
                sessions.append(result.workout)
            else:
                logger.warning("Skipping workout on %s: %s", current.isoformat(), result.failure.message)
        return sessions


def suggest_progression(
    workout: WorkoutPlanDay,
    rpe: int,
    records: PersonalRecords,
    previous_records: Optional[PersonalRecords] = None,
) -> List[str]:
    """Advice for the next session after one was completed.

    Args:
        workout: The completed session
        rpe: Perceived exertion, 1-10
        records: Current personal records
        previous_records: Earlier snapshot to detect improvements

    Raises:
        InputValidationError: If rpe is outside 1-10
    """
    if not isinstance(rpe, int) or not 1 <= rpe <= 10:
        raise InputValidationError(f"RPE must be an integer from 1 to 10, got {rpe!r}", rpe=rpe)

    suggestions = []
    if rpe < HIGH_RPE:
        suggestions.append("The session felt comfortable. Consider raising the intensity next time.")
        for block in workout.blocks:
            if block.kind == BlockKind.STRENGTH:
                suggestions.append("Strength: add 1 set or 5% more reps on the basic exercises.")
            elif block.kind == BlockKind.RUN:
                suggestions.append("Cardio: raise speed by 0.5 km/h or add 2-3 minutes.")
            elif block.kind == BlockKind.INTERVAL:
                suggestions.append("Intervals: cut rest by 10-15 seconds or add one extra round.")
    else:
        suggestions.append("The session was very hard. Consider cutting weekly volume by 10% next week.")
        suggestions.append("Make sure to rest properly between sessions.")

    if _records_improved(workout.date, records, previous_records):
        suggestions.append("Congratulations on your new personal records! Keep the progression gradual.")
    return suggestions


def _records_improved(
    session_date: date,
    records: PersonalRecords,
    previous: Optional[PersonalRecords],
) -> bool:
    if count_improved_records(records, previous) > 0:
        return True
    if records.updated_at is None:
        return False
    return records.updated_at.date() >= session_date - timedelta(days=RECENT_RECORD_DAYS)


def weekly_volume(workouts: Sequence[WorkoutPlanDay]) -> WeeklyVolume:
    """Totals over the completed sessions of a week."""
    completed = [w for w in workouts if w.completed]
    strength = sum(1 for w in completed if any(b.kind == BlockKind.STRENGTH for b in w.blocks))
    cardio = sum(
        1 for w in completed if any(b.kind in (BlockKind.RUN, BlockKind.INTERVAL) for b in w.blocks)
    )
    rated = [w.rpe for w in completed if w.rpe is not None]
    return WeeklyVolume(
        total_duration_min=sum(w.duration_min for w in completed),
        total_kcal_estimate=sum(w.kcal_estimate for w in completed),
        strength_sessions=strength,
        cardio_sessions=cardio,
        avg_rpe=round_half_up(sum(rated) / len(rated), 1) if rated else None,
    )


def completed_rpes(workouts: Sequence[WorkoutPlanDay]) -> Tuple[int, ...]:
    """Perceived-exertion scores of completed sessions that recorded one."""
    return tuple(w.rpe for w in workouts if w.completed and w.rpe is not None)
