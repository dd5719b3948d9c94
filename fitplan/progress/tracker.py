"""Weekly progress analysis, automatic adjustments, adherence and reports."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from fitplan.data_layer.models import (
    Measurement,
    MealPlanDay,
    PersonalRecords,
    ProgressSuggestion,
    RuleId,
    UserProfile,
    WaterIntake,
    WorkoutPlanDay,
)
from fitplan.data_layer.validation import validate_user_profile
from fitplan.nutrition.metrics import (
    DEFAULT_ACTIVITY_FACTOR,
    calculate_all_metrics,
    calorie_floor,
    round_half_up,
    round_int,
    weight_progress,
)
from fitplan.progress.rules import (
    HIGH_ADHERENCE_PCT,
    PROGRESS_RULES,
    ProgressContext,
    ProgressRule,
    WeightTrend,
    evaluate_rules,
    get_rule,
)
from fitplan.workouts.fitness import count_improved_records
from fitplan.workouts.workout_planner import completed_rpes

logger = logging.getLogger(__name__)

PROTEIN_COMPLIANT_ADHERENCE = 70
PROTEIN_COMPLIANT_RATIO = 0.9
WATER_COMPLIANT_RATIO = 0.8

FAST_LOSS_PCT = -1.0
NORMAL_LOSS_PCT = -0.25
GAIN_PCT = 0.25
TWO_WEEK_SLOW_LOSS_PCT = -0.5


@dataclass
class WeeklyProgressAnalysis:
    weight_change_pct: float
    weight_trend: WeightTrend
    adherence_score: int
    protein_compliance: int
    meal_days: int
    avg_rpe: Optional[float]
    improved_records: int
    suggestions: List[ProgressSuggestion] = field(default_factory=list)

    def fired(self, rule_id: RuleId) -> bool:
        return any(s.rule_id == rule_id for s in self.suggestions)

    @property
    def kcal_adjustment_needed(self) -> bool:
        return any(get_rule(s.rule_id).kcal_factor is not None for s in self.suggestions)

    @property
    def volume_adjustment_needed(self) -> bool:
        return any(get_rule(s.rule_id).volume_factor is not None for s in self.suggestions)


@dataclass(frozen=True)
class AdjustmentResult:
    new_kcal_target: Optional[int] = None
    volume_multiplier: Optional[float] = None
    applied_rules: Tuple[RuleId, ...] = ()


@dataclass(frozen=True)
class DetailedAdherence:
    meal_adherence: int
    workout_adherence: int
    water_adherence: int
    overall_adherence: int


@dataclass(frozen=True)
class WeeklyReport:
    summary: str
    metrics: Dict[str, str]
    recommendations: Tuple[str, ...]
    achievements: Tuple[str, ...]


def weekly_weight_change(measurements: Sequence[Measurement], weeks_back: int = 1) -> float:
    """Percent change from the measurement closest to ``weeks_back`` weeks
    before the latest one, one decimal. 0 with fewer than two measurements.
    """
    if len(measurements) < 2:
        return 0.0
    ordered = sorted(measurements, key=lambda m: m.date)
    latest = ordered[-1]
    target = latest.date - timedelta(days=7 * weeks_back)

    closest = ordered[0]
    closest_diff = abs((closest.date - target).days)
    for measurement in ordered[1:]:
        diff = abs((measurement.date - target).days)
        if diff < closest_diff:
            closest, closest_diff = measurement, diff

    if closest.weight_kg == latest.weight_kg:
        return 0.0
    change = (latest.weight_kg - closest.weight_kg) / closest.weight_kg * 100
    return round_half_up(change, 1)


def classify_trend(measurements: Sequence[Measurement]) -> Tuple[float, WeightTrend]:
    """Weekly change and its trend.

    A small loss counts as slow only when the two-week change is also small;
    otherwise it is maintenance.
    """
    change = weekly_weight_change(measurements)
    if change < FAST_LOSS_PCT:
        return change, WeightTrend.FAST_LOSS
    if change < NORMAL_LOSS_PCT:
        return change, WeightTrend.NORMAL_LOSS
    if change < 0 and weekly_weight_change(measurements, 2) >= TWO_WEEK_SLOW_LOSS_PCT:
        return change, WeightTrend.SLOW_LOSS
    if change < GAIN_PCT:
        return change, WeightTrend.MAINTENANCE
    return change, WeightTrend.GAIN


def meal_adherence(meal_plans: Sequence[MealPlanDay]) -> int:
    """Average share of completed meals over days that have meals, 0-100."""
    shares = [
        sum(1 for meal in plan.meals if meal.completed) / len(plan.meals) * 100
        for plan in meal_plans
        if plan.meals
    ]
    if not shares:
        return 0
    return round_int(sum(shares) / len(shares))


def protein_compliant_days(meal_plans: Sequence[MealPlanDay], protein_target_g: int) -> int:
    """Days with at least 70% adherence and 90% of the protein target."""
    return sum(
        1
        for plan in meal_plans
        if plan.adherence >= PROTEIN_COMPLIANT_ADHERENCE
        and plan.totals.protein >= protein_target_g * PROTEIN_COMPLIANT_RATIO
    )


def mean_rpe(workouts: Sequence[WorkoutPlanDay]) -> Optional[float]:
    """Unrounded mean RPE of completed, rated sessions."""
    rpes = completed_rpes(workouts)
    if not rpes:
        return None
    return sum(rpes) / len(rpes)


def average_rpe(workouts: Sequence[WorkoutPlanDay]) -> Optional[float]:
    """Mean RPE rounded to one decimal, for display."""
    mean = mean_rpe(workouts)
    return None if mean is None else round_half_up(mean, 1)


def analyze_weekly_progress(
    user_profile: UserProfile,
    measurements: Sequence[Measurement],
    meal_plans: Sequence[MealPlanDay],
    workouts: Sequence[WorkoutPlanDay],
    current_records: PersonalRecords,
    previous_records: Optional[PersonalRecords] = None,
    activity_factor: float = DEFAULT_ACTIVITY_FACTOR,
    now: Optional[datetime] = None,
    rules: Tuple[ProgressRule, ...] = PROGRESS_RULES,
) -> WeeklyProgressAnalysis:
    """Evaluate the rule set over one week of data.

    Args:
        user_profile: User profile (read only)
        measurements: Weight measurements, any order
        meal_plans: Meal plan days of the window
        workouts: Workout sessions of the window
        current_records: Latest personal records
        previous_records: Earlier snapshot for improvement detection
        activity_factor: Activity factor for the protein target
        now: Timestamp stamped on suggestions; current UTC time when None
        rules: Rules to evaluate, in order

    Returns:
        WeeklyProgressAnalysis with the suggestions that fired

    Raises:
        ProfileValidationError: If the profile's biometrics are out of range
    """
    validate_user_profile(user_profile)
    now = now or datetime.now(timezone.utc)
    metrics = calculate_all_metrics(user_profile, activity_factor)
    change, trend = classify_trend(measurements)
    rpes = completed_rpes(workouts)

    ctx = ProgressContext(
        profile=user_profile,
        weight_change_pct=change,
        weight_trend=trend,
        meal_days=len(meal_plans),
        adherence_score=meal_adherence(meal_plans),
        protein_compliant_days=protein_compliant_days(meal_plans, metrics.macros.protein_g),
        rated_sessions=len(rpes),
        avg_rpe=mean_rpe(workouts),
        improved_records=count_improved_records(current_records, previous_records),
        now=now,
    )
    suggestions = evaluate_rules(ctx, rules)
    logger.debug(
        "Weekly analysis for %s: %s%% (%s), %d suggestion(s)",
        user_profile.id, change, trend.value, len(suggestions),
    )
    return WeeklyProgressAnalysis(
        weight_change_pct=change,
        weight_trend=trend,
        adherence_score=ctx.adherence_score,
        protein_compliance=ctx.protein_compliant_days,
        meal_days=ctx.meal_days,
        avg_rpe=average_rpe(workouts),
        improved_records=ctx.improved_records,
        suggestions=list(suggestions),
    )


def apply_automatic_adjustments(
    user_profile: UserProfile,
    analysis: WeeklyProgressAnalysis,
    activity_factor: float = DEFAULT_ACTIVITY_FACTOR,
) -> AdjustmentResult:
    """Turn fired rules into a new calorie target and volume multiplier.

    At most one calorie rule applies (the first in rule order) and at most
    one volume rule (reduction wins over increase). The new target never
    drops below the safety floor.
    """
    current = calculate_all_metrics(user_profile, activity_factor).calorie_range.target
    applied: List[RuleId] = []
    new_kcal = None
    volume = None

    fired = [get_rule(s.rule_id) for s in analysis.suggestions]
    kcal_rules = [r for r in fired if r.kcal_factor is not None]
    if kcal_rules:
        rule = kcal_rules[0]
        new_kcal = max(round_int(current * rule.kcal_factor), calorie_floor(user_profile.sex))
        applied.append(rule.rule_id)

    volume_rules = sorted((r for r in fired if r.volume_factor is not None), key=lambda r: r.volume_factor)
    if volume_rules:
        volume = volume_rules[0].volume_factor
        applied.append(volume_rules[0].rule_id)

    return AdjustmentResult(new_kcal_target=new_kcal, volume_multiplier=volume, applied_rules=tuple(applied))


def detailed_adherence(
    meal_plans: Sequence[MealPlanDay],
    workouts: Sequence[WorkoutPlanDay],
    water: Sequence[WaterIntake],
) -> DetailedAdherence:
    """Meal, workout and water adherence plus their 50/30/20 weighted blend."""
    meal = meal_adherence(meal_plans)
    workout = round_int(sum(1 for w in workouts if w.completed) / len(workouts) * 100) if workouts else 0
    water_days = sum(1 for record in water if record.liters >= record.target_liters * WATER_COMPLIANT_RATIO)
    water_pct = round_int(water_days / len(water) * 100) if water else 0
    return DetailedAdherence(
        meal_adherence=meal,
        workout_adherence=workout,
        water_adherence=water_pct,
        overall_adherence=round_int(meal * 0.5 + workout * 0.3 + water_pct * 0.2),
    )


TREND_SUMMARIES = {
    WeightTrend.NORMAL_LOSS: "Good progress! You are losing weight at a healthy, sustainable pace.",
    WeightTrend.FAST_LOSS: "Very fast loss. Consider more calories to preserve muscle.",
    WeightTrend.SLOW_LOSS: "Slow progress. Review calories and activity.",
    WeightTrend.MAINTENANCE: "Holding your current weight. Perfect if that is your goal.",
    WeightTrend.GAIN: "Gaining weight. Review your plan if your goal is to lose weight.",
}


def weekly_report(
    user_profile: UserProfile,
    analysis: WeeklyProgressAnalysis,
    measurements: Sequence[Measurement],
    start_weight_kg: float,
) -> WeeklyReport:
    """Human-readable summary of a weekly analysis."""
    ordered = sorted(measurements, key=lambda m: m.date)
    current = ordered[-1].weight_kg if ordered else user_profile.weight_kg
    progress = weight_progress(current, start_weight_kg, user_profile.goal_weight_kg)
    sign = "+" if analysis.weight_change_pct > 0 else ""

    metrics = {
        "Weekly weight change": f"{sign}{analysis.weight_change_pct:g}%",
        "Progress to goal": f"{progress:g}%",
        "Meal adherence": f"{analysis.adherence_score}%",
        "Days with enough protein": f"{analysis.protein_compliance}",
        "Average RPE": f"{analysis.avg_rpe:g}/10" if analysis.avg_rpe else "N/A",
    }

    achievements = []
    if analysis.meal_days and analysis.adherence_score >= HIGH_ADHERENCE_PCT:
        achievements.append("Excellent plan adherence")
    if analysis.avg_rpe is not None and analysis.avg_rpe <= 7:
        achievements.append("Training at an optimal intensity")
    if analysis.meal_days and analysis.protein_compliance >= int(analysis.meal_days * 0.8):
        achievements.append("Protein targets reached")
    if analysis.weight_trend == WeightTrend.NORMAL_LOSS and user_profile.goal_weight_kg < user_profile.weight_kg:
        achievements.append("Healthy weight loss")

    return WeeklyReport(
        summary=TREND_SUMMARIES[analysis.weight_trend],
        metrics=metrics,
        recommendations=tuple(s.message for s in analysis.suggestions if s.action_required),
        achievements=tuple(achievements),
    )
