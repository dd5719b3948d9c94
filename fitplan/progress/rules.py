"""Progression rules.

Each rule is a ``RuleId`` paired with an evaluator that reads a
``ProgressContext`` and either returns a suggestion or None. Rules carry their
own calorie and volume factors so that applying adjustments never has to
re-interpret messages.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Tuple

from fitplan.data_layer.models import ProgressSuggestion, RuleId, UserProfile

LOW_ADHERENCE_PCT = 70
HIGH_ADHERENCE_PCT = 90
HIGH_RPE = 8
MIN_RATED_SESSIONS = 3
MIN_IMPROVED_RECORDS = 2
PROTEIN_GRACE_DAYS = 3


class WeightTrend(str, Enum):
    FAST_LOSS = "fast_loss"
    NORMAL_LOSS = "normal_loss"
    SLOW_LOSS = "slow_loss"
    MAINTENANCE = "maintenance"
    GAIN = "gain"


@dataclass(frozen=True)
class ProgressContext:
    """Everything the rules look at for one analysis window."""

    profile: UserProfile
    weight_change_pct: float
    weight_trend: WeightTrend
    meal_days: int
    adherence_score: int
    protein_compliant_days: int
    rated_sessions: int
    # unrounded mean
    avg_rpe: Optional[float]
    improved_records: int
    now: datetime


Evaluator = Callable[[ProgressContext], Optional[ProgressSuggestion]]


@dataclass(frozen=True)
class ProgressRule:
    rule_id: RuleId
    name: str
    evaluate: Evaluator
    kcal_factor: Optional[float] = None
    volume_factor: Optional[float] = None


def _suggest(ctx: ProgressContext, rule_id: RuleId, message: str,
             action_required: bool = True, auto_applied: bool = False) -> ProgressSuggestion:
    return ProgressSuggestion(
        rule_id=rule_id,
        message=message,
        action_required=action_required,
        auto_applied=auto_applied,
        created_at=ctx.now,
    )


def rapid_loss(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.weight_trend != WeightTrend.FAST_LOSS:
        return None
    return _suggest(
        ctx,
        RuleId.RAPID_LOSS,
        f"You are losing weight very fast ({abs(ctx.weight_change_pct):g}%/week). "
        "Consider raising calories by 5% for a more sustainable pace.",
    )


def stalled_loss(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.weight_trend != WeightTrend.SLOW_LOSS:
        return None
    if ctx.profile.goal_weight_kg >= ctx.profile.weight_kg:
        return None
    return _suggest(
        ctx,
        RuleId.STALLED_LOSS,
        f"Weight loss is very slow ({abs(ctx.weight_change_pct):g}%/week). "
        "Consider cutting calories by 5% or adding some activity.",
    )


def protein_shortfall(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.protein_compliant_days >= ctx.meal_days - PROTEIN_GRACE_DAYS:
        return None
    return _suggest(
        ctx,
        RuleId.PROTEIN_SHORTFALL,
        f"You reached your protein target on {ctx.protein_compliant_days} of {ctx.meal_days} days. "
        "Consider adding a protein snack (shake or Greek yogurt).",
    )


def high_exertion(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.rated_sessions < MIN_RATED_SESSIONS or ctx.avg_rpe is None or ctx.avg_rpe < HIGH_RPE:
        return None
    return _suggest(
        ctx,
        RuleId.HIGH_EXERTION,
        f"Your average RPE is high ({ctx.avg_rpe:.1f}/10). "
        "Consider cutting training volume by 10% to avoid overtraining.",
    )


def performance_improved(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.improved_records < MIN_IMPROVED_RECORDS:
        return None
    return _suggest(
        ctx,
        RuleId.PERFORMANCE_IMPROVED,
        "Great work, your personal records improved. Time to progress: "
        "add 1 set or raise intensity by 5-10%.",
        action_required=False,
        auto_applied=True,
    )


def low_adherence(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.meal_days == 0 or ctx.adherence_score >= LOW_ADHERENCE_PCT:
        return None
    return _suggest(
        ctx,
        RuleId.LOW_ADHERENCE,
        f"Your adherence is {ctx.adherence_score}%. "
        "Consider simplifying the plan or moving meal times to stay consistent.",
    )


def high_adherence(ctx: ProgressContext) -> Optional[ProgressSuggestion]:
    if ctx.meal_days == 0 or ctx.adherence_score < HIGH_ADHERENCE_PCT:
        return None
    return _suggest(
        ctx,
        RuleId.HIGH_ADHERENCE,
        f"Excellent adherence ({ctx.adherence_score}%)! Keep this pace to reach your goals.",
        action_required=False,
    )


# Evaluation order; rapid loss before stalled loss
PROGRESS_RULES: Tuple[ProgressRule, ...] = (
    ProgressRule(RuleId.RAPID_LOSS, "Weight loss too fast", rapid_loss, kcal_factor=1.05),
    ProgressRule(RuleId.STALLED_LOSS, "Weight loss too slow", stalled_loss, kcal_factor=0.95),
    ProgressRule(RuleId.PROTEIN_SHORTFALL, "Protein insufficient", protein_shortfall),
    ProgressRule(RuleId.HIGH_EXERTION, "Sustained high RPE", high_exertion, volume_factor=0.9),
    ProgressRule(RuleId.PERFORMANCE_IMPROVED, "Personal records improved", performance_improved, volume_factor=1.075),
    ProgressRule(RuleId.LOW_ADHERENCE, "Low adherence", low_adherence),
    ProgressRule(RuleId.HIGH_ADHERENCE, "Excellent adherence", high_adherence),
)


def get_rule(rule_id: RuleId) -> ProgressRule:
    for rule in PROGRESS_RULES:
        if rule.rule_id == rule_id:
            return rule
    raise KeyError(rule_id)


def evaluate_rules(ctx: ProgressContext, rules: Tuple[ProgressRule, ...] = PROGRESS_RULES) -> Tuple[ProgressSuggestion, ...]:
    """Run every rule in order and collect the suggestions that fire."""
    suggestions = []
    for rule in rules:
        suggestion = rule.evaluate(ctx)
        if suggestion is not None:
            suggestions.append(suggestion)
    return tuple(suggestions)
