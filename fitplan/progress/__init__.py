"""Progress tracking: rule evaluation, adjustments and adherence."""

from .rules import PROGRESS_RULES, ProgressContext, ProgressRule, WeightTrend, evaluate_rules
from .tracker import (
    AdjustmentResult,
    DetailedAdherence,
    WeeklyProgressAnalysis,
    WeeklyReport,
    analyze_weekly_progress,
    apply_automatic_adjustments,
    classify_trend,
    detailed_adherence,
    weekly_report,
    weekly_weight_change,
)

__all__ = [
    "PROGRESS_RULES",
    "ProgressContext",
    "ProgressRule",
    "WeightTrend",
    "evaluate_rules",
    "AdjustmentResult",
    "DetailedAdherence",
    "WeeklyProgressAnalysis",
    "WeeklyReport",
    "analyze_weekly_progress",
    "apply_automatic_adjustments",
    "classify_trend",
    "detailed_adherence",
    "weekly_report",
    "weekly_weight_change",
]
