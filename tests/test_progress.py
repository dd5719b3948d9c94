"""Tests for weekly progress analysis, adjustments and reports."""
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from fitplan.data_layer.exceptions import ProfileValidationError
from fitplan.data_layer.models import (
    DayTotals,
    FitnessLevel,
    Meal,
    MealNutrition,
    MealPlanDay,
    MealSlot,
    Measurement,
    RuleId,
    WaterIntake,
    WorkoutPlanDay,
)
from fitplan.progress.rules import WeightTrend
from fitplan.progress.tracker import (
    analyze_weekly_progress,
    apply_automatic_adjustments,
    average_rpe,
    classify_trend,
    detailed_adherence,
    meal_adherence,
    mean_rpe,
    weekly_report,
    weekly_weight_change,
)

NOW = datetime(2026, 4, 8, 20, 0, tzinfo=timezone.utc)
WEEK_START = date(2026, 4, 1)


def _weights(*pairs):
    return [Measurement(date=date.fromisoformat(day), weight_kg=kg) for day, kg in pairs]


def _plan_day(offset=0, completed=3, meals=3, protein=150):
    nutrition = MealNutrition(kcal=600, protein=protein // max(meals, 1), fat=20, carbs=60)
    return MealPlanDay(
        date=WEEK_START + timedelta(days=offset),
        meals=[
            Meal(MealSlot.LUNCH, "chicken_rice", 1.0, nutrition, completed=i < completed)
            for i in range(meals)
        ],
        totals=DayTotals(kcal=600 * meals, protein=protein),
        template_id="normal_day",
        target_kcal=1884,
        target_protein_g=124,
    )


def _week(**kwargs):
    return [_plan_day(offset, **kwargs) for offset in range(7)]


def _session(offset, rpe=None, completed=True):
    return WorkoutPlanDay(
        date=WEEK_START + timedelta(days=offset),
        template_id="strength_bodyweight",
        fitness_level=FitnessLevel.INTERMEDIATE,
        session_number=1,
        intensity_multiplier=1.0,
        blocks=[],
        duration_min=23,
        kcal_estimate=150,
        completed=completed,
        rpe=rpe,
    )


def _analyze(profile, records, measurements=(), meal_plans=(), workouts=(), previous=None):
    return analyze_weekly_progress(
        profile, measurements, meal_plans, workouts, records, previous, now=NOW
    )


def _fired(analysis):
    return [s.rule_id for s in analysis.suggestions]


class TestWeightChange:
    """Tests for weekly weight change and trend classification."""

    def test_fast_loss(self):
        measurements = _weights(("2026-04-01", 80.0), ("2026-04-08", 78.8))
        assert weekly_weight_change(measurements) == -1.5
        assert classify_trend(measurements) == (-1.5, WeightTrend.FAST_LOSS)

    def test_order_does_not_matter(self):
        measurements = _weights(("2026-04-08", 78.8), ("2026-04-01", 80.0))
        assert weekly_weight_change(measurements) == -1.5

    def test_fewer_than_two_measurements(self):
        assert weekly_weight_change([]) == 0.0
        assert weekly_weight_change(_weights(("2026-04-08", 70.0))) == 0.0

    def test_picks_measurement_closest_to_a_week_back(self):
        measurements = _weights(
            ("2026-03-25", 75.0),
            ("2026-04-02", 70.0),
            ("2026-04-08", 69.3),
        )
        assert weekly_weight_change(measurements) == -1.0

    @pytest.mark.parametrize(
        "later, trend",
        [(69.5, WeightTrend.NORMAL_LOSS), (69.9, WeightTrend.SLOW_LOSS), (70.0, WeightTrend.MAINTENANCE),
         (70.5, WeightTrend.GAIN)],
    )
    def test_trends(self, later, trend):
        measurements = _weights(("2026-04-01", 70.0), ("2026-04-08", later))
        assert classify_trend(measurements)[1] == trend

    def test_small_loss_after_big_drop_is_maintenance(self):
        measurements = _weights(
            ("2026-03-25", 72.0),
            ("2026-04-01", 70.0),
            ("2026-04-08", 69.9),
        )
        assert classify_trend(measurements) == (-0.1, WeightTrend.MAINTENANCE)


class TestAdherenceHelpers:
    """Tests for adherence and RPE helpers."""

    def test_meal_adherence_skips_empty_days(self):
        plans = [_plan_day(completed=1), _plan_day(1, meals=0, completed=0)]
        assert meal_adherence(plans) == 33

    def test_meal_adherence_without_days(self):
        assert meal_adherence([]) == 0

    def test_average_rpe_uses_completed_sessions(self):
        workouts = [_session(0, 8), _session(2, 9), _session(4, 5, completed=False), _session(5)]
        assert average_rpe(workouts) == 8.5
        assert average_rpe([]) is None

    def test_detailed_adherence(self):
        plans = [_plan_day(0), _plan_day(1, completed=1)]
        workouts = [_session(0), _session(2), _session(4, completed=False)]
        water = [
            WaterIntake(date(2026, 4, 1), 2.0, 2.0),
            WaterIntake(date(2026, 4, 2), 1.6, 2.0),
            WaterIntake(date(2026, 4, 3), 1.8, 2.0),
            WaterIntake(date(2026, 4, 4), 1.0, 2.0),
        ]
        result = detailed_adherence(plans, workouts, water)

        assert result.meal_adherence == 67
        assert result.workout_adherence == 67
        assert result.water_adherence == 75
        assert result.overall_adherence == 69

    def test_detailed_adherence_without_data(self):
        result = detailed_adherence([], [], [])
        assert result.overall_adherence == 0


class TestAnalyzeWeeklyProgress:
    """Tests for rule evaluation over a week."""

    def test_rapid_loss(self, profile, records):
        measurements = _weights(("2026-04-01", 80.0), ("2026-04-08", 78.8))
        analysis = _analyze(profile, records, measurements)

        assert analysis.weight_trend == WeightTrend.FAST_LOSS
        assert _fired(analysis) == [RuleId.RAPID_LOSS]
        assert "1.5%" in analysis.suggestions[0].message
        assert analysis.suggestions[0].created_at == NOW
        assert analysis.kcal_adjustment_needed
        assert not analysis.volume_adjustment_needed

    def test_stalled_loss_needs_weight_to_lose(self, profile, records):
        measurements = _weights(("2026-04-01", 70.0), ("2026-04-08", 69.9))
        assert _fired(_analyze(profile, records, measurements)) == [RuleId.STALLED_LOSS]

        at_goal = replace(profile, goal_weight_kg=70)
        assert _fired(_analyze(at_goal, records, measurements)) == []

    def test_no_data_fires_nothing(self, profile, records):
        analysis = _analyze(profile, records)
        assert analysis.suggestions == []
        assert analysis.weight_change_pct == 0.0
        assert analysis.meal_days == 0

    def test_protein_shortfall_and_high_adherence(self, profile, records):
        analysis = _analyze(profile, records, meal_plans=_week(protein=50))

        assert analysis.adherence_score == 100
        assert analysis.protein_compliance == 0
        assert _fired(analysis) == [RuleId.PROTEIN_SHORTFALL, RuleId.HIGH_ADHERENCE]
        assert "0 of 7 days" in analysis.suggestions[0].message

    def test_enough_protein(self, profile, records):
        analysis = _analyze(profile, records, meal_plans=_week(protein=150))
        assert analysis.protein_compliance == 7
        assert _fired(analysis) == [RuleId.HIGH_ADHERENCE]

    def test_low_adherence(self, profile, records):
        analysis = _analyze(profile, records, meal_plans=_week(completed=1, protein=150))

        assert analysis.adherence_score == 33
        assert RuleId.LOW_ADHERENCE in _fired(analysis)
        assert RuleId.HIGH_ADHERENCE not in _fired(analysis)

    def test_high_exertion_needs_three_rated_sessions(self, profile, records):
        two = [_session(0, 9), _session(2, 9)]
        assert _fired(_analyze(profile, records, workouts=two)) == []

        three = two + [_session(4, 8)]
        analysis = _analyze(profile, records, workouts=three)
        assert analysis.avg_rpe == 8.7
        assert _fired(analysis) == [RuleId.HIGH_EXERTION]
        assert analysis.volume_adjustment_needed

    def test_performance_improved(self, profile, records):
        better = replace(records, pushups_max=15, plank_sec=60)
        analysis = _analyze(profile, better, previous=records)

        assert analysis.improved_records == 2
        assert _fired(analysis) == [RuleId.PERFORMANCE_IMPROVED]
        assert not analysis.suggestions[0].action_required
        assert analysis.suggestions[0].auto_applied

    def test_profile_is_not_mutated(self, profile, records):
        before = replace(profile)
        _analyze(profile, records, _weights(("2026-04-01", 80.0), ("2026-04-08", 78.8)))
        assert profile == before

    def test_out_of_range_profile_is_rejected(self, profile, records):
        with pytest.raises(ProfileValidationError) as exc_info:
            _analyze(replace(profile, height_cm=20), records)
        assert exc_info.value.field_name == "height_cm"

    def test_high_exertion_compares_the_unrounded_mean(self, profile, records):
        # 159 / 20 = 7.95, which would display as 8.0
        sessions = [_session(i, 8) for i in range(19)] + [_session(19, 7)]
        assert mean_rpe(sessions) == pytest.approx(7.95)
        assert _fired(_analyze(profile, records, workouts=sessions)) == []

        at_threshold = [_session(i, 8) for i in range(20)]
        assert _fired(_analyze(profile, records, workouts=at_threshold)) == [RuleId.HIGH_EXERTION]


class TestAutomaticAdjustments:
    """Tests for apply_automatic_adjustments."""

    def test_rapid_loss_raises_calories(self, profile, records):
        analysis = _analyze(profile, records, _weights(("2026-04-01", 80.0), ("2026-04-08", 78.8)))
        result = apply_automatic_adjustments(profile, analysis)

        assert result.new_kcal_target == 1978
        assert result.volume_multiplier is None
        assert result.applied_rules == (RuleId.RAPID_LOSS,)

    def test_stalled_loss_cuts_calories(self, profile, records):
        analysis = _analyze(profile, records, _weights(("2026-04-01", 70.0), ("2026-04-08", 69.9)))
        assert apply_automatic_adjustments(profile, analysis).new_kcal_target == 1790

    def test_new_target_respects_floor(self, profile, records):
        low = replace(profile, calorie_target=1200)
        analysis = _analyze(low, records, _weights(("2026-04-01", 70.0), ("2026-04-08", 69.9)))
        assert apply_automatic_adjustments(low, analysis).new_kcal_target == 1200

    def test_volume_reduction_wins(self, profile, records):
        better = replace(records, pushups_max=15, plank_sec=60)
        workouts = [_session(0, 9), _session(2, 9), _session(4, 8)]
        analysis = _analyze(profile, better, workouts=workouts, previous=records)
        result = apply_automatic_adjustments(profile, analysis)

        assert result.volume_multiplier == 0.9
        assert result.applied_rules == (RuleId.HIGH_EXERTION,)

    def test_volume_increase(self, profile, records):
        better = replace(records, pushups_max=15, plank_sec=60)
        result = apply_automatic_adjustments(profile, _analyze(profile, better, previous=records))
        assert result.volume_multiplier == 1.075
        assert result.new_kcal_target is None

    def test_nothing_to_apply(self, profile, records):
        result = apply_automatic_adjustments(profile, _analyze(profile, records))
        assert result.new_kcal_target is None
        assert result.volume_multiplier is None
        assert result.applied_rules == ()


class TestWeeklyReport:
    """Tests for weekly_report."""

    def test_healthy_week(self, profile, records):
        measurements = _weights(("2026-04-01", 70.0), ("2026-04-08", 69.5))
        analysis = _analyze(profile, records, measurements, meal_plans=_week(protein=150))
        report = weekly_report(profile, analysis, measurements, start_weight_kg=72.0)

        assert report.summary.startswith("Good progress")
        assert report.metrics["Weekly weight change"] == "-0.7%"
        assert report.metrics["Progress to goal"] == "35.7%"
        assert report.metrics["Meal adherence"] == "100%"
        assert report.metrics["Days with enough protein"] == "7"
        assert report.metrics["Average RPE"] == "N/A"
        assert report.achievements == (
            "Excellent plan adherence",
            "Protein targets reached",
            "Healthy weight loss",
        )
        assert report.recommendations == ()

    def test_recommendations_are_action_required_messages(self, profile, records):
        measurements = _weights(("2026-04-01", 80.0), ("2026-04-08", 78.8))
        analysis = _analyze(profile, records, measurements, workouts=[_session(0, 6)])
        report = weekly_report(profile, analysis, measurements, start_weight_kg=80.0)

        assert report.summary.startswith("Very fast loss")
        assert len(report.recommendations) == 1
        assert report.metrics["Average RPE"] == "6/10"
        assert report.achievements == ("Training at an optimal intensity",)

    def test_gain_is_signed(self, profile, records):
        measurements = _weights(("2026-04-01", 70.0), ("2026-04-08", 70.5))
        analysis = _analyze(profile, records, measurements)
        report = weekly_report(profile, analysis, measurements, start_weight_kg=70.0)
        assert report.metrics["Weekly weight change"] == "+0.7%"
        assert report.metrics["Progress to goal"] == "0%"
