"""Tests for the metrics calculator."""
import pytest

from fitplan.data_layer.exceptions import InputValidationError, ProfileValidationError
from fitplan.data_layer.models import (
    BlockKind,
    Intensity,
    ProteinPreference,
    Sex,
    UserProfile,
)
from fitplan.nutrition.metrics import (
    basal_rate,
    bmi,
    bmi_category,
    calculate_all_metrics,
    calorie_target,
    exercise_calories,
    macros,
    round_half_up,
    total_expenditure,
    validate_activity_factor,
    validate_deficit,
    weekly_weight_loss_rate,
    weight_progress,
)


class TestRounding:
    """Half-up rounding helpers."""

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(0.25, 1) == 0.3

    def test_negative_halves_round_toward_positive(self):
        assert round_half_up(-2.5) == -2


class TestBasalRate:
    """Mifflin-St Jeor basal rate."""

    def test_female_reference_scenario(self):
        """70 kg, 165 cm, 28 years, female -> 1430."""
        assert basal_rate(Sex.FEMALE, 70, 165, 28) == 1430

    def test_male_formula(self):
        # 800 + 1125 - 150 + 5
        assert basal_rate(Sex.MALE, 80, 180, 30) == 1780

    @pytest.mark.parametrize("weight,height,age", [(55, 160, 25), (92.5, 183, 47), (120, 195, 68)])
    def test_matches_closed_form(self, weight, height, age):
        expected = 10 * weight + 6.25 * height - 5 * age + 5
        assert basal_rate(Sex.MALE, weight, height, age) == int(expected + 0.5)


class TestExpenditure:
    """Activity factor handling."""

    def test_expenditure_rounds_half_up(self):
        assert total_expenditure(1430, 1.55) == 2217

    def test_rejects_unknown_activity_factor(self):
        with pytest.raises(InputValidationError):
            total_expenditure(1430, 1.6)

    def test_accepts_table_values(self):
        assert validate_activity_factor(1.2) == 1.2
        assert validate_activity_factor(1.9) == 1.9


class TestCalorieTarget:
    """Deficit selection and safety floors."""

    def test_small_loss_uses_fifteen_percent(self):
        result = calorie_target(2217, 65, 70, Sex.FEMALE)
        assert result.target == 1884
        assert result.min == 1790
        assert result.max == 1978

    def test_large_loss_uses_larger_deficit(self):
        result = calorie_target(3000, 70, 90, Sex.MALE)
        assert result.target == 2325

    def test_gain_adds_surplus(self):
        assert calorie_target(2000, 72, 70, Sex.MALE).target == 2150
        assert calorie_target(2000, 80, 70, Sex.MALE).target == 2250

    def test_maintenance_keeps_expenditure(self):
        assert calorie_target(2000, 70, 70, Sex.FEMALE).target == 2000

    @pytest.mark.parametrize("sex,floor", [(Sex.FEMALE, 1200), (Sex.MALE, 1500)])
    def test_never_below_floor(self, sex, floor):
        for expenditure in (900, 1300, 1600):
            result = calorie_target(expenditure, 40, 120, sex)
            assert result.target >= floor
            assert result.min >= floor


class TestMacros:
    """Macro split."""

    def test_medium_preference(self):
        result = macros(2000, 60, ProteinPreference.MEDIUM)
        assert result.protein_g == 114
        assert result.fat_g == 36
        assert result.carbs_g == 305

    def test_calories_reconcile_within_rounding(self):
        for target in (1500, 1884, 2217, 2750):
            for goal in (55, 65, 80):
                for pref in ProteinPreference:
                    m = macros(target, goal, pref)
                    if m.carbs_g > 0:
                        assert abs(m.protein_g * 4 + m.fat_g * 9 + m.carbs_g * 4 - target) <= 4

    def test_carbs_never_negative(self):
        assert macros(1200, 120, ProteinPreference.HIGH).carbs_g == 0

    def test_rejects_unknown_preference(self):
        with pytest.raises(InputValidationError):
            macros(2000, 60, "extreme")


class TestCalculateAllMetrics:
    """Metrics from a profile."""

    def test_fixture_profile(self, profile):
        metrics = calculate_all_metrics(profile)
        assert metrics.bmi == 25.7
        assert metrics.basal_rate == 1430
        assert metrics.total_expenditure == 2217
        assert metrics.calorie_range.target == 1884

    def test_stored_calorie_target_is_floor_clamped(self):
        profile = UserProfile(
            id="u", sex=Sex.FEMALE, age=30, height_cm=160, weight_kg=60,
            goal_weight_kg=55, calorie_target=1000,
        )
        assert calculate_all_metrics(profile).calorie_range.target == 1200

    def test_out_of_range_profile_is_rejected(self):
        profile = UserProfile(
            id="u", sex=Sex.MALE, age=500, height_cm=20, weight_kg=5000, goal_weight_kg=80,
        )
        with pytest.raises(ProfileValidationError) as exc_info:
            calculate_all_metrics(profile)
        assert exc_info.value.field_name == "age"

    def test_out_of_range_goal_weight(self):
        profile = UserProfile(
            id="u", sex=Sex.FEMALE, age=30, height_cm=160, weight_kg=60, goal_weight_kg=10,
        )
        with pytest.raises(ProfileValidationError) as exc_info:
            calculate_all_metrics(profile)
        assert exc_info.value.context["field"] == "goal_weight_kg"


class TestNonPositiveInputs:
    """Formulas reject zero and negative measurements."""

    @pytest.mark.parametrize("weight,height", [(70, 0), (0, 165), (-70, 165)])
    def test_bmi(self, weight, height):
        with pytest.raises(InputValidationError):
            bmi(weight, height)

    def test_basal_rate(self):
        with pytest.raises(InputValidationError) as exc_info:
            basal_rate(Sex.FEMALE, 70, 165, 0)
        assert exc_info.value.context == {"age": 0}


class TestSupplementaryHelpers:
    """BMI category, exercise calories, deficit checks and progress."""

    def test_bmi(self):
        assert bmi(70, 165) == 25.7

    def test_bmi_category(self):
        assert bmi_category(17.0) == "underweight"
        assert bmi_category(22.0) == "normal"
        assert bmi_category(27.5) == "overweight"
        assert bmi_category(31.0) == "obese"

    def test_exercise_calories(self):
        # 8 MET x 70 kg x 0.5 h
        assert exercise_calories(BlockKind.RUN, 30, 70, Intensity.MEDIUM) == 280

    def test_weekly_weight_loss_rate(self):
        assert weekly_weight_loss_rate(550) == 0.5

    def test_validate_deficit(self):
        assert validate_deficit(2000, 1800, Sex.MALE) == (True, "")
        safe, message = validate_deficit(2000, 1400, Sex.MALE)
        assert not safe and "minimum" in message
        safe, message = validate_deficit(3000, 2000, Sex.MALE)
        assert not safe and "aggressive" in message

    def test_weight_progress(self):
        assert weight_progress(75, 80, 70) == 50.0
        assert weight_progress(82, 80, 70) == 0.0
        assert weight_progress(68, 80, 70) == 100.0
