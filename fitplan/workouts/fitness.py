"""Fitness-level evaluation from personal records."""
from typing import Optional

from fitplan.data_layer.models import FitnessLevel, PersonalRecords, Sex

# Thresholds: (two-point value, one-point value)
PUSHUP_THRESHOLDS = {Sex.MALE: (30, 15), Sex.FEMALE: (20, 10)}
PLANK_THRESHOLDS_SEC = (90, 45)
RUN_SPEED_THRESHOLDS_KMH = (10, 7)
RUN_DURATION_THRESHOLDS_MIN = (30, 15)

ADVANCED_MIN_SCORE = 6
INTERMEDIATE_MIN_SCORE = 3

RECORD_FIELDS = ("pushups_max", "situps_max", "plank_sec", "run_speed_kmh", "run_duration_min")


def _points(value: float, thresholds) -> int:
    two, one = thresholds
    if value >= two:
        return 2
    if value >= one:
        return 1
    return 0


def fitness_score(records: PersonalRecords, sex: Sex) -> int:
    """Score 0-8 from push-ups, plank, run speed and run duration."""
    return (
        _points(records.pushups_max, PUSHUP_THRESHOLDS[sex])
        + _points(records.plank_sec, PLANK_THRESHOLDS_SEC)
        + _points(records.run_speed_kmh, RUN_SPEED_THRESHOLDS_KMH)
        + _points(records.run_duration_min, RUN_DURATION_THRESHOLDS_MIN)
    )


def evaluate_fitness_level(records: PersonalRecords, sex: Sex) -> FitnessLevel:
    score = fitness_score(records, sex)
    if score >= ADVANCED_MIN_SCORE:
        return FitnessLevel.ADVANCED
    if score >= INTERMEDIATE_MIN_SCORE:
        return FitnessLevel.INTERMEDIATE
    return FitnessLevel.BEGINNER


def count_improved_records(current: PersonalRecords, previous: Optional[PersonalRecords]) -> int:
    """How many of the five tracked records beat the previous snapshot."""
    if previous is None:
        return 0
    return sum(
        1 for name in RECORD_FIELDS if getattr(current, name) > getattr(previous, name)
    )
