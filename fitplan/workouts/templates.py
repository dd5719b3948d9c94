"""Built-in workout template catalog."""
from typing import Iterable, List, Tuple

from fitplan.data_layer.models import (
    BasicDetails,
    BlockKind,
    BlockPhase,
    Capability,
    Equipment,
    FitnessLevel,
    IntervalDetails,
    RunDetails,
    StrengthDetails,
    StrengthExercise,
    WorkoutBlock,
    WorkoutCategory,
    WorkoutTemplate,
)

ALL_LEVELS = frozenset(FitnessLevel)


def _basic(phase: BlockPhase, name: str, description: str, minutes: int) -> WorkoutBlock:
    return WorkoutBlock(
        phase=phase,
        kind=BlockKind.BASIC,
        name=name,
        duration_min=minutes,
        details=BasicDetails(description=description),
    )


INTERVAL_SHORT = WorkoutTemplate(
    id="interval_short",
    name="Short intervals (20-25 min)",
    category=WorkoutCategory.INTERVAL,
    duration_min=23,
    required=frozenset({Capability.TREADMILL}),
    levels=ALL_LEVELS,
    blocks=(
        _basic(BlockPhase.WARMUP, "Warm-up", "Walk 5 minutes at a moderate pace", 5),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.RUN,
            name="Aerobic base",
            duration_min=10,
            details=RunDetails(speed_kmh=6),
        ),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.INTERVAL,
            name="Intervals",
            duration_min=8,
            details=IntervalDetails(work_sec=60, rest_sec=240, rounds=2, exercises=("Run at 12 km/h",)),
        ),
    ),
)

RUN_CONTINUOUS = WorkoutTemplate(
    id="run_continuous",
    name="Continuous run (30-40 min)",
    category=WorkoutCategory.RUN,
    duration_min=35,
    required=frozenset({Capability.TREADMILL}),
    levels=frozenset({FitnessLevel.INTERMEDIATE, FitnessLevel.ADVANCED}),
    blocks=(
        _basic(BlockPhase.WARMUP, "Warm-up", "Walk 5 minutes at an easy pace", 5),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.RUN,
            name="Continuous run",
            duration_min=25,
            details=RunDetails(speed_kmh=8),
        ),
        _basic(BlockPhase.COOLDOWN, "Cool-down", "Walk and stretch for 5 minutes", 5),
    ),
)

STRENGTH_BODYWEIGHT = WorkoutTemplate(
    id="strength_bodyweight",
    name="Home strength (20-25 min)",
    category=WorkoutCategory.STRENGTH,
    duration_min=23,
    required=frozenset({Capability.MAT}),
    levels=ALL_LEVELS,
    blocks=(
        _basic(BlockPhase.WARMUP, "Dynamic warm-up", "Joint mobility and activation", 3),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.STRENGTH,
            name="Main circuit",
            duration_min=15,
            details=StrengthDetails(
                exercises=(
                    StrengthExercise(name="Push-ups", sets=3, rest_sec=90, movement="push_up"),
                    StrengthExercise(name="Sit-ups", sets=3, rest_sec=60, reps=30, movement="sit_up"),
                    StrengthExercise(name="Plank", sets=3, rest_sec=60, duration_sec=45, movement="plank"),
                )
            ),
        ),
        WorkoutBlock(
            phase=BlockPhase.COOLDOWN,
            kind=BlockKind.BASIC,
            name="Jumping jacks",
            duration_min=5,
            details=BasicDetails(description="Jumping jacks, 30 s on / 30 s easy"),
        ),
    ),
)

STRENGTH_DUMBBELLS = WorkoutTemplate(
    id="strength_dumbbells",
    name="Dumbbell strength",
    category=WorkoutCategory.MIXED,
    duration_min=25,
    required=frozenset({Capability.DUMBBELLS, Capability.TREADMILL}),
    levels=frozenset({FitnessLevel.INTERMEDIATE, FitnessLevel.ADVANCED}),
    blocks=(
        _basic(BlockPhase.WARMUP, "Warm-up", "Bodyweight mobility", 5),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.STRENGTH,
            name="Shadow boxing",
            duration_min=10,
            details=StrengthDetails(
                exercises=(
                    StrengthExercise(
                        name="Shadow boxing with dumbbells",
                        sets=3,
                        rest_sec=60,
                        duration_sec=120,
                        movement="shadow_boxing",
                    ),
                )
            ),
        ),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.RUN,
            name="Treadmill farmer walk",
            duration_min=10,
            details=RunDetails(speed_kmh=5),
        ),
    ),
)

BEGINNER_BASIC = WorkoutTemplate(
    id="beginner_basic",
    name="Beginner basics",
    category=WorkoutCategory.MIXED,
    duration_min=20,
    required=frozenset({Capability.MAT}),
    levels=frozenset({FitnessLevel.BEGINNER}),
    blocks=(
        _basic(BlockPhase.WARMUP, "Gentle warm-up", "March in place and light stretching", 5),
        WorkoutBlock(
            phase=BlockPhase.MAIN,
            kind=BlockKind.STRENGTH,
            name="Basic exercises",
            duration_min=12,
            details=StrengthDetails(
                exercises=(
                    StrengthExercise(
                        name="Push-ups (knees if needed)", sets=2, rest_sec=90, reps=10, movement="push_up"
                    ),
                    StrengthExercise(name="Squats", sets=2, rest_sec=60, reps=15),
                    StrengthExercise(name="Plank", sets=2, rest_sec=60, duration_sec=20, movement="plank"),
                )
            ),
        ),
        _basic(BlockPhase.COOLDOWN, "Relaxation", "Stretching and breathing", 3),
    ),
)

WORKOUT_TEMPLATES: Tuple[WorkoutTemplate, ...] = (
    INTERVAL_SHORT,
    RUN_CONTINUOUS,
    STRENGTH_BODYWEIGHT,
    STRENGTH_DUMBBELLS,
    BEGINNER_BASIC,
)


def eligible_templates(templates: Iterable[WorkoutTemplate], equipment: Equipment) -> List[WorkoutTemplate]:
    """Templates whose every required capability the equipment provides."""
    available = equipment.capabilities()
    return [t for t in templates if t.required <= available]
