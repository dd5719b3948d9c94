"""Data models for the planning core.

Reference data (foods, recipes, workout templates) is frozen. Plan records are
plain dataclasses because the user-facing layer later flips completion flags
on them; the core itself only ever builds fresh instances.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union


# --- Enumerations ---


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class BudgetLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProteinPreference(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MealCategory(str, Enum):
    """Recipe categories in the catalog."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACK = "snack"
    DINNER = "dinner"


class MealSlot(str, Enum):
    """Slots a day template can contain. Post-workout draws from snacks."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACK = "snack"
    DINNER = "dinner"
    POST_WORKOUT = "post_workout"

    @property
    def category(self) -> MealCategory:
        if self is MealSlot.POST_WORKOUT:
            return MealCategory.SNACK
        return MealCategory(self.value)


class RecipeTag(str, Enum):
    """Fixed tag vocabulary for recipes."""

    NO_OIL = "no_oil"
    NO_SUGAR = "no_sugar"
    BUDGET = "budget"
    HIGH_PROTEIN = "high_protein"
    BATCH_COOKABLE = "batch_cookable"
    QUICK = "quick"
    SOCIAL = "social"
    CHOLESTEROL_FRIENDLY = "cholesterol_friendly"
    PLANT_BASED = "plant_based"
    LOW_SODIUM = "low_sodium"


class WorkoutCategory(str, Enum):
    """Template category."""

    RUN = "run"
    INTERVAL = "interval"
    STRENGTH = "strength"
    MIXED = "mixed"


class PreferredWorkout(str, Enum):
    """What the user asks for; cardio covers run and interval templates."""

    CARDIO = "cardio"
    STRENGTH = "strength"
    MIXED = "mixed"


class FitnessLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Capability(str, Enum):
    """Equipment capabilities a workout template may require."""

    TREADMILL = "treadmill"
    DUMBBELLS = "dumbbells"
    ROPE = "rope"
    MAT = "mat"
    RESISTANCE_BANDS = "resistance_bands"


class BlockPhase(str, Enum):
    WARMUP = "warmup"
    MAIN = "main"
    COOLDOWN = "cooldown"


class BlockKind(str, Enum):
    RUN = "run"
    INTERVAL = "interval"
    STRENGTH = "strength"
    BASIC = "basic"


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# --- User profile ---


@dataclass(frozen=True)
class Preferences:
    """Dietary and training preferences."""

    no_oil: bool = False
    no_sugar: bool = False
    no_fried: bool = False
    dislikes: Tuple[str, ...] = ()
    likes: Tuple[str, ...] = ()
    protein_preference: ProteinPreference = ProteinPreference.MEDIUM
    intermittent_fasting: bool = False
    batch_cooking: bool = False
    avoid_high_impact: bool = False
    preferred_workout: Optional[PreferredWorkout] = None
    preferred_workout_minutes: Optional[int] = None


@dataclass(frozen=True)
class HealthData:
    """Lipid panel and food restrictions."""

    ldl: Optional[float] = None
    hdl: Optional[float] = None
    triglycerides: Optional[float] = None
    allergies: Tuple[str, ...] = ()
    intolerances: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Equipment:
    """Equipment available at home."""

    treadmill: bool = False
    dumbbells_kg: float = 0.0
    rope: bool = False
    mat: bool = False
    resistance_bands: bool = False

    def capabilities(self) -> FrozenSet[Capability]:
        """Capabilities this equipment provides (dumbbells need a weight > 0)."""
        caps = set()
        if self.treadmill:
            caps.add(Capability.TREADMILL)
        if self.dumbbells_kg and self.dumbbells_kg > 0:
            caps.add(Capability.DUMBBELLS)
        if self.rope:
            caps.add(Capability.ROPE)
        if self.mat:
            caps.add(Capability.MAT)
        if self.resistance_bands:
            caps.add(Capability.RESISTANCE_BANDS)
        return frozenset(caps)


@dataclass(frozen=True)
class UserProfile:
    """Biometrics, goals, preferences and health flags of one user.

    The core reads this record and never mutates it. ``calorie_target`` is the
    field the application writes back after applying progress adjustments;
    when it is None the target is derived from the metrics.
    """

    id: str
    sex: Sex
    age: int
    height_cm: float
    weight_kg: float
    goal_weight_kg: float
    name: str = ""
    goal_date: Optional[date] = None
    budget_level: BudgetLevel = BudgetLevel.MEDIUM
    preferences: Preferences = field(default_factory=Preferences)
    health: HealthData = field(default_factory=HealthData)
    equipment: Equipment = field(default_factory=Equipment)
    calorie_target: Optional[int] = None
    created_at: Optional[date] = None


# --- Derived metrics ---


@dataclass(frozen=True)
class CalorieRange:
    min: int
    max: int
    target: int


@dataclass(frozen=True)
class MacroTargets:
    protein_g: int
    fat_g: int
    carbs_g: int


@dataclass(frozen=True)
class Metrics:
    """Derived, never persisted by the core."""

    bmi: float
    basal_rate: int
    total_expenditure: int
    calorie_range: CalorieRange
    macros: MacroTargets
    activity_factor: float


# --- Foods and recipes ---


@dataclass(frozen=True)
class NutritionPer100g:
    kcal: float
    protein: float
    fat: float
    carbs: float
    fiber: float = 0.0
    sodium: float = 0.0


@dataclass(frozen=True)
class FoodItem:
    """Reference food with price and the months it is in season (1-12)."""

    id: str
    name: str
    per_100g: NutritionPer100g
    cost_per_kg: Optional[float] = None
    seasonal_months: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class RecipeIngredient:
    food_id: str
    grams: float
    note: Optional[str] = None


@dataclass(frozen=True)
class PortionNutrition:
    """Nutrition of one portion."""

    kcal: float
    protein: float
    fat: float
    carbs: float
    fiber: float = 0.0


@dataclass(frozen=True)
class Recipe:
    """Catalog recipe. The core filters, scores and selects; it never edits."""

    id: str
    name: str
    category: MealCategory
    ingredients: Tuple[RecipeIngredient, ...]
    per_portion: PortionNutrition
    tags: FrozenSet[RecipeTag] = frozenset()
    steps: Tuple[str, ...] = ()
    portions: int = 1
    prep_time_min: int = 0
    cook_time_min: int = 0
    cost_estimate: Optional[float] = None

    @property
    def total_time_min(self) -> int:
        return self.prep_time_min + self.cook_time_min

    def has_tag(self, tag: RecipeTag) -> bool:
        return tag in self.tags

    def uses_food(self, food_id: str) -> bool:
        return any(ing.food_id == food_id for ing in self.ingredients)


# --- Meal plans ---


@dataclass(frozen=True)
class MealNutrition:
    """Scaled nutrition of a planned meal (integer kcal and grams)."""

    kcal: int
    protein: int
    fat: int
    carbs: int
    fiber: int = 0


@dataclass
class Meal:
    """A recipe placed in a slot with a portion multiplier."""

    slot: MealSlot
    recipe_id: str
    portions: float
    nutrition: MealNutrition
    scheduled_time: Optional[str] = None
    completed: bool = False
    notes: Optional[str] = None


@dataclass(frozen=True)
class DayTotals:
    kcal: int = 0
    protein: int = 0
    fat: int = 0
    carbs: int = 0
    fiber: int = 0


@dataclass(frozen=True)
class PlanValidation:
    valid: bool
    issues: Tuple[str, ...] = ()


@dataclass
class MealPlanDay:
    """One day of meals with aggregated totals."""

    date: date
    meals: List[Meal]
    totals: DayTotals
    template_id: str
    target_kcal: int
    target_protein_g: int
    validation: PlanValidation = PlanValidation(valid=True)
    user_id: Optional[str] = None
    notes: Optional[str] = None

    @property
    def adherence(self) -> int:
        """Share of completed meals, 0-100 (half-up rounded)."""
        if not self.meals:
            return 0
        completed = sum(1 for meal in self.meals if meal.completed)
        return int(math.floor(completed * 100 / len(self.meals) + 0.5))


# --- Workouts ---


@dataclass(frozen=True)
class RunDetails:
    speed_kmh: float
    continuous: bool = True
    distance_km: Optional[float] = None
    incline: Optional[float] = None


@dataclass(frozen=True)
class IntervalDetails:
    work_sec: int
    rest_sec: int
    rounds: int
    exercises: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StrengthExercise:
    """One strength exercise.

    ``movement`` ties the exercise to a personal record (push_up, sit_up,
    plank); ``reps`` is None for AMRAP or timed holds.
    """

    name: str
    sets: int
    rest_sec: int
    reps: Optional[int] = None
    duration_sec: Optional[int] = None
    weight_kg: Optional[float] = None
    movement: Optional[str] = None


@dataclass(frozen=True)
class StrengthDetails:
    exercises: Tuple[StrengthExercise, ...]


@dataclass(frozen=True)
class BasicDetails:
    description: str
    intensity: Intensity = Intensity.LOW


BlockDetails = Union[RunDetails, IntervalDetails, StrengthDetails, BasicDetails]


@dataclass(frozen=True)
class WorkoutBlock:
    phase: BlockPhase
    kind: BlockKind
    name: str
    duration_min: int
    details: BlockDetails
    kcal_estimate: int = 0


@dataclass(frozen=True)
class WorkoutTemplate:
    """Immutable routine with equipment and level requirements."""

    id: str
    name: str
    category: WorkoutCategory
    duration_min: int
    required: FrozenSet[Capability]
    levels: FrozenSet[FitnessLevel]
    blocks: Tuple[WorkoutBlock, ...]


@dataclass
class WorkoutPlanDay:
    """A personalised session built from a template."""

    date: date
    template_id: str
    fitness_level: FitnessLevel
    session_number: int
    intensity_multiplier: float
    blocks: List[WorkoutBlock]
    duration_min: int
    kcal_estimate: int
    user_id: Optional[str] = None
    completed: bool = False
    rpe: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PersonalRecords:
    """Snapshot of best performances."""

    pushups_max: int = 0
    situps_max: int = 0
    plank_sec: int = 0
    run_speed_kmh: float = 0.0
    run_duration_min: float = 0.0
    max_loads: Dict[str, float] = field(default_factory=dict)
    updated_at: Optional[datetime] = None


# --- Shopping ---


@dataclass
class ShoppingItem:
    food_id: str
    name: str
    grams_total: float
    store: str
    priority: Priority
    original_cost: int
    estimated_cost: int
    applied_discounts: List[str] = field(default_factory=list)
    used_in_recipes: List[str] = field(default_factory=list)
    purchased: bool = False

    @property
    def savings(self) -> int:
        return self.original_cost - self.estimated_cost


@dataclass
class ShoppingList:
    week_start: date
    items: List[ShoppingItem]
    store_subtotals: Dict[str, int]
    delivery_costs: Dict[str, int]
    total_cost: int
    total_savings: int
    store_mode: str
    unpriced_food_ids: List[str] = field(default_factory=list)
    user_id: Optional[str] = None


# --- Progress ---


@dataclass(frozen=True)
class Measurement:
    date: date
    weight_kg: float
    bodyfat_pct: Optional[float] = None
    waist_cm: Optional[float] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class WaterIntake:
    date: date
    liters: float
    target_liters: float


class RuleId(str, Enum):
    """Closed set of progression rules."""

    RAPID_LOSS = "weight_loss_too_fast"
    STALLED_LOSS = "weight_loss_too_slow"
    PROTEIN_SHORTFALL = "protein_insufficient"
    HIGH_EXERTION = "rpe_too_high"
    PERFORMANCE_IMPROVED = "performance_improved"
    LOW_ADHERENCE = "low_adherence"
    HIGH_ADHERENCE = "excellent_adherence"


@dataclass(frozen=True)
class ProgressSuggestion:
    """Output of one rule firing. Never mutated after creation."""

    rule_id: RuleId
    message: str
    action_required: bool
    auto_applied: bool
    created_at: datetime
