"""Structured error types for the planning core.

Two families of outcomes are kept apart:

1. DEFECTS in the input (out-of-range biometrics, malformed preferences,
   recipes whose macros do not add up to their calories) raise a
   ``PlannerError`` subclass immediately. Nothing is clamped or guessed,
   except the calorie safety floors, which are documented policy.
2. EXPECTED empty outcomes (no recipe fits a day, no workout template fits
   the equipment) are not exceptions. Generators return a result object that
   carries a ``PlanningFailure`` with a ``FailureCode`` instead of a plan.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class PlannerErrorCode(Enum):
    """Error codes for input defects. String values for serialization."""

    INVALID_PROFILE = "INVALID_PROFILE"
    INVALID_INPUT = "INVALID_INPUT"
    INCONSISTENT_NUTRITION = "INCONSISTENT_NUTRITION"
    UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"


class PlannerError(Exception):
    """Base exception for all planning-core errors.

    Attributes:
        code: PlannerErrorCode identifying the error type
        message: Human-readable error description
        context: Dictionary of relevant error context
    """

    def __init__(
        self,
        code: PlannerErrorCode,
        message: str,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.context = context or {}
        super().__init__(f"[{code.value}] {message}")

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code!r}, "
            f"message={self.message!r}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses.

        Returns:
            Dictionary with error code, message, and context
        """
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context
        }


class ProfileValidationError(PlannerError):
    """Raised when a user profile field is out of its plausible range.

    Context includes:
        - field: Name of the offending field
        - value: The rejected value
        - allowed: Human-readable allowed range
    """

    def __init__(self, field_name: str, value: Any, allowed: str):
        super().__init__(
            code=PlannerErrorCode.INVALID_PROFILE,
            message=f"Profile field '{field_name}'={value!r} is outside {allowed}",
            context={"field": field_name, "value": value, "allowed": allowed},
        )
        self.field_name = field_name
        self.value = value


class InputValidationError(PlannerError):
    """Raised for malformed call arguments (activity factor, RPE, ...)."""

    def __init__(self, message: str, **context: Any):
        super().__init__(
            code=PlannerErrorCode.INVALID_INPUT,
            message=message,
            context=context,
        )


class NutritionDataError(PlannerError):
    """Raised when a recipe's macros do not reconcile with its calories.

    Context includes:
        - recipe_id: The inconsistent recipe
        - stated_kcal: Calories per portion as declared
        - computed_kcal: 4*protein + 9*fat + 4*carbs
        - deviation: Relative deviation between the two
    """

    def __init__(
        self,
        recipe_id: str,
        stated_kcal: float,
        computed_kcal: float,
        deviation: float,
    ):
        super().__init__(
            code=PlannerErrorCode.INCONSISTENT_NUTRITION,
            message=(
                f"Recipe '{recipe_id}' states {stated_kcal:.0f} kcal but its macros "
                f"add up to {computed_kcal:.0f} kcal ({deviation:.0%} off)"
            ),
            context={
                "recipe_id": recipe_id,
                "stated_kcal": stated_kcal,
                "computed_kcal": computed_kcal,
                "deviation": round(deviation, 4),
            },
        )
        self.recipe_id = recipe_id


class UnknownReferenceError(PlannerError):
    """Raised when a record points at a catalog id that does not exist."""

    def __init__(self, kind: str, ref_id: str):
        super().__init__(
            code=PlannerErrorCode.UNKNOWN_REFERENCE,
            message=f"Unknown {kind} '{ref_id}'",
            context={"kind": kind, "id": ref_id},
        )
        self.ref_id = ref_id


# --- Expected empty outcomes ---


class FailureCode(Enum):
    """Why a generator produced no plan."""

    NO_MEALS = "NO_MEALS"
    NO_ELIGIBLE_TEMPLATE = "NO_ELIGIBLE_TEMPLATE"


@dataclass(frozen=True)
class PlanningFailure:
    """Explicit "no plan produced" signal. Callers may relax constraints and retry."""

    code: FailureCode
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "failure_code": self.code.value,
            "message": self.message,
            "context": self.context,
        }
