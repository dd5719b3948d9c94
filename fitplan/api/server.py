"""FastAPI server exposing the fitplan planners."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from fitplan.data_layer.catalog import RecipeDB
from fitplan.data_layer.exceptions import PlannerError
from fitplan.data_layer.models import UserProfile
from fitplan.data_layer.planner_config import PlannerConfig
from fitplan.data_layer.user_profile import profile_from_dict, records_from_dict
from fitplan.nutrition.metrics import calculate_all_metrics, validate_activity_factor
from fitplan.output.formatters import (
    format_meal_day_json,
    format_metrics_json,
    format_workout_day_json,
)
from fitplan.planning.meal_planner import MealPlanner
from fitplan.workouts.workout_planner import WorkoutPlanner

logger = logging.getLogger(__name__)

recipes_path = "data/recipes.json"
config = PlannerConfig.default()

app = FastAPI(title="fitplan API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Local development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ProfileRequest(BaseModel):
    id: str = "api-user"
    name: str = ""
    sex: str
    age: int
    height_cm: float
    weight_kg: float
    goal_weight_kg: float
    budget_level: str = "medium"
    calorie_target: Optional[int] = None
    created_at: Optional[date] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    health: Dict[str, Any] = Field(default_factory=dict)
    equipment: Dict[str, Any] = Field(default_factory=dict)


class MetricsRequest(BaseModel):
    profile: ProfileRequest
    activity_factor: Optional[float] = None


class MealPlanRequest(BaseModel):
    profile: ProfileRequest
    date: date
    include_post_workout: bool = True


class WorkoutPlanRequest(BaseModel):
    profile: ProfileRequest
    date: date
    records: Dict[str, Any] = Field(default_factory=dict)


def _build_user_profile(request: ProfileRequest) -> UserProfile:
    user = {
        "id": request.id,
        "name": request.name,
        "sex": request.sex,
        "age": request.age,
        "height_cm": request.height_cm,
        "weight_kg": request.weight_kg,
        "goal_weight_kg": request.goal_weight_kg,
        "budget_level": request.budget_level,
        "calorie_target": request.calorie_target,
        "created_at": request.created_at,
    }
    return profile_from_dict({
        "user": user,
        "preferences": request.preferences,
        "health": request.health,
        "equipment": request.equipment,
    })


def _invalid(exc: PlannerError) -> HTTPException:
    logger.info("Rejected request: %s", exc)
    return HTTPException(status_code=422, detail=exc.to_dict())


@app.post("/api/metrics")
def metrics(request: MetricsRequest) -> Dict[str, Any]:
    try:
        user_profile = _build_user_profile(request.profile)
        factor = config.activity_factor
        if request.activity_factor is not None:
            factor = validate_activity_factor(request.activity_factor)
        return format_metrics_json(calculate_all_metrics(user_profile, factor))
    except PlannerError as exc:
        raise _invalid(exc) from exc


@app.post("/api/meal-plan")
def meal_plan(request: MealPlanRequest) -> Dict[str, Any]:
    try:
        user_profile = _build_user_profile(request.profile)
        recipes = RecipeDB(recipes_path).get_all_recipes()
        planner = MealPlanner(
            recipes,
            day_templates=config.day_templates,
            activity_factor=config.activity_factor,
        )
        result = planner.plan_daily_meals(user_profile, request.date, request.include_post_workout)
        return format_meal_day_json(result, {r.id: r for r in recipes})
    except PlannerError as exc:
        raise _invalid(exc) from exc


@app.post("/api/workout-plan")
def workout_plan(request: WorkoutPlanRequest) -> Dict[str, Any]:
    try:
        user_profile = _build_user_profile(request.profile)
        records = records_from_dict(request.records)
        planner = WorkoutPlanner(config.workout_templates)
        return format_workout_day_json(planner.plan_workout(user_profile, records, request.date))
    except PlannerError as exc:
        raise _invalid(exc) from exc
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.get("/api/recipes")
def list_recipes() -> List[Dict[str, str]]:
    try:
        recipe_db = RecipeDB(recipes_path)
        return [
            {"id": r.id, "name": r.name, "category": r.category.value}
            for r in recipe_db.get_all_recipes()
        ]
    except PlannerError as exc:
        raise HTTPException(status_code=500, detail=exc.to_dict()) from exc


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
