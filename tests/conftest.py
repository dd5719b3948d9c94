"""Shared fixtures: catalogs and profile loaded from tests/fixtures."""
from pathlib import Path

import pytest

from fitplan.data_layer.catalog import FoodDB, RecipeDB
from fitplan.data_layer.user_profile import UserProfileLoader

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def recipes():
    return RecipeDB(str(FIXTURES / "recipes.json")).get_all_recipes()


@pytest.fixture
def foods():
    return FoodDB(str(FIXTURES / "foods.json")).get_all_foods()


@pytest.fixture
def profile():
    return UserProfileLoader(str(FIXTURES / "user_profile.yaml")).load()


@pytest.fixture
def records():
    return UserProfileLoader(str(FIXTURES / "user_profile.yaml")).load_records()
