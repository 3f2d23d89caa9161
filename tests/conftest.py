"""Shared fixtures for planner engine tests."""

import json

import pytest

from planner_engine.database import PlanningRepository, create_tables, get_db_engine
from planner_engine.models import SubcategoryInfo
from planner_engine.utils import PersistenceError

TERTIAL_CATEGORY = "11111111-1111-1111-1111-111111111111"
THEME_CATEGORY = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def subcategories():
    return [
        SubcategoryInfo(id="fa-service", name="Service & Kompetens", category_id=TERTIAL_CATEGORY,
                        color="#93C5FD", start_month=0, end_month=3, sort_order=1),
        SubcategoryInfo(id="fa-plats", name="Platsutveckling", category_id=TERTIAL_CATEGORY,
                        color="#86EFAC", start_month=4, end_month=7, sort_order=2),
        SubcategoryInfo(id="fa-etablering", name="Etablering & Innovation", category_id=TERTIAL_CATEGORY,
                        color="#FCA5A5", start_month=8, end_month=11, sort_order=3),
        SubcategoryInfo(id="fa-latt", name="Lätt att göra rätt", category_id=THEME_CATEGORY,
                        color="#93C5FD", sort_order=1),
        SubcategoryInfo(id="fa-mod", name="Mod att växa", category_id=THEME_CATEGORY,
                        color="#FDBA74", sort_order=2),
        SubcategoryInfo(id="fa-framtid", name="Framtidssäkring av företag", category_id=THEME_CATEGORY,
                        color="#86EFAC", sort_order=3),
        SubcategoryInfo(id="fa-falkenberg", name="Falkenberg växer", category_id=THEME_CATEGORY,
                        color="#D8B4FE", sort_order=4),
    ]


@pytest.fixture
def scenario_grid():
    """Header block with one info column and two January week columns."""
    return [
        ["", "Responsible", "Januari", "Januari"],
        ["", "", 1, 2],
        ["Kickoff", "AB", 15, ""],
    ]


class FakeModelClient:
    """Returns a canned response and records the prompts it was given."""

    def __init__(self, response="[]", error=None):
        self.response = response if isinstance(response, str) else json.dumps(response)
        self.error = error
        self.calls = []

    def generate(self, system_instruction, content):
        self.calls.append((system_instruction, content))
        if self.error:
            raise self.error
        return self.response


class FakeRepository:
    """In-memory stand-in for PlanningRepository."""

    def __init__(self, existing=(), fail_titles=(), remember_created=False):
        self.existing = list(existing)
        self.fail_titles = set(fail_titles)
        self.remember_created = remember_created
        self.created = []
        self.list_calls = 0

    def list_activities(self, focus_area_ids=None, **filters):
        self.list_calls += 1
        return [
            a for a in self.existing
            if focus_area_ids is None or a.focus_area_id in focus_area_ids
        ]

    def create_activity(self, candidate):
        if candidate.title in self.fail_titles:
            raise PersistenceError(f"insert failed for {candidate.title}")
        self.created.append(candidate)
        if self.remember_created:
            self.existing.append(candidate)
        return candidate


@pytest.fixture
def fake_model():
    return FakeModelClient


@pytest.fixture
def fake_repository():
    return FakeRepository


@pytest.fixture
def repository(tmp_path):
    engine = get_db_engine(str(tmp_path / "planning_test.db"))
    create_tables(engine)
    repo = PlanningRepository(engine)
    repo.seed_default_taxonomy()
    return repo
