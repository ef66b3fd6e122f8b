"""Shared fixtures for engine tests."""

from datetime import date

import pytest

from src.rollcall.config import reset_config
from src.rollcall.models import Person, TeamRotation


@pytest.fixture(autouse=True)
def fast_config(monkeypatch):
    """No real sleeping between store retries; fresh settings per test."""
    monkeypatch.setenv("STORE_RETRY_WAIT_SECONDS", "0")
    monkeypatch.delenv("DEFAULT_ENGINE_VERSION", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def rotation_11_3() -> TeamRotation:
    """11 days on base, 3 at home, anchored on 2026-01-01."""
    return TeamRotation(
        id="rot-1",
        team_id="team-1",
        days_on_base=11,
        days_at_home=3,
        cycle_length=14,
        start_date="2026-01-01",
        arrival_time="10:00",
        departure_time="14:00",
    )


@pytest.fixture
def soldier() -> Person:
    return Person(id="p-1", name="Test Soldier", team_id="team-1", unit_id="company-a")


@pytest.fixture
def free_day() -> date:
    return date(2026, 2, 6)
