"""
Shared fixtures and collection settings.

- The test environment variables are set for every test (autouse)
- The project root is put on ``sys.path`` so ``import globalsearch`` resolves
- Sample records for the four searchable domains and a manual debounce clock
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from globalsearch.config import clear_settings_cache  # noqa: E402
from globalsearch.search.models import SearchResultType  # noqa: E402
from globalsearch.search.scoring import RelevanceScorer  # noqa: E402
from globalsearch.search.stores import (  # noqa: E402
    InMemoryCollection,
    InMemoryHistoryCollection,
)

FIXED_NOW = datetime(2025, 6, 2, 12, 0)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Set minimal environment variables for each test.

    ``monkeypatch`` restores them afterwards; the settings cache is cleared on
    both sides so every test sees its own environment.
    """

    env: dict[str, str] = {
        "HISTORY_FILE": str(tmp_path / "history.json"),
        "LOG_DIR": str(tmp_path / "logs"),
        "LOG_FORMAT": "console",
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    clear_settings_cache()
    yield
    clear_settings_cache()


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Debounce scheduler driven by :meth:`advance` instead of wall time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def armed(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted(
            (t for t in self.armed if t.when <= self.now), key=lambda t: t.when
        )
        for timer in due:
            self.timers.remove(timer)
            timer.callback()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def scorer() -> RelevanceScorer:
    return RelevanceScorer(clock=lambda: FIXED_NOW)


def sample_tasks() -> list[dict]:
    return [
        {
            "id": "t1",
            "title": "urgent fix login",
            "description": "Users cannot log in",
            "status": "todo",
            "priority": "urgent",
            "tags": ["bug", "auth"],
            "createdAt": datetime(2025, 5, 20, 9, 0),
            "updatedAt": datetime(2025, 6, 1, 9, 0),
        },
        {
            "id": "t2",
            "title": "urgent review",
            "status": "in_progress",
            "priority": "low",
            "tags": ["review"],
            "createdAt": datetime(2025, 4, 1, 9, 0),
            "updatedAt": datetime(2025, 4, 2, 9, 0),
        },
        {
            "id": "t3",
            "title": "Write docs",
            "description": "urgent documentation pass",
            "status": "todo",
            "priority": "medium",
            "tags": ["docs"],
            "createdAt": datetime(2025, 5, 1, 0, 0),
            "updatedAt": datetime(2025, 5, 2, 9, 0),
        },
        {
            "id": "t4",
            "title": "Deploy backend",
            "description": "Ship release",
            "status": "waiting",
            "priority": "high",
            "tags": ["urgent", "backend"],
            "createdAt": datetime(2025, 5, 25, 9, 0),
            "updatedAt": datetime(2025, 5, 26, 0, 0),
        },
        {
            "id": "t5",
            "title": "Plan sprint",
            "description": "planning",
            "status": "todo",
            "priority": "medium",
            "tags": ["planning"],
            "createdAt": datetime(2025, 3, 1, 9, 0),
        },
    ]


def sample_teams() -> list[dict]:
    return [
        {
            "id": "g1",
            "name": "urgent response team",
            "description": "On-call rotation",
            "isActive": True,
            "members": ["u1", "u2", "u3"],
            "ownerId": "u1",
            "createdAt": datetime(2025, 1, 10, 9, 0),
            "updatedAt": datetime(2025, 5, 1, 9, 0),
        },
        {
            "id": "g2",
            "name": "Design guild",
            "description": "urgent design reviews",
            "isActive": False,
            "members": ["u4"],
            "ownerId": "u2",
            "createdAt": datetime(2025, 2, 1, 9, 0),
        },
    ]


def sample_projects() -> list[dict]:
    return [
        {
            "id": "p1",
            "name": "urgent migration",
            "status": "active",
            "progress": 50,
            "teamId": "g1",
            "createdAt": datetime(2025, 2, 15, 9, 0),
            "updatedAt": datetime(2025, 5, 30, 0, 0),
        },
        {
            "id": "p2",
            "name": "Website redesign",
            "description": "urgent rebrand",
            "status": "completed",
            "progress": 100,
            "teamId": "g2",
            "createdAt": datetime(2024, 12, 1, 9, 0),
        },
    ]


def sample_users() -> list[dict]:
    return [
        {
            "id": "u1",
            "displayName": "urgentops",
            "email": "ops@example.com",
            "bio": "handles incidents",
            "role": "admin",
            "isActive": True,
            "createdAt": datetime(2024, 11, 1, 9, 0),
        },
        {
            "id": "u2",
            "displayName": "Alice Smith",
            "email": "alice@example.com",
            "role": "viewer",
            "isActive": True,
            "createdAt": datetime(2024, 11, 2, 9, 0),
        },
        {
            "id": "u3",
            "displayName": "Bob",
            "email": "urgent@example.com",
            "role": "super_admin",
            "isActive": True,
            "createdAt": datetime(2024, 11, 3, 9, 0),
        },
    ]


@pytest.fixture
def collections() -> dict[SearchResultType, InMemoryCollection]:
    return {
        SearchResultType.TASK: InMemoryCollection("tasks", sample_tasks()),
        SearchResultType.TEAM: InMemoryCollection("teams", sample_teams()),
        SearchResultType.PROJECT: InMemoryCollection("projects", sample_projects()),
        SearchResultType.USER: InMemoryCollection("users", sample_users()),
    }


@pytest.fixture
def history_collection() -> InMemoryHistoryCollection:
    return InMemoryHistoryCollection()


@pytest.fixture
def records() -> dict[str, dict]:
    """Every sample record keyed by id (ids are unique across domains)."""
    return {
        r["id"]: r
        for r in (
            *sample_tasks(),
            *sample_teams(),
            *sample_projects(),
            *sample_users(),
        )
    }
