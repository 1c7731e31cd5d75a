"""Shared test configuration."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from sprintboard.adapters.memory import InMemoryStore
from sprintboard.board.notify import RecordingAssignmentListener, RecordingNotifier
from sprintboard.board.session import create_session

PROJECT = "p-1"
ME = "u-me"
FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def assignments():
    return RecordingAssignmentListener()


@pytest.fixture
def session(store, notifier, assignments):
    s = create_session(store, notifier=notifier, assignments=assignments, actor_id=ME)
    s.sprints._clock = lambda: FIXED_NOW
    return s


@pytest.fixture
def seed_issue(store):
    """Insert an issue record; keyword args use stored field names."""

    def _seed(issue_id: str, **fields):
        record = {
            "projectId": PROJECT,
            "title": f"Issue {issue_id}",
            "key": f"BRD-{issue_id.split('-')[-1]}",
            "statusColumnId": "todo",
            "priority": "medium",
            "type": "task",
            "order": 0,
            "sprintId": None,
            "isInBacklog": True,
        }
        record.update(fields)
        store.seed("issues", issue_id, record)

    return _seed


@pytest.fixture
def seed_sprint(store):
    def _seed(sprint_id: str, status: str = "future", **fields):
        record = {
            "projectId": PROJECT,
            "name": f"Sprint {sprint_id}",
            "startDate": "2026-03-01T00:00:00+00:00",
            "endDate": "2026-03-15T00:00:00+00:00",
            "status": status,
        }
        record.update(fields)
        store.seed("sprints", sprint_id, record)

    return _seed
