"""Domain models for the issue board."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any


class IssueType(Enum):
    TASK = "task"
    BUG = "bug"
    STORY = "story"


class IssuePriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SprintStatus(Enum):
    FUTURE = "future"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Subtask:
    id: str
    title: str
    completed: bool = False


@dataclass(frozen=True)
class Comment:
    id: str
    author_id: str
    text: str
    created_at: str  # ISO timestamp


@dataclass(frozen=True)
class Issue:
    id: str
    project_id: str
    title: str
    status: str = "todo"
    key: str = ""
    description: str = ""
    type: IssueType = IssueType.TASK
    priority: IssuePriority = IssuePriority.MEDIUM
    sprint_id: str | None = None
    is_in_backlog: bool = True
    is_archived: bool = False
    order: float = 0
    assignee_id: str | None = None
    reporter_id: str | None = None
    due_date: str | None = None
    subtasks: tuple[Subtask, ...] = ()
    comments: tuple[Comment, ...] = ()

    def has_incomplete_subtasks(self) -> bool:
        return any(not s.completed for s in self.subtasks)


@dataclass(frozen=True)
class Sprint:
    id: str
    project_id: str
    name: str
    start_date: str
    end_date: str
    status: SprintStatus = SprintStatus.FUTURE
    goal: str | None = None


@dataclass(frozen=True)
class BoardFilter:
    search_text: str = ""
    only_mine: bool = False
    user_id: str | None = None
    # Reserved: resolved issues are not filtered yet.
    ignore_resolved: bool = False
    assignee_ids: frozenset[str] = frozenset()
    status_ids: frozenset[str] = frozenset()
    priorities: frozenset[IssuePriority] = frozenset()


# ---------------------------------------------------------------------------
# Store record mapping
# ---------------------------------------------------------------------------

# Python attribute name -> stored field name
ISSUE_FIELDS: dict[str, str] = {
    "project_id": "projectId",
    "title": "title",
    "status": "statusColumnId",
    "key": "key",
    "description": "description",
    "type": "type",
    "priority": "priority",
    "sprint_id": "sprintId",
    "is_in_backlog": "isInBacklog",
    "is_archived": "isArchived",
    "order": "order",
    "assignee_id": "assigneeId",
    "reporter_id": "reporterId",
    "due_date": "dueDate",
    "subtasks": "subtasks",
    "comments": "comments",
}

SPRINT_FIELDS: dict[str, str] = {
    "project_id": "projectId",
    "name": "name",
    "goal": "goal",
    "start_date": "startDate",
    "end_date": "endDate",
    "status": "status",
}

_ISSUE_ATTRS = {v: k for k, v in ISSUE_FIELDS.items()}
_SPRINT_ATTRS = {v: k for k, v in SPRINT_FIELDS.items()}


def _to_record_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Subtask):
        return {"id": value.id, "title": value.title, "completed": value.completed}
    if isinstance(value, Comment):
        return {
            "id": value.id,
            "userId": value.author_id,
            "content": value.text,
            "createdAt": value.created_at,
        }
    if isinstance(value, tuple):
        return [_to_record_value(v) for v in value]
    return value


def issue_changes_to_record(changes: dict[str, Any]) -> dict[str, Any]:
    """Translate a partial set of Issue attributes into stored field names."""
    return {ISSUE_FIELDS[k]: _to_record_value(v) for k, v in changes.items()}


def sprint_changes_to_record(changes: dict[str, Any]) -> dict[str, Any]:
    return {SPRINT_FIELDS[k]: _to_record_value(v) for k, v in changes.items()}


def issue_to_record(issue: Issue) -> dict[str, Any]:
    changes = {f.name: getattr(issue, f.name) for f in fields(issue) if f.name != "id"}
    return issue_changes_to_record(changes)


def sprint_to_record(sprint: Sprint) -> dict[str, Any]:
    changes = {f.name: getattr(sprint, f.name) for f in fields(sprint) if f.name != "id"}
    return sprint_changes_to_record(changes)


def issue_from_record(record: dict[str, Any]) -> Issue:
    """Build an Issue from a stored record with its id merged in.

    Missing optional fields fall back to the dataclass defaults; an absent
    ``isInBacklog`` follows the sprint membership (no sprint means backlog).
    """
    kwargs: dict[str, Any] = {"id": record["id"]}
    for name, value in record.items():
        attr = _ISSUE_ATTRS.get(name)
        if attr is None:
            continue
        kwargs[attr] = value

    if "type" in kwargs:
        kwargs["type"] = IssueType(kwargs["type"])
    if "priority" in kwargs:
        kwargs["priority"] = IssuePriority(kwargs["priority"])
    kwargs["subtasks"] = tuple(
        Subtask(id=s["id"], title=s.get("title", ""), completed=bool(s.get("completed")))
        for s in kwargs.get("subtasks") or ()
    )
    kwargs["comments"] = tuple(
        Comment(
            id=c["id"],
            author_id=c.get("userId", ""),
            text=c.get("content", ""),
            created_at=c.get("createdAt", ""),
        )
        for c in kwargs.get("comments") or ()
    )
    if kwargs.get("is_in_backlog") is None:
        kwargs["is_in_backlog"] = kwargs.get("sprint_id") is None
    if kwargs.get("is_archived") is None:
        kwargs["is_archived"] = False
    if kwargs.get("order") is None:
        kwargs["order"] = 0
    kwargs["title"] = kwargs.get("title") or ""
    kwargs["key"] = kwargs.get("key") or ""
    kwargs.setdefault("project_id", "")
    return Issue(**kwargs)


def sprint_from_record(record: dict[str, Any]) -> Sprint:
    kwargs: dict[str, Any] = {"id": record["id"]}
    for name, value in record.items():
        attr = _SPRINT_ATTRS.get(name)
        if attr is not None:
            kwargs[attr] = value
    kwargs["status"] = SprintStatus(kwargs.get("status") or SprintStatus.FUTURE.value)
    kwargs.setdefault("project_id", "")
    kwargs.setdefault("name", "")
    kwargs.setdefault("start_date", "")
    kwargs.setdefault("end_date", "")
    return Sprint(**kwargs)


def apply_changes(issue: Issue, changes: dict[str, Any]) -> Issue:
    """Return a copy of ``issue`` with attribute changes applied."""
    return replace(issue, **changes)
