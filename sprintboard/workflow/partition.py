"""Backlog/board placement rules.

Placement is a projection of the stored fields (``sprint_id``,
``is_in_backlog``, ``is_archived`` and the sprint's status). It is never
persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Union

from .models import Issue, Sprint, SprintStatus

UNSCHEDULED = "unscheduled"


class Visibility(Enum):
    BACKLOG = "backlog"
    BOARD = "board"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class Classification:
    visible_in: Visibility
    group_key: str | None = None


class ListKind(Enum):
    COLUMN = "column"
    BACKLOG = "backlog"
    SPRINT = "sprint"


@dataclass(frozen=True)
class ListRef:
    """Names one partition: a board column, a sprint list or the backlog."""

    kind: ListKind
    key: str | None = None

    @classmethod
    def column(cls, status: str) -> ListRef:
        return cls(ListKind.COLUMN, status)

    @classmethod
    def backlog(cls) -> ListRef:
        return cls(ListKind.BACKLOG)

    @classmethod
    def sprint(cls, sprint_id: str) -> ListRef:
        return cls(ListKind.SPRINT, sprint_id)


SprintLookup = Union[Mapping[str, Sprint], Callable[[str], "Sprint | None"]]


def _resolve(sprint_lookup: SprintLookup, sprint_id: str) -> Sprint | None:
    if callable(sprint_lookup):
        return sprint_lookup(sprint_id)
    return sprint_lookup.get(sprint_id)


def classify(issue: Issue, sprint_lookup: SprintLookup) -> Classification:
    """Where ``issue`` shows up: backlog (with its group), board, or nowhere."""
    if issue.is_archived:
        return Classification(Visibility.HIDDEN)
    if issue.sprint_id is None:
        return Classification(Visibility.BACKLOG, UNSCHEDULED)

    sprint = _resolve(sprint_lookup, issue.sprint_id)
    if sprint is None:
        # Dangling sprint reference: the sprint record is gone.
        return Classification(Visibility.BACKLOG, UNSCHEDULED)
    if sprint.status is SprintStatus.FUTURE:
        return Classification(Visibility.BACKLOG, sprint.id)
    if sprint.status is SprintStatus.ACTIVE:
        if not issue.is_in_backlog:
            return Classification(Visibility.BOARD, sprint.id)
        return Classification(Visibility.BACKLOG, sprint.id)
    return Classification(Visibility.HIDDEN, sprint.id)


def backlog_flag_for(sprint: Sprint | None) -> bool:
    """``is_in_backlog`` value for an issue placed into ``sprint``.

    Only membership of an active sprint puts an issue on the board.
    """
    return not (sprint is not None and sprint.status is SprintStatus.ACTIVE)


def group_backlog(
    issues: list[Issue], sprint_lookup: SprintLookup
) -> dict[str, list[Issue]]:
    """Backlog issues keyed by group, each group sorted by order."""
    groups: dict[str, list[Issue]] = {}
    for issue in issues:
        placement = classify(issue, sprint_lookup)
        if placement.visible_in is not Visibility.BACKLOG:
            continue
        groups.setdefault(placement.group_key, []).append(issue)
    for members in groups.values():
        members.sort(key=lambda i: i.order)
    return groups
