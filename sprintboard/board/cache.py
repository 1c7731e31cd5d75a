"""Working copy of the active project's issues, with filtered views."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Iterable

from ..config import BoardConfig
from ..workflow.interface import DocumentStore, Notifier
from ..workflow.models import BoardFilter, Issue, apply_changes, issue_from_record
from ..workflow.partition import ListKind, ListRef
from .notify import LoggingNotifier
from .state import LoadingErrorState

logger = logging.getLogger(__name__)


def matches_filter(issue: Issue, board_filter: BoardFilter) -> bool:
    """True when ``issue`` belongs on the filtered board."""
    query = board_filter.search_text.lower()
    if query not in issue.title.lower() and query not in issue.key.lower():
        return False
    if board_filter.only_mine and issue.assignee_id != board_filter.user_id:
        return False
    if board_filter.assignee_ids and issue.assignee_id not in board_filter.assignee_ids:
        return False
    if board_filter.status_ids and issue.status not in board_filter.status_ids:
        return False
    if board_filter.priorities and issue.priority not in board_filter.priorities:
        return False
    return not issue.is_in_backlog and not issue.is_archived


class IssueCache(LoadingErrorState):
    """Issues of one project, replaced as a whole on every change.

    ``issues`` is an immutable tuple; every patch builds a new one, so a
    reader holding the previous tuple never sees a half-applied update.
    Views are recomputed from ``issues`` and ``filter`` on each call.
    """

    def __init__(
        self,
        store: DocumentStore,
        notifier: Notifier | None = None,
        config: BoardConfig | None = None,
    ):
        super().__init__()
        self._store = store
        self._notifier = notifier or LoggingNotifier()
        self._config = config or BoardConfig()
        self.project_id: str | None = None
        self.issues: tuple[Issue, ...] = ()
        self.filter = BoardFilter()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, project_id: str | None) -> bool:
        """Replace the working set with the issues of ``project_id``.

        On failure the previous set is kept and the error is recorded.
        """
        self.set_loading(True)
        self.clear_error()
        if project_id is None:
            self.project_id = None
            self.issues = ()
            self.set_loading(False)
            return True

        try:
            records = await self._store.query_by_field(
                self._config.issues_collection, "projectId", project_id
            )
            issues = tuple(issue_from_record(r) for r in records)
        except Exception as e:
            message = str(e) or "Failed to load issues"
            logger.warning("Loading issues for %s failed: %s", project_id, message)
            self.set_error(message)
            self._notifier.show_error(message)
            return False

        self.project_id = project_id
        self.issues = issues
        self.set_loading(False)
        logger.debug("Loaded %d issues for %s", len(issues), project_id)
        return True

    def apply_remote(self, records: Iterable[dict[str, Any]]) -> None:
        """Take a confirmed snapshot from the store's change stream."""
        self.issues = tuple(issue_from_record(r) for r in records)

    # ------------------------------------------------------------------
    # Copy-on-write mutation
    # ------------------------------------------------------------------

    def get(self, issue_id: str) -> Issue | None:
        for issue in self.issues:
            if issue.id == issue_id:
                return issue
        return None

    def replace_all(self, issues: Iterable[Issue]) -> None:
        self.issues = tuple(issues)

    def snapshot(self) -> tuple[Issue, ...]:
        return self.issues

    def restore(self, snapshot: tuple[Issue, ...]) -> None:
        self.issues = snapshot

    def patch_issue(self, issue_id: str, changes: dict[str, Any]) -> Issue | None:
        """Apply attribute changes to one issue. Returns the previous version."""
        previous = self.get(issue_id)
        if previous is None:
            return None
        self.patch_many({issue_id: changes})
        return previous

    def patch_many(self, changes_by_id: dict[str, dict[str, Any]]) -> None:
        if not changes_by_id:
            return
        self.issues = tuple(
            apply_changes(issue, changes_by_id[issue.id]) if issue.id in changes_by_id else issue
            for issue in self.issues
        )

    def insert(self, issue: Issue) -> None:
        self.issues = self.issues + (issue,)

    def remove(self, issue_id: str) -> None:
        self.issues = tuple(i for i in self.issues if i.id != issue_id)

    # ------------------------------------------------------------------
    # Filter
    # ------------------------------------------------------------------

    def update_filter(self, **changes: Any) -> BoardFilter:
        for name in ("assignee_ids", "status_ids", "priorities"):
            if name in changes:
                changes[name] = frozenset(changes[name])
        self.filter = replace(self.filter, **changes)
        return self.filter

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def filtered_issues(self) -> list[Issue]:
        return [i for i in self.issues if matches_filter(i, self.filter)]

    def columns(self) -> dict[str, list[Issue]]:
        """Filtered board issues by status column, each sorted by order.

        Configured columns come first and are always present.
        """
        result: dict[str, list[Issue]] = {c: [] for c in self._config.columns}
        for issue in sorted(self.filtered_issues(), key=lambda i: i.order):
            result.setdefault(issue.status, []).append(issue)
        return result

    def column(self, status: str) -> list[Issue]:
        return self.columns().get(status, [])

    def backlog_issues(self) -> list[Issue]:
        return [
            i for i in self.issues
            if i.sprint_id is None and i.is_in_backlog and not i.is_archived
        ]

    def sprint_issues(self, sprint_id: str) -> list[Issue]:
        return [i for i in self.issues if i.sprint_id == sprint_id and not i.is_archived]

    def my_issues(self, user_id: str) -> list[Issue]:
        return [i for i in self.issues if i.assignee_id == user_id and not i.is_archived]

    def partition(self, ref: ListRef) -> list[Issue]:
        """Display list for a partition, sorted by order."""
        if ref.kind is ListKind.COLUMN:
            return self.column(ref.key)
        if ref.kind is ListKind.BACKLOG:
            items = self.backlog_issues()
        else:
            items = self.sprint_issues(ref.key)
        return sorted(items, key=lambda i: i.order)

    def next_issue_key(self, project_key: str) -> str:
        """Next free ``KEY-n`` among the cached issues."""
        pattern = re.compile(rf"^{re.escape(project_key)}-(\d+)$")
        highest = 0
        for issue in self.issues:
            m = pattern.match(issue.key)
            if m:
                highest = max(highest, int(m.group(1)))
        return f"{project_key}-{highest + 1}"
