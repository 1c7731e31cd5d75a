"""Drag-and-drop moves and single-issue writes against the issue cache.

Every action patches the cache first, then awaits the store. Reorders
inside one partition are written as one batch and are not reverted on
failure. Moves between partitions and plain issue updates are reverted
field by field when the store rejects them.

Writes to one issue are last-write-wins at the store. Each single-issue
write takes a sequence number; a failed write only rolls back if no newer
write to the same issue has started, so a stale rollback never overwrites
a later optimistic change.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..config import BoardConfig
from ..workflow.interface import AssignmentEvent, AssignmentListener, DocumentStore, Notifier
from ..workflow.models import (
    Issue,
    IssuePriority,
    IssueType,
    SprintStatus,
    issue_changes_to_record,
    issue_from_record,
    issue_to_record,
)
from ..workflow.ordering import compute_order, move_in_list, neighbors_at, order_after_last, renormalize
from ..workflow.partition import ListKind, ListRef, backlog_flag_for
from .cache import IssueCache
from .notify import LoggingNotifier, NullAssignmentListener
from .results import ActionResult, MoveKind, MoveResult

if TYPE_CHECKING:
    from .sprints import SprintLifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragMove:
    """One finished drag gesture."""

    issue_id: str
    source: ListRef
    destination: ListRef
    source_index: int
    destination_index: int


@dataclass(frozen=True)
class NewIssue:
    title: str
    status: str = "todo"
    sprint_id: str | None = None
    type: IssueType = IssueType.TASK
    priority: IssuePriority = IssuePriority.MEDIUM
    description: str = ""
    assignee_id: str | None = None
    due_date: str | None = None
    project_key: str | None = None


class _Rejected(Exception):
    """A move or update refused before any write."""


class DragMoveReconciler:
    """Turns drag gestures and issue edits into cache patches and store writes."""

    def __init__(
        self,
        cache: IssueCache,
        store: DocumentStore,
        sprints: SprintLifecycle | None = None,
        notifier: Notifier | None = None,
        assignments: AssignmentListener | None = None,
        config: BoardConfig | None = None,
        actor_id: str | None = None,
    ):
        self._cache = cache
        self._store = store
        self._sprints = sprints
        self._notifier = notifier or LoggingNotifier()
        self._assignments = assignments or NullAssignmentListener()
        self._config = config or BoardConfig()
        self.actor_id = actor_id
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    @property
    def _collection(self) -> str:
        return self._config.issues_collection

    def _sprint(self, sprint_id: str | None):
        if sprint_id is None or self._sprints is None:
            return None
        return self._sprints.get(sprint_id)

    def _begin_write(self, issue_id: str) -> int:
        seq = next(self._counter)
        self._latest[issue_id] = seq
        return seq

    def _is_latest(self, issue_id: str, seq: int) -> bool:
        return self._latest.get(issue_id) == seq

    def _end_write(self, issue_id: str, seq: int) -> None:
        if self._is_latest(issue_id, seq):
            del self._latest[issue_id]

    def forget_writes(self) -> None:
        """Drop write sequence state, e.g. after switching projects."""
        self._latest.clear()

    def _report(self, message: str) -> None:
        self._cache.set_error(message)
        self._notifier.show_error(message)

    # ------------------------------------------------------------------
    # Drag and drop
    # ------------------------------------------------------------------

    async def move(self, command: DragMove) -> MoveResult:
        issue = self._cache.get(command.issue_id)
        if issue is None:
            logger.debug("Ignoring move of unknown issue %s", command.issue_id)
            return MoveResult(command.issue_id, MoveKind.NOOP)
        if command.source == command.destination:
            return await self._reorder(issue, command)
        return await self._transfer(issue, command)

    async def _reorder(self, issue: Issue, command: DragMove) -> MoveResult:
        items = self._cache.partition(command.source)
        ids = [i.id for i in items]
        if issue.id not in ids:
            return MoveResult(issue.id, MoveKind.NOOP)

        reordered = move_in_list(items, ids.index(issue.id), command.destination_index)
        changed = renormalize(reordered, self._config.order_gap)
        updates = [(issue_id, {"order": order}) for issue_id, order in changed]
        result = MoveResult(issue.id, MoveKind.REORDER, updates=updates)
        if not updates:
            return result

        self._cache.patch_many(dict(updates))
        try:
            await self._store.batch_update(
                self._collection,
                [(issue_id, issue_changes_to_record(c)) for issue_id, c in updates],
            )
        except Exception as e:
            # The local order stays as dropped; the next remote snapshot fixes it.
            result.error = str(e) or "Failed to reorder issues"
            logger.warning("Reorder of %s failed: %s", command.source, result.error)
            self._report(result.error)
            return result

        result.persisted = True
        return result

    def _board_changes(self, issue: Issue) -> dict[str, Any]:
        """Fields that put ``issue`` on the board of an active sprint."""
        current = self._sprint(issue.sprint_id)
        if current is not None and current.status is SprintStatus.ACTIVE:
            return {"is_in_backlog": False}
        active = self._sprints.active_sprint() if self._sprints is not None else None
        if active is None:
            raise _Rejected("Start a sprint before moving issues onto the board")
        return {"sprint_id": active.id, "is_in_backlog": False}

    def _destination_changes(self, issue: Issue, destination: ListRef) -> dict[str, Any]:
        if destination.kind is ListKind.COLUMN:
            changes = {"status": destination.key}
            if issue.is_in_backlog or issue.sprint_id is None:
                changes.update(self._board_changes(issue))
            return changes
        if destination.kind is ListKind.BACKLOG:
            return {"sprint_id": None, "is_in_backlog": True}

        sprint = self._sprint(destination.key)
        if sprint is None:
            raise LookupError(destination.key)
        if sprint.status is SprintStatus.COMPLETED:
            raise _Rejected(f"Sprint {sprint.name} is already completed")
        return {"sprint_id": sprint.id, "is_in_backlog": backlog_flag_for(sprint)}

    async def _transfer(self, issue: Issue, command: DragMove) -> MoveResult:
        try:
            changes = self._destination_changes(issue, command.destination)
        except LookupError:
            logger.debug("Ignoring move into unknown sprint %s", command.destination.key)
            return MoveResult(issue.id, MoveKind.NOOP)
        except _Rejected as e:
            self._notifier.show_error(str(e))
            return MoveResult(issue.id, MoveKind.TRANSFER, error=str(e))

        dest_items = [i for i in self._cache.partition(command.destination) if i.id != issue.id]
        prev_order, next_order = neighbors_at(dest_items, command.destination_index)
        new_order = compute_order(prev_order, next_order, self._config.order_gap)

        changes = {k: v for k, v in changes.items() if getattr(issue, k) != v}
        changes["order"] = new_order
        result = MoveResult(issue.id, MoveKind.TRANSFER, updates=[(issue.id, changes)])

        seq = self._begin_write(issue.id)
        self._cache.patch_issue(issue.id, changes)
        try:
            await self._store.update(self._collection, issue.id, issue_changes_to_record(changes))
        except Exception as e:
            result.error = str(e) or "Failed to move issue"
            result.rolled_back = self._rollback(issue, changes, seq)
            self._report(result.error)
            return result
        finally:
            self._end_write(issue.id, seq)

        result.persisted = True
        return result

    def _rollback(self, previous: Issue, changes: dict[str, Any], seq: int) -> bool:
        if not self._is_latest(previous.id, seq):
            logger.info("Skipping rollback of %s: a newer write is in flight", previous.id)
            return False
        self._cache.patch_issue(previous.id, {k: getattr(previous, k) for k in changes})
        logger.info("Rolled back %s", previous.id)
        return True

    # ------------------------------------------------------------------
    # Single-issue actions
    # ------------------------------------------------------------------

    async def update_issue(self, issue_id: str, changes: dict[str, Any]) -> ActionResult:
        """Optimistically apply ``changes`` and persist them, reverting on failure."""
        issue = self._cache.get(issue_id)
        if issue is None:
            return ActionResult(ok=False, target_id=issue_id)

        changes = dict(changes)
        if "sprint_id" in changes and "is_in_backlog" not in changes:
            changes["is_in_backlog"] = backlog_flag_for(self._sprint(changes["sprint_id"]))

        seq = self._begin_write(issue_id)
        self._cache.patch_issue(issue_id, changes)
        try:
            await self._store.update(self._collection, issue_id, issue_changes_to_record(changes))
        except Exception as e:
            message = str(e) or "Failed to update issue"
            self._rollback(issue, changes, seq)
            self._report(message)
            return ActionResult(ok=False, target_id=issue_id, error=message)
        finally:
            self._end_write(issue_id, seq)

        new_assignee = changes.get("assignee_id")
        if new_assignee is not None and new_assignee != issue.assignee_id:
            await self._announce_assignment(self._cache.get(issue_id) or issue)
        return ActionResult(ok=True, target_id=issue_id)

    async def move_to_board(self, issue_id: str) -> ActionResult:
        issue = self._cache.get(issue_id)
        if issue is None:
            return ActionResult(ok=False, target_id=issue_id)
        try:
            changes = self._board_changes(issue)
        except _Rejected as e:
            self._notifier.show_error(str(e))
            return ActionResult(ok=False, target_id=issue_id, error=str(e))
        return await self.update_issue(issue_id, changes)

    async def move_to_backlog(self, issue_id: str) -> ActionResult:
        return await self.update_issue(issue_id, {"is_in_backlog": True})

    async def add_issue(self, draft: NewIssue) -> ActionResult:
        project_id = self._cache.project_id
        if project_id is None:
            return ActionResult(ok=False, error="No project loaded")

        sprint = self._sprint(draft.sprint_id)
        sprint_id = sprint.id if sprint is not None else None
        is_in_backlog = backlog_flag_for(sprint)
        if is_in_backlog:
            ref = ListRef.sprint(sprint_id) if sprint_id else ListRef.backlog()
        else:
            ref = ListRef.column(draft.status)
        order = order_after_last(self._cache.partition(ref), self._config.order_gap)
        key = self._cache.next_issue_key(draft.project_key) if draft.project_key else ""

        issue = Issue(
            id="",
            project_id=project_id,
            title=draft.title,
            status=draft.status,
            key=key,
            description=draft.description,
            type=draft.type,
            priority=draft.priority,
            sprint_id=sprint_id,
            is_in_backlog=is_in_backlog,
            order=order,
            assignee_id=draft.assignee_id,
            reporter_id=self.actor_id,
            due_date=draft.due_date,
        )
        try:
            issue_id = await self._store.add(self._collection, issue_to_record(issue))
        except Exception as e:
            message = str(e) or "Failed to add issue"
            self._report(message)
            return ActionResult(ok=False, error=message)

        created = issue_from_record({**issue_to_record(issue), "id": issue_id})
        self._cache.insert(created)
        self._notifier.show_success("Issue created successfully")
        if created.assignee_id is not None:
            await self._announce_assignment(created)
        return ActionResult(ok=True, target_id=issue_id)

    async def delete_issue(self, issue_id: str) -> ActionResult:
        if self._cache.get(issue_id) is None:
            return ActionResult(ok=False, target_id=issue_id)
        try:
            await self._store.delete(self._collection, issue_id)
        except Exception as e:
            message = str(e) or "Failed to delete issue"
            self._report(message)
            return ActionResult(ok=False, target_id=issue_id, error=message)
        self._cache.remove(issue_id)
        self._latest.pop(issue_id, None)
        self._notifier.show_success("Issue deleted successfully")
        return ActionResult(ok=True, target_id=issue_id)

    async def _announce_assignment(self, issue: Issue) -> None:
        if issue.assignee_id is None or issue.assignee_id == self.actor_id:
            return
        event = AssignmentEvent(
            issue_id=issue.id,
            project_id=issue.project_id,
            assignee_id=issue.assignee_id,
            actor_id=self.actor_id,
            title=issue.title,
        )
        try:
            await self._assignments.issue_assigned(event)
        except Exception as e:
            logger.warning("Assignment notification for %s failed: %s", issue.id, e)
