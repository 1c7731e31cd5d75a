"""Sprint collection and lifecycle actions.

States: future -> active -> completed. Each action writes the member
issues as one batch first, then the sprint record, so a failure part way
leaves every issue in a state the placement rules still understand. The
cache is patched before the writes and not reverted on failure; the error
is recorded and shown instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from ..config import ActiveSprintPolicy, BoardConfig
from ..workflow.exceptions import InvalidTransitionError, SprintValidationError
from ..workflow.interface import DocumentStore, Notifier
from ..workflow.models import (
    Sprint,
    SprintStatus,
    issue_changes_to_record,
    sprint_changes_to_record,
    sprint_from_record,
    sprint_to_record,
)
from ..workflow.transitions import DELETABLE, validate_transition
from .cache import IssueCache
from .notify import LoggingNotifier
from .results import ActionResult
from .state import LoadingErrorState

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "goal", "start_date", "end_date"})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class StartSprint:
    """Values confirmed when starting a sprint. ``None`` keeps the current value."""

    name: str | None = None
    goal: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    duration_weeks: int | None = None


@dataclass(frozen=True)
class CompleteSprint:
    """Where unfinished work goes: ``None`` for the backlog or a future sprint id."""

    destination_sprint_id: str | None = None


class SprintLifecycle(LoadingErrorState):
    """Sprints of the active project and the actions that move them along."""

    def __init__(
        self,
        store: DocumentStore,
        issues: IssueCache,
        notifier: Notifier | None = None,
        config: BoardConfig | None = None,
        clock: Callable[[], datetime] = _now,
    ):
        super().__init__()
        self._store = store
        self._issues = issues
        self._notifier = notifier or LoggingNotifier()
        self._config = config or BoardConfig()
        self._clock = clock
        self.project_id: str | None = None
        self.sprints: tuple[Sprint, ...] = ()

    async def load(self, project_id: str | None) -> bool:
        self.set_loading(True)
        self.clear_error()
        if project_id is None:
            self.project_id = None
            self.sprints = ()
            self.set_loading(False)
            return True
        try:
            records = await self._store.query_by_field(
                self._config.sprints_collection, "projectId", project_id
            )
            sprints = tuple(sprint_from_record(r) for r in records)
        except Exception as e:
            message = str(e) or "Failed to load sprints"
            self.set_error(message)
            self._notifier.show_error(message)
            return False
        self.project_id = project_id
        self.sprints = sprints
        self.set_loading(False)
        return True

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get(self, sprint_id: str) -> Sprint | None:
        for sprint in self.sprints:
            if sprint.id == sprint_id:
                return sprint
        return None

    def active_sprints(self) -> list[Sprint]:
        return [s for s in self.sprints if s.status is SprintStatus.ACTIVE]

    def active_sprint(self) -> Sprint | None:
        """The sprint the board shows, or None when it is ambiguous.

        More than one active sprint is allowed under
        ``ActiveSprintPolicy.MULTIPLE``; callers must then pick from
        ``active_sprints()`` themselves.
        """
        active = self.active_sprints()
        if len(active) == 1:
            return active[0]
        if len(active) > 1:
            logger.warning(
                "%d active sprints in project %s, no single board sprint",
                len(active), self.project_id,
            )
        return None

    def future_sprints(self) -> list[Sprint]:
        return [s for s in self.sprints if s.status is SprintStatus.FUTURE]

    def completed_sprints(self) -> list[Sprint]:
        return [s for s in self.sprints if s.status is SprintStatus.COMPLETED]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _patch_sprint(self, sprint_id: str, changes: dict[str, Any]) -> None:
        self.sprints = tuple(
            replace(s, **changes) if s.id == sprint_id else s for s in self.sprints
        )

    def _fail(self, sprint_id: str, message: str) -> ActionResult:
        self.set_error(message)
        self._notifier.show_error(message)
        return ActionResult(ok=False, target_id=sprint_id, error=message)

    def _reject(self, error: Exception, sprint_id: str) -> ActionResult:
        message = str(error)
        logger.info("Rejected action on sprint %s: %s", sprint_id, message)
        self._notifier.show_error(message)
        return ActionResult(ok=False, target_id=sprint_id, error=message)

    async def _write_issues(self, changes_by_id: dict[str, dict[str, Any]]) -> None:
        """Patch the cache, then persist all issue changes as one batch."""
        if not changes_by_id:
            return
        self._issues.patch_many(changes_by_id)
        await self._store.batch_update(
            self._config.issues_collection,
            [(issue_id, issue_changes_to_record(c)) for issue_id, c in changes_by_id.items()],
        )

    async def _write_sprint(self, sprint_id: str, changes: dict[str, Any]) -> None:
        self._patch_sprint(sprint_id, changes)
        await self._store.update(
            self._config.sprints_collection, sprint_id, sprint_changes_to_record(changes)
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_sprint(
        self,
        name: str,
        goal: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> ActionResult:
        project_id = self.project_id or self._issues.project_id
        if project_id is None:
            return ActionResult(ok=False, error="No project loaded")

        now = self._clock()
        sprint = Sprint(
            id="",
            project_id=project_id,
            name=name,
            goal=goal,
            start_date=start_date or _iso(now),
            end_date=end_date or _iso(now + timedelta(days=self._config.sprint_length_days)),
            status=SprintStatus.FUTURE,
        )
        try:
            sprint_id = await self._store.add(
                self._config.sprints_collection, sprint_to_record(sprint)
            )
        except Exception as e:
            return self._fail("", str(e) or "Failed to create sprint")

        self.sprints = self.sprints + (replace(sprint, id=sprint_id),)
        logger.info("Created sprint %s (%s)", sprint_id, name)
        return ActionResult(ok=True, target_id=sprint_id)

    async def edit_sprint(self, sprint_id: str, **changes: Any) -> ActionResult:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown sprint field: {', '.join(sorted(unknown))}")
        if self.get(sprint_id) is None:
            return ActionResult(ok=False, target_id=sprint_id)
        try:
            await self._write_sprint(sprint_id, changes)
        except Exception as e:
            return self._fail(sprint_id, str(e) or "Failed to update sprint")
        return ActionResult(ok=True, target_id=sprint_id)

    def _start_changes(self, sprint: Sprint, command: StartSprint) -> dict[str, Any]:
        changes: dict[str, Any] = {"status": SprintStatus.ACTIVE}
        if command.name is not None:
            changes["name"] = command.name
        if command.goal is not None:
            changes["goal"] = command.goal
        start_date = command.start_date or sprint.start_date or _iso(self._clock())
        changes["start_date"] = start_date
        if command.end_date is not None:
            changes["end_date"] = command.end_date
        elif command.duration_weeks is not None:
            if not 1 <= command.duration_weeks <= 4:
                raise SprintValidationError(sprint.id, "Sprint duration must be 1 to 4 weeks")
            try:
                start = datetime.fromisoformat(start_date)
            except ValueError as e:
                raise SprintValidationError(sprint.id, "Invalid sprint start date") from e
            changes["end_date"] = _iso(start + timedelta(weeks=command.duration_weeks))
        return changes

    async def start_sprint(
        self, sprint_id: str, command: StartSprint | None = None
    ) -> ActionResult:
        """Make a future sprint active and put its issues on the board."""
        sprint = self.get(sprint_id)
        if sprint is None:
            return ActionResult(ok=False, target_id=sprint_id)
        command = command or StartSprint()
        members = self._issues.sprint_issues(sprint_id)

        try:
            validate_transition(sprint_id, sprint.status, SprintStatus.ACTIVE)
            if not members:
                raise SprintValidationError(
                    sprint_id, "Add at least one issue to the sprint before starting it"
                )
            if (
                self._config.active_sprint_policy is ActiveSprintPolicy.SINGLE
                and self.active_sprints()
            ):
                raise SprintValidationError(
                    sprint_id, "Complete the active sprint before starting another"
                )
            sprint_changes = self._start_changes(sprint, command)
        except (InvalidTransitionError, SprintValidationError) as e:
            return self._reject(e, sprint_id)

        try:
            await self._write_issues({i.id: {"is_in_backlog": False} for i in members})
            await self._write_sprint(sprint_id, sprint_changes)
        except Exception as e:
            return self._fail(sprint_id, str(e) or "Failed to start sprint")

        logger.info("Started sprint %s with %d issues", sprint_id, len(members))
        return ActionResult(ok=True, target_id=sprint_id, detail={"issues": len(members)})

    async def complete_sprint(
        self, sprint_id: str, command: CompleteSprint | None = None
    ) -> ActionResult:
        """Close an active sprint: archive done work, send the rest onward."""
        sprint = self.get(sprint_id)
        if sprint is None:
            return ActionResult(ok=False, target_id=sprint_id)
        command = command or CompleteSprint()
        destination = command.destination_sprint_id
        members = self._issues.sprint_issues(sprint_id)

        try:
            validate_transition(sprint_id, sprint.status, SprintStatus.COMPLETED)
            if destination is not None:
                target = self.get(destination)
                if target is None or target.status is not SprintStatus.FUTURE:
                    raise SprintValidationError(
                        sprint_id, "Unfinished issues can only move to a future sprint"
                    )
            blocked = [i for i in members if i.has_incomplete_subtasks()]
            if blocked:
                keys = ", ".join(i.key or i.id for i in blocked)
                raise SprintValidationError(
                    sprint_id, f"Finish or remove open subtasks first: {keys}"
                )
        except (InvalidTransitionError, SprintValidationError) as e:
            return self._reject(e, sprint_id)

        done_column = self._config.done_column
        changes: dict[str, dict[str, Any]] = {}
        archived = moved = 0
        for issue in members:
            if issue.status == done_column:
                changes[issue.id] = {"is_archived": True}
                archived += 1
            else:
                changes[issue.id] = {"sprint_id": destination, "is_in_backlog": True}
                moved += 1

        try:
            await self._write_issues(changes)
            await self._write_sprint(sprint_id, {"status": SprintStatus.COMPLETED})
        except Exception as e:
            return self._fail(sprint_id, str(e) or "Failed to complete sprint")

        logger.info(
            "Completed sprint %s: %d archived, %d moved to %s",
            sprint_id, archived, moved, destination or "backlog",
        )
        return ActionResult(
            ok=True,
            target_id=sprint_id,
            detail={"archived": archived, "moved": moved, "destination": destination},
        )

    async def delete_sprint(self, sprint_id: str) -> ActionResult:
        """Return the sprint's issues to the backlog, then delete the sprint."""
        sprint = self.get(sprint_id)
        if sprint is None:
            return ActionResult(ok=False, target_id=sprint_id)
        if sprint.status not in DELETABLE:
            return self._reject(
                SprintValidationError(sprint_id, "Completed sprints cannot be deleted"),
                sprint_id,
            )

        members = [i for i in self._issues.issues if i.sprint_id == sprint_id]
        try:
            await self._write_issues(
                {i.id: {"sprint_id": None, "is_in_backlog": True} for i in members}
            )
            await self._store.delete(self._config.sprints_collection, sprint_id)
        except Exception as e:
            return self._fail(sprint_id, str(e) or "Failed to delete sprint")

        self.sprints = tuple(s for s in self.sprints if s.id != sprint_id)
        logger.info("Deleted sprint %s, %d issues back to backlog", sprint_id, len(members))
        return ActionResult(ok=True, target_id=sprint_id, detail={"issues": len(members)})
