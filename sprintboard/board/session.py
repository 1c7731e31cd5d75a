"""Convenience wiring of the board collaborators for one store."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import BoardConfig
from ..workflow.interface import AssignmentListener, DocumentStore, Notifier
from ..workflow.partition import Classification, classify, group_backlog
from ..workflow.models import Issue
from .cache import IssueCache
from .notify import LoggingNotifier
from .reconciler import DragMoveReconciler
from .sprints import SprintLifecycle


@dataclass
class BoardSession:
    cache: IssueCache
    sprints: SprintLifecycle
    reconciler: DragMoveReconciler

    async def open_project(self, project_id: str | None) -> bool:
        """Load sprints and issues for ``project_id``, replacing the old project.

        Sprints and issues always belong to the same project: when either
        load fails, both keep the previously opened project.
        """
        previous = (self.sprints.project_id, self.sprints.sprints)
        if not await self.sprints.load(project_id):
            return False
        if not await self.cache.load(project_id):
            self.sprints.project_id, self.sprints.sprints = previous
            return False
        self.reconciler.forget_writes()
        return True

    def classify(self, issue: Issue) -> Classification:
        return classify(issue, self.sprints.get)

    def backlog_groups(self) -> dict[str, list[Issue]]:
        return group_backlog(list(self.cache.issues), self.sprints.get)


def create_session(
    store: DocumentStore,
    config: BoardConfig | None = None,
    notifier: Notifier | None = None,
    assignments: AssignmentListener | None = None,
    actor_id: str | None = None,
) -> BoardSession:
    """Build a cache, sprint lifecycle and reconciler sharing one store."""
    config = config or BoardConfig()
    notifier = notifier or LoggingNotifier()
    cache = IssueCache(store, notifier=notifier, config=config)
    sprints = SprintLifecycle(store, cache, notifier=notifier, config=config)
    reconciler = DragMoveReconciler(
        cache,
        store,
        sprints=sprints,
        notifier=notifier,
        assignments=assignments,
        config=config,
        actor_id=actor_id,
    )
    return BoardSession(cache=cache, sprints=sprints, reconciler=reconciler)
