"""Protocols for the collaborators the board core talks to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class DocumentStore(Protocol):
    """Interface that any document store backend must implement.

    Records are plain dicts keyed by stored field names. Reads merge the
    generated id into each record under ``"id"``.
    """

    async def query_by_field(
        self, collection: str, field: str, value: Any
    ) -> list[dict[str, Any]]: ...

    async def add(self, collection: str, record: dict[str, Any]) -> str: ...

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None: ...

    async def batch_update(
        self, collection: str, updates: list[tuple[str, dict[str, Any]]]
    ) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...


class Notifier(Protocol):
    """User-facing message channel (toasts, status line, log)."""

    def show_error(self, message: str) -> None: ...

    def show_success(self, message: str) -> None: ...

    def show_info(self, message: str) -> None: ...


@dataclass(frozen=True)
class AssignmentEvent:
    issue_id: str
    project_id: str
    assignee_id: str
    actor_id: str | None
    title: str


class AssignmentListener(Protocol):
    """Receives a fire-and-forget event after an issue is (re)assigned."""

    async def issue_assigned(self, event: AssignmentEvent) -> None: ...
