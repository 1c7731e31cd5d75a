"""Result values returned by board actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MoveKind(Enum):
    REORDER = "reorder"
    TRANSFER = "transfer"
    NOOP = "noop"


@dataclass
class MoveResult:
    issue_id: str
    kind: MoveKind
    # (issue_id, attribute changes) staged by the move
    updates: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    persisted: bool = False
    rolled_back: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ActionResult:
    ok: bool
    target_id: str | None = None
    error: str | None = None
    detail: dict[str, Any] = field(default_factory=dict)
