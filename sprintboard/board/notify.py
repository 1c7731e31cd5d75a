"""Notifier and assignment listener implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..workflow.interface import AssignmentEvent

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Sends user-facing messages to the log."""

    def show_error(self, message: str) -> None:
        logger.error(message)

    def show_success(self, message: str) -> None:
        logger.info(message)

    def show_info(self, message: str) -> None:
        logger.info(message)


@dataclass
class RecordingNotifier:
    """Keeps every message. For tests and the CLI summary."""

    errors: list[str] = field(default_factory=list)
    successes: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def show_success(self, message: str) -> None:
        self.successes.append(message)

    def show_info(self, message: str) -> None:
        self.infos.append(message)


class NullAssignmentListener:
    async def issue_assigned(self, event: AssignmentEvent) -> None:
        return None


@dataclass
class RecordingAssignmentListener:
    events: list[AssignmentEvent] = field(default_factory=list)
    fail: bool = False

    async def issue_assigned(self, event: AssignmentEvent) -> None:
        if self.fail:
            raise RuntimeError("notification transport down")
        self.events.append(event)
