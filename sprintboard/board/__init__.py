from .cache import IssueCache, matches_filter
from .notify import LoggingNotifier, RecordingAssignmentListener, RecordingNotifier
from .reconciler import DragMove, DragMoveReconciler, NewIssue
from .results import ActionResult, MoveKind, MoveResult
from .session import BoardSession, create_session
from .sprints import CompleteSprint, SprintLifecycle, StartSprint

__all__ = [
    "IssueCache",
    "matches_filter",
    "LoggingNotifier",
    "RecordingNotifier",
    "RecordingAssignmentListener",
    "DragMove",
    "DragMoveReconciler",
    "NewIssue",
    "ActionResult",
    "MoveKind",
    "MoveResult",
    "BoardSession",
    "create_session",
    "SprintLifecycle",
    "StartSprint",
    "CompleteSprint",
]
