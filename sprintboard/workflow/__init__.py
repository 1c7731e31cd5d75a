from .models import (
    BoardFilter,
    Comment,
    Issue,
    IssuePriority,
    IssueType,
    Sprint,
    SprintStatus,
    Subtask,
)
from .interface import AssignmentEvent, AssignmentListener, DocumentStore, Notifier
from .ordering import GAP, compute_order
from .partition import Classification, Visibility, classify

__all__ = [
    "Issue",
    "Sprint",
    "Subtask",
    "Comment",
    "BoardFilter",
    "IssueType",
    "IssuePriority",
    "SprintStatus",
    "DocumentStore",
    "Notifier",
    "AssignmentEvent",
    "AssignmentListener",
    "GAP",
    "compute_order",
    "Classification",
    "Visibility",
    "classify",
]
