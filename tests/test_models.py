"""Tests for board domain models and record mapping."""

import pytest

from sprintboard.workflow.exceptions import InvalidTransitionError
from sprintboard.workflow.models import (
    BoardFilter,
    Comment,
    Issue,
    IssuePriority,
    IssueType,
    SprintStatus,
    Subtask,
    issue_changes_to_record,
    issue_from_record,
    issue_to_record,
    sprint_from_record,
)
from sprintboard.workflow.transitions import DELETABLE, VALID_TRANSITIONS, validate_transition


class TestEnums:
    def test_sprint_status_values(self):
        assert SprintStatus("future") is SprintStatus.FUTURE
        assert SprintStatus.ACTIVE.value == "active"
        assert SprintStatus.COMPLETED.value == "completed"

    def test_issue_enums(self):
        assert IssueType("bug") is IssueType.BUG
        assert IssuePriority("high") is IssuePriority.HIGH


class TestIssue:
    def test_defaults(self):
        issue = Issue(id="i-1", project_id="p-1", title="Login")
        assert issue.status == "todo"
        assert issue.sprint_id is None
        assert issue.is_in_backlog is True
        assert issue.is_archived is False
        assert issue.subtasks == ()

    def test_incomplete_subtasks(self):
        issue = Issue(
            id="i-1",
            project_id="p-1",
            title="Login",
            subtasks=(Subtask("st-1", "a", True), Subtask("st-2", "b", False)),
        )
        assert issue.has_incomplete_subtasks()

    def test_filter_defaults_match_everything(self):
        f = BoardFilter()
        assert f.search_text == ""
        assert not f.only_mine
        assert f.priorities == frozenset()


class TestRecordMapping:
    def test_issue_from_full_record(self):
        issue = issue_from_record({
            "id": "i-7",
            "projectId": "p-1",
            "key": "BRD-7",
            "title": "Fix login",
            "statusColumnId": "in-progress",
            "priority": "high",
            "type": "bug",
            "sprintId": "s-1",
            "isInBacklog": False,
            "order": 1500,
            "assigneeId": "u-2",
            "subtasks": [{"id": "st-1", "title": "repro", "completed": True}],
            "comments": [
                {"id": "c-1", "userId": "u-3", "content": "seen", "createdAt": "2026-03-01T10:00:00Z"}
            ],
            "attachments": [],
        })
        assert issue.status == "in-progress"
        assert issue.priority is IssuePriority.HIGH
        assert issue.type is IssueType.BUG
        assert issue.sprint_id == "s-1"
        assert issue.is_in_backlog is False
        assert issue.subtasks == (Subtask("st-1", "repro", True),)
        assert issue.comments == (Comment("c-1", "u-3", "seen", "2026-03-01T10:00:00Z"),)

    def test_missing_backlog_flag_follows_sprint(self):
        unscheduled = issue_from_record({"id": "a", "projectId": "p-1", "title": "x"})
        scheduled = issue_from_record({"id": "b", "projectId": "p-1", "title": "x", "sprintId": "s-1"})
        assert unscheduled.is_in_backlog is True
        assert scheduled.is_in_backlog is False

    def test_issue_to_record_uses_stored_names(self):
        record = issue_to_record(Issue(id="i-1", project_id="p-1", title="x", priority=IssuePriority.LOW))
        assert "id" not in record
        assert record["priority"] == "low"
        assert record["statusColumnId"] == "todo"
        assert record["isInBacklog"] is True

    def test_partial_changes(self):
        assert issue_changes_to_record({"sprint_id": None, "is_in_backlog": True}) == {
            "sprintId": None,
            "isInBacklog": True,
        }

    def test_sprint_from_record(self):
        sprint = sprint_from_record({
            "id": "s-1",
            "projectId": "p-1",
            "name": "Sprint 1",
            "startDate": "2026-03-01",
            "endDate": "2026-03-15",
            "status": "active",
        })
        assert sprint.status is SprintStatus.ACTIVE
        assert sprint.goal is None


class TestTransitions:
    def test_start_and_complete_allowed(self):
        validate_transition("s-1", SprintStatus.FUTURE, SprintStatus.ACTIVE)
        validate_transition("s-1", SprintStatus.ACTIVE, SprintStatus.COMPLETED)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (SprintStatus.FUTURE, SprintStatus.COMPLETED),
            (SprintStatus.COMPLETED, SprintStatus.ACTIVE),
            (SprintStatus.COMPLETED, SprintStatus.FUTURE),
            (SprintStatus.ACTIVE, SprintStatus.FUTURE),
        ],
    )
    def test_rejected(self, from_status, to_status):
        with pytest.raises(InvalidTransitionError, match="Invalid transition"):
            validate_transition("s-1", from_status, to_status)

    def test_nothing_leaves_completed(self):
        assert not any(f is SprintStatus.COMPLETED for f, _ in VALID_TRANSITIONS)
        assert SprintStatus.COMPLETED not in DELETABLE
