"""CLI entry point for inspecting a board fixture.

Usage:
  python -m sprintboard board <fixture.yaml> [--config board.yaml]
  python -m sprintboard backlog <fixture.yaml>
  python -m sprintboard classify <fixture.yaml>
  python -m sprintboard move <fixture.yaml> <issue_id> <column:STATUS|backlog|sprint:ID> [--index N]

A fixture is a YAML mapping with ``project``, ``sprints`` and ``issues``
lists in stored-record form (``statusColumnId``, ``sprintId``, ...).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml

from .adapters.memory import InMemoryStore
from .board.reconciler import DragMove
from .board.session import BoardSession, create_session
from .config import BoardConfig, load_config
from .workflow.exceptions import BoardError
from .workflow.models import Issue
from .workflow.partition import ListRef, Visibility


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Sprint board CLI")
    parser.add_argument("--config", default=None, help="Board config YAML")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("board", "Show the board columns"),
        ("backlog", "Show the backlog grouped by sprint"),
        ("classify", "Show where each issue is visible"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("fixture", help="Fixture YAML file")

    move_parser = subparsers.add_parser("move", help="Drop an issue into another list")
    move_parser.add_argument("fixture", help="Fixture YAML file")
    move_parser.add_argument("issue_id", help="Issue to move")
    move_parser.add_argument("destination", help="column:STATUS, backlog or sprint:ID")
    move_parser.add_argument("--index", type=int, default=0, help="Drop index (default: 0)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        session = asyncio.run(_open(Path(args.fixture), config))
    except (OSError, yaml.YAMLError, BoardError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "board":
        _print_board(session)
    elif args.command == "backlog":
        _print_backlog(session)
    elif args.command == "classify":
        _print_classification(session)
    elif args.command == "move":
        if not asyncio.run(_move_command(session, args)):
            sys.exit(1)
        _print_board(session)
        _print_backlog(session)


async def _open(fixture: Path, config: BoardConfig) -> BoardSession:
    data = yaml.safe_load(fixture.read_text(encoding="utf-8")) or {}
    project_id = data.get("project")
    if not project_id:
        raise BoardError(f"Fixture {fixture} has no project")

    store = InMemoryStore()
    for collection, key in (
        (config.sprints_collection, "sprints"),
        (config.issues_collection, "issues"),
    ):
        for record in data.get(key) or []:
            record = dict(record)
            doc_id = record.pop("id")
            record.setdefault("projectId", project_id)
            store.seed(collection, doc_id, record)

    session = create_session(store, config=config)
    if not await session.open_project(project_id):
        raise BoardError(session.cache.error or session.sprints.error or "load failed")
    return session


def _parse_destination(text: str) -> ListRef:
    if text == "backlog":
        return ListRef.backlog()
    kind, _, key = text.partition(":")
    if kind == "column" and key:
        return ListRef.column(key)
    if kind == "sprint" and key:
        return ListRef.sprint(key)
    raise BoardError(f"Unknown destination: {text}")


def _current_list(session: BoardSession, issue: Issue) -> ListRef:
    placement = session.classify(issue)
    if placement.visible_in is Visibility.BOARD:
        return ListRef.column(issue.status)
    if issue.sprint_id is None or session.sprints.get(issue.sprint_id) is None:
        return ListRef.backlog()
    return ListRef.sprint(issue.sprint_id)


async def _move_command(session: BoardSession, args) -> bool:
    issue = session.cache.get(args.issue_id)
    if issue is None:
        print(f"Issue not found: {args.issue_id}", file=sys.stderr)
        return False
    try:
        destination = _parse_destination(args.destination)
    except BoardError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False

    source = _current_list(session, issue)
    source_items = session.cache.partition(source)
    source_index = next((n for n, i in enumerate(source_items) if i.id == issue.id), 0)

    result = await session.reconciler.move(
        DragMove(issue.id, source, destination, source_index, args.index)
    )
    if not result.ok:
        print(f"Move failed: {result.error}", file=sys.stderr)
        return False
    print(f"Moved {issue.id} ({result.kind.value}), {len(result.updates)} issue(s) updated\n")
    return True


def _label(issue: Issue) -> str:
    key = f"{issue.key} " if issue.key else ""
    return f"{key}{issue.title} [{issue.priority.value}] (order {issue.order:g})"


def _print_board(session: BoardSession) -> None:
    active = session.sprints.active_sprint()
    print(f"Board: {active.name if active else 'no active sprint'}")
    for status, issues in session.cache.columns().items():
        print(f"  {status} ({len(issues)})")
        for issue in issues:
            print(f"    - {_label(issue)}")


def _print_backlog(session: BoardSession) -> None:
    print("Backlog:")
    for group, issues in session.backlog_groups().items():
        sprint = session.sprints.get(group)
        title = sprint.name if sprint else group
        print(f"  {title} ({len(issues)})")
        for issue in issues:
            print(f"    - {_label(issue)}")


def _print_classification(session: BoardSession) -> None:
    for issue in session.cache.issues:
        placement = session.classify(issue)
        group = f" / {placement.group_key}" if placement.group_key else ""
        print(f"{issue.id}: {placement.visible_in.value}{group}")


if __name__ == "__main__":
    main()
