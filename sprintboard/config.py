"""Board configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path

import yaml

from .workflow.exceptions import ConfigError
from .workflow.ordering import GAP

logger = logging.getLogger(__name__)


class ActiveSprintPolicy(Enum):
    """How many sprints of one project may be active at once."""

    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass
class BoardConfig:
    """Configuration for the board core."""

    order_gap: float = GAP
    columns: tuple[str, ...] = ("todo", "in-progress", "done")
    done_column: str = "done"
    sprint_length_days: int = 14
    active_sprint_policy: ActiveSprintPolicy = ActiveSprintPolicy.SINGLE
    issues_collection: str = "issues"
    sprints_collection: str = "sprints"


def load_config(path: Path | str | None) -> BoardConfig:
    """Read a YAML mapping of BoardConfig fields.

    A missing path or file gives the defaults.
    """
    if path is None:
        return BoardConfig()
    path = Path(path)
    if not path.exists():
        logger.info("No config at %s, using defaults", path)
        return BoardConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be a mapping")

    known = {f.name for f in fields(BoardConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    if "columns" in data:
        data["columns"] = tuple(data["columns"])
    if "active_sprint_policy" in data:
        try:
            data["active_sprint_policy"] = ActiveSprintPolicy(data["active_sprint_policy"])
        except ValueError as e:
            raise ConfigError(str(e)) from e

    config = BoardConfig(**data)
    if config.done_column not in config.columns:
        raise ConfigError(f"done_column {config.done_column!r} is not one of the columns")
    if config.order_gap <= 0:
        raise ConfigError("order_gap must be positive")
    return config
