"""Fractional order index for issues inside a partition.

Order values are only comparable inside one partition (a board column, a
sprint list or the unscheduled backlog). Single-item moves between
partitions take the midpoint of their new neighbours; reorders inside a
partition respace the whole list to ``index * GAP``.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from .models import Issue

GAP = 1000

T = TypeVar("T")


def compute_order(
    prev_order: float | None, next_order: float | None, gap: float = GAP
) -> float:
    """Sort key for an item dropped between ``prev_order`` and ``next_order``."""
    if prev_order is None and next_order is None:
        return 0
    if prev_order is None:
        return next_order - gap
    if next_order is None:
        return prev_order + gap
    return (prev_order + next_order) / 2


def _clamp(index: int, upper: int) -> int:
    return max(0, min(index, upper))


def move_in_list(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Return a copy of ``items`` with one element moved.

    Both indices are clamped into range, so an out-of-bounds drop lands at
    the nearest end of the list.
    """
    result = list(items)
    if not result:
        return result
    last = len(result) - 1
    from_index = _clamp(from_index, last)
    to_index = _clamp(to_index, last)
    if from_index == to_index:
        return result
    result.insert(to_index, result.pop(from_index))
    return result


def neighbors_at(
    items: Sequence[Issue], index: int
) -> tuple[float | None, float | None]:
    """Orders of the items either side of a drop at ``index``.

    ``items`` is the destination list before the drop, without the moved
    issue.
    """
    index = _clamp(index, len(items))
    prev_order = items[index - 1].order if index > 0 else None
    next_order = items[index].order if index < len(items) else None
    return prev_order, next_order


def renormalize(items: Sequence[Issue], gap: float = GAP) -> list[tuple[str, float]]:
    """Evenly spaced orders for ``items`` in their current sequence.

    Returns ``(issue_id, new_order)`` only for items whose order changes.
    """
    changed = []
    for index, issue in enumerate(items):
        new_order = index * gap
        if issue.order != new_order:
            changed.append((issue.id, new_order))
    return changed


def order_after_last(items: Sequence[Issue], gap: float = GAP) -> float:
    """Order for an item appended to the end of a partition."""
    if not items:
        return 0
    return compute_order(max(i.order for i in items), None, gap)
