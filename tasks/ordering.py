"""
tasks/ordering.py -- Day/position rules for the weekly board.

Everything here is pure: functions take Task objects and PositionUpdate
batches and never touch the database. TaskStore calls them inside its
transactions; clients (and tests) can call plan_move() to build a batch.

The bucket invariant: inside one (owner, day) bucket, positions are exactly
0..n-1. The server does not enforce it on reorder -- a batch is applied as
sent, after range checks -- but broken_buckets() lets the store report a
batch that leaves a bucket with gaps or duplicates, and normalize() is the
explicit repair pass.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from core.errors import NotFoundError, ValidationError
from tasks.models import PositionUpdate, Task

DAYS_PER_WEEK = 7


def is_valid_day(value: object) -> bool:
    """True for an int in 0..6. bool is rejected even though it subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < DAYS_PER_WEEK


def is_valid_position(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _sort_key(task: Task) -> tuple:
    return (task.position, task.created_at, task.id or "")


def group_by_day(tasks: Iterable[Task]) -> dict[int, list[Task]]:
    """Bucket tasks by day, each bucket sorted by (position, created_at, id)."""
    buckets: dict[int, list[Task]] = defaultdict(list)
    for task in tasks:
        buckets[task.day].append(task)
    return {day: sorted(bucket, key=_sort_key) for day, bucket in buckets.items()}


def apply_updates(tasks: dict[str, Task], updates: Iterable[PositionUpdate]) -> list[Task]:
    """Apply a reorder batch in place, best effort.

    tasks maps task id -> Task and must contain only the caller's own tasks,
    so unknown and foreign ids look the same and are skipped. day and position
    are each written only when in range. Siblings are never renumbered.

    Returns the tasks whose (day, position) actually changed, in the order
    they were first touched.
    """
    before_batch: dict[str, tuple[int, int]] = {}
    for update in updates:
        task = tasks.get(update.task_id)
        if task is None:
            continue
        before_batch.setdefault(update.task_id, (task.day, task.position))
        if is_valid_day(update.day):
            task.day = update.day
        if is_valid_position(update.position):
            task.position = update.position
    changed: list[Task] = []
    for task_id, before in before_batch.items():
        task = tasks[task_id]
        if (task.day, task.position) != before:
            changed.append(task)
    return changed


def broken_buckets(tasks: Iterable[Task]) -> list[int]:
    """Return the days whose positions are not exactly 0..n-1."""
    positions: dict[int, list[int]] = defaultdict(list)
    for task in tasks:
        positions[task.day].append(task.position)
    return sorted(day for day, found in positions.items() if sorted(found) != list(range(len(found))))


def normalize(tasks: Iterable[Task]) -> list[Task]:
    """Renumber every bucket 0..n-1 in place, keeping the current relative order.

    Ties on position (duplicates left by a bad batch, or by create after a
    delete) are broken by created_at, then id, so the result is deterministic.
    Returns the tasks whose position changed.
    """
    changed: list[Task] = []
    for _day, bucket in sorted(group_by_day(tasks).items()):
        for index, task in enumerate(bucket):
            if task.position != index:
                task.position = index
                changed.append(task)
    return changed


def plan_move(tasks: Iterable[Task], task_id: str, day: int, index: int) -> list[PositionUpdate]:
    """Build the reorder batch for dragging one task to (day, index).

    The move is: remove the task from its source bucket, insert it into the
    destination bucket at index (clamped to the bucket length), then renumber
    both buckets 0..n-1. The returned batch lists every task of both buckets,
    so sending it to TaskStore.reorder() leaves them gap-free.

    The input tasks are not modified.
    """
    if not is_valid_day(day):
        raise ValidationError(f"Day must be an integer between 0 and {DAYS_PER_WEEK - 1}.")
    board = group_by_day(tasks)
    moving = next((t for bucket in board.values() for t in bucket if t.id == task_id), None)
    if moving is None:
        raise NotFoundError("Task not found.")

    source = moving.day
    board[source] = [t for t in board[source] if t.id != task_id]
    destination = board.setdefault(day, [])
    destination.insert(max(0, min(index, len(destination))), moving)

    return [
        PositionUpdate(task_id=task.id, day=bucket_day, position=position)
        for bucket_day in sorted({source, day})
        for position, task in enumerate(board[bucket_day])
    ]
