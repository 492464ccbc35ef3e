"""
tasks/models.py -- Domain dataclasses for the weekly task board.

These are pure data containers with zero logic. Ordering rules live in
tasks/ordering.py; persistence lives in tasks/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Task:
    """One card on the weekly board.

    A task sits in exactly one bucket, the (owner_id, day) pair. position is
    its zero-based rank inside that bucket. day 0 is Monday, 6 is Sunday.

    id is None before the record is written to the database.
    """

    owner_id: str
    title: str
    day: int
    position: int = 0
    description: str = ""
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class PositionUpdate:
    """One entry of a reorder batch.

    day and position are applied independently, and only when in range.
    None means "leave as is".
    """

    task_id: str
    day: Optional[int] = None
    position: Optional[int] = None
