"""
tasks/store.py -- SQLAlchemy-backed persistence layer for the weekly board.

Uses SQLAlchemy Core (not ORM) so the dataclasses in tasks/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Ownership: every public method takes owner_id and adds it to the WHERE clause.
A task id that belongs to someone else behaves exactly like an unknown id --
callers get None / False and report "not found", never "forbidden".

Write serialization: create (count, then insert) and reorder (read, then
write) must not interleave for one owner, or two rapid requests could hand
out the same position or overwrite each other's moves. Each owner gets a
lock, and each mutation runs in a single transaction (engine.begin()).

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///data/planit.db")
    task = store.create_task(owner_id, "Buy milk", day=2)
    store.reorder(owner_id, [PositionUpdate(task.id, day=3, position=0)])
    tasks = store.list_tasks(owner_id)
    store.close()
"""

from __future__ import annotations

import logging
import threading
import uuid
import weakref
from collections.abc import Iterable
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, func, select, text
from sqlalchemy.engine import Connection, Engine

from core.database import make_engine, now_iso
from core.errors import ValidationError
from tasks import ordering
from tasks.models import PositionUpdate, Task

logger = logging.getLogger("planit.tasks")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("owner_id", String(36), nullable=False),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("day", Integer, nullable=False),  # 0 = Monday .. 6 = Sunday
    Column("position", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    Index("ix_tasks_owner_day", "owner_id", "day"),
)


# ---------------------------------------------------------------------------
# Per-owner write locks
# ---------------------------------------------------------------------------


class _OwnerLocks:
    """Hands out one threading.Lock per owner id, created on first use.

    Entries are weak: a lock lives only while some request holds a reference
    to it, so the map does not grow with every user that ever wrote.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def __call__(self, owner_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = self._locks[owner_id] = threading.Lock()
            return lock


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    """Repository for Task entities, scoped by owner."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)
        self._owner_lock = _OwnerLocks()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_tasks(self, owner_id: str) -> list[Task]:
        """Return all of the owner's tasks ordered by (day, position)."""
        with self.engine.connect() as conn:
            return self._load_owner_tasks(conn, owner_id)

    def get_task(self, owner_id: str, task_id: str) -> Optional[Task]:
        """Return one task, or None if it does not exist or is not the owner's."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _tasks.select().where((_tasks.c.id == task_id) & (_tasks.c.owner_id == owner_id))
            ).fetchone()
        return _row_to_task(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_task(self, owner_id: str, title: str, day: int, description: Optional[str] = None) -> Task:
        """Append a task to the end of its (owner, day) bucket.

        The new position is the current size of the bucket. If an earlier
        delete left a gap, this can repeat an existing position; the client's
        next reorder batch (or normalize()) renumbers the bucket.

        Raises ValidationError for a blank title or a day outside 0..6.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required.")
        if not ordering.is_valid_day(day):
            raise ValidationError("Day must be an integer between 0 and 6.")

        task = Task(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=title,
            description=(description or "").strip(),
            day=day,
            created_at=now_iso(),
        )
        with self._owner_lock(owner_id), self.engine.begin() as conn:
            task.position = conn.execute(
                select(func.count())
                .select_from(_tasks)
                .where((_tasks.c.owner_id == owner_id) & (_tasks.c.day == day))
            ).scalar_one()
            conn.execute(
                _tasks.insert().values(
                    id=task.id,
                    owner_id=task.owner_id,
                    title=task.title,
                    description=task.description,
                    day=task.day,
                    position=task.position,
                    created_at=task.created_at,
                )
            )
        logger.info("Task created owner=%s day=%d position=%d", owner_id, task.day, task.position)
        return task

    def update_task(
        self,
        owner_id: str,
        task_id: str,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        day: Optional[int] = None,
        position: Optional[int] = None,
    ) -> Optional[Task]:
        """Apply a partial update and return the updated task, or None if not found.

        Field rules:
          title       -- applied only when non-blank after trimming
          description -- applied whenever given (trimmed; "" clears it)
          day         -- applied only when in 0..6
          position    -- applied only when >= 0

        Out-of-range day/position values are ignored, as in reorder().
        Neighbouring tasks are never renumbered here.
        """
        values: dict = {}
        if title is not None and title.strip():
            values["title"] = title.strip()
        if description is not None:
            values["description"] = description.strip()
        if ordering.is_valid_day(day):
            values["day"] = day
        if ordering.is_valid_position(position):
            values["position"] = position

        where = (_tasks.c.id == task_id) & (_tasks.c.owner_id == owner_id)
        with self._owner_lock(owner_id), self.engine.begin() as conn:
            row = conn.execute(_tasks.select().where(where)).fetchone()
            if row is None:
                return None
            if values:
                conn.execute(_tasks.update().where(where).values(**values))
        task = _row_to_task(row)
        for field_name, value in values.items():
            setattr(task, field_name, value)
        return task

    def delete_task(self, owner_id: str, task_id: str) -> bool:
        """Delete a task. Returns True if deleted, False if not found or not the owner's.

        Remaining positions in the bucket are left as they are.
        """
        with self._owner_lock(owner_id), self.engine.begin() as conn:
            result = conn.execute(
                _tasks.delete().where((_tasks.c.id == task_id) & (_tasks.c.owner_id == owner_id))
            )
        return result.rowcount > 0

    def reorder(self, owner_id: str, updates: Iterable[PositionUpdate]) -> int:
        """Apply a reorder batch atomically and return how many tasks moved.

        The whole batch is one transaction. Entries for unknown or foreign
        task ids are skipped; day and position are each range-checked and
        ignored when out of range. Tasks not named in the batch keep their
        positions, so the client must send every task of every bucket it
        touched.

        If the batch leaves a touched bucket with gaps or duplicate positions,
        the result is still persisted and a warning is logged.
        """
        updates = list(updates)
        with self._owner_lock(owner_id), self.engine.begin() as conn:
            owned = {task.id: task for task in self._load_owner_tasks(conn, owner_id)}
            days_before = {task_id: task.day for task_id, task in owned.items()}
            changed = ordering.apply_updates(owned, updates)
            for task in changed:
                conn.execute(
                    _tasks.update()
                    .where((_tasks.c.id == task.id) & (_tasks.c.owner_id == owner_id))
                    .values(day=task.day, position=task.position)
                )

        skipped = sum(1 for update in updates if update.task_id not in owned)
        logger.info(
            "Reorder owner=%s entries=%d moved=%d skipped=%d", owner_id, len(updates), len(changed), skipped
        )
        touched_days = {days_before[task.id] for task in changed} | {task.day for task in changed}
        broken = ordering.broken_buckets(task for task in owned.values() if task.day in touched_days)
        if broken:
            logger.warning("Reorder owner=%s left non-contiguous positions on days %s", owner_id, broken)
        return len(changed)

    def normalize(self, owner_id: str) -> int:
        """Renumber every bucket of the owner 0..n-1. Returns how many tasks changed."""
        with self._owner_lock(owner_id), self.engine.begin() as conn:
            changed = ordering.normalize(self._load_owner_tasks(conn, owner_id))
            for task in changed:
                conn.execute(
                    _tasks.update()
                    .where((_tasks.c.id == task.id) & (_tasks.c.owner_id == owner_id))
                    .values(position=task.position)
                )
        if changed:
            logger.info("Normalized owner=%s renumbered=%d", owner_id, len(changed))
        return len(changed)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load_owner_tasks(conn: Connection, owner_id: str) -> list[Task]:
        rows = conn.execute(
            _tasks.select()
            .where(_tasks.c.owner_id == owner_id)
            .order_by(_tasks.c.day, _tasks.c.position, _tasks.c.created_at)
        ).fetchall()
        return [_row_to_task(r) for r in rows]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description or "",
        day=row.day,
        position=row.position,
        created_at=row.created_at,
    )
