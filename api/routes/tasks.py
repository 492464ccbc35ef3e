"""
api/routes/tasks.py -- Weekly board REST endpoints.

Routes:
  GET    /api/tasks               -- list the caller's tasks by (day, position)
  POST   /api/tasks               -- create a task at the end of its day (201)
  PUT    /api/tasks/reorder       -- apply a drag-and-drop batch
  POST   /api/tasks/normalize     -- renumber every day 0..n-1
  PUT    /api/tasks/{task_id}     -- partial update
  DELETE /api/tasks/{task_id}     -- delete (204)

Every route requires auth. The owner id always comes from the token, never
from the body. A task id owned by another user gets the same 404 as an id
that does not exist [IDOR guard].

/reorder and /normalize are registered before /{task_id} so the literal path
segment is not captured as a task id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import (
    ReorderRequest,
    SuccessResponse,
    TaskCreate,
    TaskEnvelope,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from auth.dependencies import get_current_user
from auth.models import User
from core.errors import NotFoundError
from tasks.store import TaskStore

router = APIRouter()

_NOT_FOUND_MESSAGE = "Task not found."


def _store(request: Request) -> TaskStore:
    return request.app.state.task_store


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(request: Request, current_user: User = Depends(get_current_user)) -> TaskListResponse:
    """Return every task of the current user, ordered by (day, position)."""
    tasks = _store(request).list_tasks(current_user.id)
    return TaskListResponse(tasks=[TaskResponse.from_task(t) for t in tasks])


@router.post("/tasks", response_model=TaskEnvelope, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    current_user: User = Depends(get_current_user),
) -> TaskEnvelope:
    """Create a task. Its position is the number of tasks already on that day."""
    task = _store(request).create_task(current_user.id, body.title, body.day, description=body.description)
    return TaskEnvelope(task=TaskResponse.from_task(task))


@router.put("/tasks/reorder", response_model=SuccessResponse)
def reorder_tasks(
    request: Request,
    body: ReorderRequest,
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    """Apply a reorder batch.

    Entries naming unknown or foreign tasks are skipped rather than failing
    the batch. The client is expected to send every task of every day it
    touched, already renumbered 0..n-1.
    """
    moved = _store(request).reorder(current_user.id, [entry.to_update() for entry in body.tasks])
    return SuccessResponse(updated=moved)


@router.post("/tasks/normalize", response_model=SuccessResponse)
def normalize_tasks(request: Request, current_user: User = Depends(get_current_user)) -> SuccessResponse:
    """Close gaps and resolve duplicate positions on every day of the board."""
    renumbered = _store(request).normalize(current_user.id)
    return SuccessResponse(updated=renumbered)


@router.put("/tasks/{task_id}", response_model=TaskEnvelope)
def update_task(
    request: Request,
    task_id: str,
    body: TaskUpdate,
    current_user: User = Depends(get_current_user),
) -> TaskEnvelope:
    """Partially update a task. Omitted fields are left unchanged."""
    task = _store(request).update_task(
        current_user.id,
        task_id,
        title=body.title,
        description=body.description,
        day=body.day,
        position=body.position,
    )
    if task is None:
        raise NotFoundError(_NOT_FOUND_MESSAGE)
    return TaskEnvelope(task=TaskResponse.from_task(task))


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(
    request: Request,
    task_id: str,
    current_user: User = Depends(get_current_user),
) -> Response:
    """Delete a task. Other positions on that day are left untouched."""
    if not _store(request).delete_task(current_user.id, task_id):
        raise NotFoundError(_NOT_FOUND_MESSAGE)
    return Response(status_code=204)
