"""
API request and response models for the PlanIt REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Response models serialize with camelCase aliases (ownerId, createdAt) -- the
browser client was written against those names. Request bodies only use
single-word keys, so they need no aliases.

Separation of concerns: auth/ and tasks/ models = domain truth; api/ models = API contract.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from auth.models import User
from tasks.models import PositionUpdate, Task

_TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]

# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    email and name are trimmed. password is taken byte for byte, so
    surrounding spaces are part of it.
    """

    email: _TrimmedStr = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)
    name: Optional[_TrimmedStr] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: _TrimmedStr = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. Salt and password digest are never included."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    name: Optional[str]
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, name=user.name, created_at=user.created_at or "")


class AuthResponse(BaseModel):
    """Response for register and login: a bearer token plus the account."""

    model_config = ConfigDict(frozen=True)

    token: str
    user: UserResponse


class MeResponse(BaseModel):
    """Response for GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse


# ---------------------------------------------------------------------------
# Tasks -- requests
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /api/tasks.

    Range checks for day live in TaskStore.create_task() so the store enforces
    them for every caller, not just HTTP ones.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    day: int


class TaskUpdate(BaseModel):
    """Request body for PUT /api/tasks/{task_id}. Every field is optional."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    day: Optional[int] = None
    position: Optional[int] = None


class ReorderEntry(BaseModel):
    """One {id, day, position} entry of a reorder batch."""

    id: str = Field(min_length=1, max_length=64)
    day: Optional[int] = None
    position: Optional[int] = None

    def to_update(self) -> PositionUpdate:
        return PositionUpdate(task_id=self.id, day=self.day, position=self.position)


class ReorderRequest(BaseModel):
    """Request body for PUT /api/tasks/reorder."""

    tasks: list[ReorderEntry] = Field(max_length=1000)


# ---------------------------------------------------------------------------
# Tasks -- responses
# ---------------------------------------------------------------------------


class TaskResponse(BaseModel):
    """One task as seen by its owner."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    owner_id: str
    title: str
    description: str
    day: int
    position: int
    created_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Build a TaskResponse from a domain Task (Factory Method pattern)."""
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            title=task.title,
            description=task.description,
            day=task.day,
            position=task.position,
            created_at=task.created_at,
        )


class TaskEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    task: TaskResponse


class TaskListResponse(BaseModel):
    """Response for GET /api/tasks -- sorted by (day, position)."""

    model_config = ConfigDict(frozen=True)

    tasks: list[TaskResponse]


class SuccessResponse(BaseModel):
    """Response for reorder and normalize."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    updated: int = 0


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response.

    error is the human-readable message as a plain string; the browser client
    writes it straight into the page. code is the stable machine-readable key.
    """

    model_config = ConfigDict(frozen=True)

    error: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
