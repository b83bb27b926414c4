"""Core data models consumed by the authorization core.

Organizations and tasks are owned by the storage collaborator; the core
only reads the fields declared here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .permissions.constants import Role


@dataclass(frozen=True)
class Principal:
    """The authenticated caller.

    Built by the authentication collaborator and passed explicitly into
    every authorization decision.
    """

    id: str
    role: Role
    organization_id: str


class Organization(BaseModel):
    """An organization node with its parent reference and direct children."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    parent_id: Optional[str] = None
    children: list[Organization] = Field(default_factory=list)

    @property
    def child_ids(self) -> list[str]:
        return [child.id for child in self.children]


class TaskCategory(str, Enum):
    WORK = "Work"
    PERSONAL = "Personal"


class TaskStatus(str, Enum):
    TODO = "Todo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"


class Task(BaseModel):
    """A task owned by an organization."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: Optional[str] = None
    category: TaskCategory = TaskCategory.WORK
    status: TaskStatus = TaskStatus.TODO
    order: int = Field(default=0, ge=0)
    organization_id: str
    created_by_id: str

    @property
    def resource(self) -> str:
        """Audit resource string, ``"task:<id>"``."""
        return f"task:{self.id}"


class TaskCreate(BaseModel):
    """Payload for creating a task. Organization and creator come from the caller."""

    model_config = {"extra": "forbid"}

    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: TaskCategory
    status: TaskStatus
    order: int = Field(default=0, ge=0)


class TaskUpdate(BaseModel):
    """Partial update payload. ``None`` fields are left unchanged."""

    model_config = {"extra": "forbid"}

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    status: Optional[TaskStatus] = None
    order: Optional[int] = Field(default=None, ge=0)


Organization.model_rebuild()


__all__ = [
    "Organization",
    "Principal",
    "Task",
    "TaskCategory",
    "TaskCreate",
    "TaskStatus",
    "TaskUpdate",
]
