from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .lifecycle import TaskStatus
from .models import Task

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Implement login",
                "description": "Authentication flow for the web client",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..100 length.
        """
        if v is None:
            raise ValueError("title is required")
        s = v.strip()
        if not (1 <= len(s) <= TITLE_MAX_LENGTH):
            raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
        return s


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for editing an existing task.
    Both fields are optional; at least one of them must carry a change.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Implement login and logout",
                "description": "Authentication flow for the web client",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the task")
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce the maximum length.
        A blank title is passed through and treated as "not provided" by the service.
        """
        if v is None:
            return v
        s = v.strip()
        if len(s) > TITLE_MAX_LENGTH:
            raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
        return s


# PUBLIC_INTERFACE
class StatusChange(BaseModel):
    """
    Schema for requesting a status transition.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"status": "IN_PROGRESS"}})

    status: TaskStatus = Field(..., description="Requested next status")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Implement login",
                "description": "Authentication flow for the web client",
                "status": "PENDING",
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-25T10:15:30.123456",
                "next_valid_states": ["IN_PROGRESS"],
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TaskStatus = Field(..., description="Current lifecycle status")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    next_valid_states: List[TaskStatus] = Field(..., description="Statuses this task may move to next")

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            created_at=task.created_at,
            updated_at=task.updated_at,
            next_valid_states=[s for s in TaskStatus if s in task.next_valid_states],
        )


# PUBLIC_INTERFACE
class TaskListOut(BaseModel):
    """
    Envelope for list responses.
    """
    tasks: List[TaskOut] = Field(..., description="Tasks, newest first")
    total: int = Field(..., description="Number of tasks in the listing")
    counts_by_status: Dict[TaskStatus, int] = Field(..., description="Task count per status")


# PUBLIC_INTERFACE
class StatisticsOut(BaseModel):
    total: int = Field(..., description="Number of tasks")
    counts_by_status: Dict[TaskStatus, int] = Field(..., description="Task count per status")
    completion_percentage: str = Field(..., description="Share of DONE tasks, e.g. '50.0%'")
    summary: str = Field(..., description="One-line human readable summary")
