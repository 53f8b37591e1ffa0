from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import FrozenSet, Optional

from .lifecycle import TaskStatus, can_transition, next_valid_states


def _now() -> datetime:
    return datetime.now()


# PUBLIC_INTERFACE
@dataclass
class Task:
    """
    In-memory domain model representing a task.

    Fields:
    - id: Unique integer identifier; 0 means "not yet assigned by the repository"
    - title: Short title (1..100 chars, trimmed on input via schemas)
    - description: Optional detailed description (<= 500 chars)
    - status: Current lifecycle status, starts at PENDING
    - created_at: Creation timestamp, never changes
    - updated_at: Timestamp of the last successful mutation

    Status and field changes must go through apply_status/apply_edits so the
    lifecycle rules and timestamps stay consistent.
    """

    title: str
    description: Optional[str] = None
    id: int = 0
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = field(default_factory=_now)
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.updated_at is None or self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def next_valid_states(self) -> FrozenSet[TaskStatus]:
        return next_valid_states(self.status)

    def apply_status(self, requested: TaskStatus) -> bool:
        """
        Move to `requested` if the lifecycle allows it.

        Returns:
            True if the status changed, False if the transition was rejected.
            A rejected transition leaves the task untouched.
        """
        if not can_transition(self.status, requested):
            return False
        self.status = requested
        self._touch()
        return True

    def apply_edits(self, title: Optional[str] = None, description: Optional[str] = None) -> None:
        """
        Replace title and/or description.

        A blank title is ignored. An empty description is a real replacement,
        only None means "leave as is".
        """
        if title is not None and title.strip():
            self.title = title
        if description is not None:
            self.description = description
        self._touch()

    def copy(self) -> "Task":
        """Return an independent copy of this task."""
        return replace(self)

    def _touch(self) -> None:
        now = _now()
        # Clock may step backwards; keep updated_at >= created_at.
        self.updated_at = now if now >= self.created_at else self.created_at
