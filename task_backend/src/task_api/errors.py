from __future__ import annotations

from typing import List

from .lifecycle import TaskStatus, next_valid_states


class TaskError(Exception):
    """Base class for business-rule failures raised by the task service."""


# PUBLIC_INTERFACE
class TaskNotFoundError(TaskError):
    """The referenced task id does not exist."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task with id {task_id} not found")


# PUBLIC_INTERFACE
class InvalidTransitionError(TaskError):
    """
    The requested status is not reachable from the current one.

    Attributes:
        current: status the task is in
        requested: status the caller asked for
        allowed: statuses reachable from `current`, in lifecycle order
    """

    def __init__(self, current: TaskStatus, requested: TaskStatus) -> None:
        self.current = current
        self.requested = requested
        reachable = next_valid_states(current)
        self.allowed: List[TaskStatus] = [s for s in TaskStatus if s in reachable]
        allowed_text = ", ".join(s.value for s in self.allowed) or "none"
        super().__init__(
            f"Invalid transition: cannot change status from '{current.value}' to '{requested.value}'. "
            f"Valid transitions from '{current.value}': {allowed_text}"
        )


# PUBLIC_INTERFACE
class TaskValidationError(TaskError):
    """A business rule rejected the request (empty update, blank search, deleting a DONE task)."""
