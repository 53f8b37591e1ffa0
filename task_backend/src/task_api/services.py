from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import InvalidTransitionError, TaskNotFoundError, TaskValidationError
from .lifecycle import TaskStatus
from .models import Task
from .repositories import TaskRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskListResult:
    """
    A listing of tasks with its size and a per-status breakdown.
    """
    tasks: List[Task]
    total: int
    counts_by_status: Dict[TaskStatus, int]


@dataclass(frozen=True)
class TaskStatistics:
    total: int
    counts_by_status: Dict[TaskStatus, int]
    completion_percentage: str  # e.g. "50.0%"
    summary: str


# PUBLIC_INTERFACE
class TaskService:
    """
    Business operations on tasks.

    Enforces the lifecycle and deletion rules on top of a TaskRepository.
    Failures are raised as TaskError subclasses and never swallowed here.
    """

    def __init__(self, repository: TaskRepository) -> None:
        self._repo = repository

    def _require(self, task_id: int) -> Task:
        task = self._repo.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def create(self, title: str, description: Optional[str] = None) -> Task:
        """Create a PENDING task and return the stored copy with its id."""
        task = Task(id=0, title=title, description=description, status=TaskStatus.PENDING)
        saved = self._repo.save(task)
        logger.info("Task created: id=%s title=%r", saved.id, saved.title)
        return saved

    def get_by_id(self, task_id: int) -> Task:
        return self._require(task_id)

    def list_all(self) -> TaskListResult:
        tasks = self._repo.list_all()
        counts = {s: self._repo.count_by_status(s) for s in TaskStatus}
        return TaskListResult(tasks=tasks, total=self._repo.count_all(), counts_by_status=counts)

    def list_by_status(self, status: TaskStatus) -> TaskListResult:
        """
        List tasks in one status. The breakdown only holds the queried status.
        """
        tasks = self._repo.list_by_status(status)
        return TaskListResult(tasks=tasks, total=len(tasks), counts_by_status={status: len(tasks)})

    def update(self, task_id: int, title: Optional[str] = None, description: Optional[str] = None) -> Task:
        """
        Edit title and/or description.

        Raises:
            TaskNotFoundError: unknown id
            TaskValidationError: neither a non-blank title nor a description was given
        """
        has_title = title is not None and bool(title.strip())

        def edit(task: Task) -> None:
            if not has_title and description is None:
                raise TaskValidationError(
                    "At least one field (title or description) must be provided for update"
                )
            task.apply_edits(title=title if has_title else None, description=description)

        saved = self._repo.modify(task_id, edit)
        if saved is None:
            raise TaskNotFoundError(task_id)
        logger.info("Task updated: id=%s title=%r", saved.id, saved.title)
        return saved

    def change_status(self, task_id: int, requested: TaskStatus) -> Task:
        """
        Move a task along its lifecycle.

        Raises:
            TaskNotFoundError: unknown id
            InvalidTransitionError: `requested` is not reachable from the current status
        """
        previous: List[TaskStatus] = []

        def transition(task: Task) -> None:
            previous.append(task.status)
            if not task.apply_status(requested):
                raise InvalidTransitionError(task.status, requested)

        saved = self._repo.modify(task_id, transition)
        if saved is None:
            raise TaskNotFoundError(task_id)
        logger.info("Task status changed: id=%s %s -> %s", saved.id, previous[0].value, requested.value)
        return saved

    def remove(self, task_id: int) -> None:
        """
        Delete a task. DONE tasks are kept for history and cannot be deleted.
        """

        def not_done(task: Task) -> None:
            if task.status == TaskStatus.DONE:
                raise TaskValidationError(
                    "Cannot delete a DONE task. Completed tasks are kept for history."
                )

        removed = self._repo.remove_if(task_id, not_done)
        if removed is None:
            raise TaskNotFoundError(task_id)
        logger.info("Task removed: id=%s title=%r", task_id, removed.title)

    def search_by_title(self, query: str) -> TaskListResult:
        if query is None or not query.strip():
            raise TaskValidationError("Search text for title must not be empty")

        tasks = self._repo.search_by_title(query)
        counts = {s: sum(1 for t in tasks if t.status == s) for s in TaskStatus}
        return TaskListResult(tasks=tasks, total=len(tasks), counts_by_status=counts)

    def statistics(self) -> TaskStatistics:
        pending = self._repo.count_by_status(TaskStatus.PENDING)
        in_progress = self._repo.count_by_status(TaskStatus.IN_PROGRESS)
        done = self._repo.count_by_status(TaskStatus.DONE)
        total = self._repo.count_all()

        percentage = done / total * 100 if total > 0 else 0.0
        return TaskStatistics(
            total=total,
            counts_by_status={
                TaskStatus.PENDING: pending,
                TaskStatus.IN_PROGRESS: in_progress,
                TaskStatus.DONE: done,
            },
            completion_percentage=f"{percentage:.1f}%",
            summary=f"{total} tasks total: {pending} pending, {in_progress} in progress, {done} done",
        )
