from __future__ import annotations

import logging
from typing import List, Tuple

from .lifecycle import TaskStatus
from .models import Task
from .repositories import TaskRepository

logger = logging.getLogger(__name__)

DEMO_TASKS: List[Tuple[str, str, TaskStatus]] = [
    ("Implement authentication", "Add login and JWT based authentication", TaskStatus.IN_PROGRESS),
    ("Write API documentation", "Document every REST endpoint", TaskStatus.PENDING),
    ("Set up automatic deploys", "CI/CD pipeline with GitHub Actions", TaskStatus.PENDING),
    ("Service unit tests", "Cover the business rules with tests", TaskStatus.DONE),
    ("Input validation", "Validate request payloads", TaskStatus.DONE),
]


# PUBLIC_INTERFACE
def load_demo_tasks(repository: TaskRepository) -> List[Task]:
    """
    Store the sample tasks directly in the repository and return them.

    Statuses are assigned as-is; this is fixture data, not a lifecycle walk.
    """
    saved = [
        repository.save(Task(id=0, title=title, description=description, status=status))
        for title, description, status in DEMO_TASKS
    ]
    logger.info("Loaded %d demo tasks", len(saved))
    for task in saved:
        logger.debug("  #%s %s (%s)", task.id, task.title, task.status.value)
    return saved
