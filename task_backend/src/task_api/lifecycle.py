from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """
    Lifecycle states of a task.

    Progression is one-directional: PENDING -> IN_PROGRESS -> DONE.
    DONE is terminal.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


_TRANSITIONS: Mapping[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.DONE}),
    TaskStatus.DONE: frozenset(),
}


# PUBLIC_INTERFACE
def next_valid_states(current: TaskStatus) -> FrozenSet[TaskStatus]:
    """Return the states directly reachable from `current` (empty for DONE)."""
    return _TRANSITIONS[current]


# PUBLIC_INTERFACE
def can_transition(current: TaskStatus, requested: TaskStatus) -> bool:
    """
    Return True iff `requested` is a direct forward step from `current`.

    Skipping a stage, moving backwards and re-applying the current status
    are all rejected.
    """
    return requested in _TRANSITIONS[current]


def _ordered(states: FrozenSet[TaskStatus]) -> List[str]:
    return [s.value for s in TaskStatus if s in states]


# PUBLIC_INTERFACE
def transition_rules() -> Dict[str, Any]:
    """Describe the lifecycle rules in a JSON-friendly shape."""
    return {
        "flow": " -> ".join(s.value for s in TaskStatus),
        "allowed_transitions": {s.value: _ordered(next_valid_states(s)) for s in TaskStatus},
        "rules": [
            "PENDING can move to IN_PROGRESS",
            "IN_PROGRESS can move to DONE",
            "PENDING cannot skip straight to DONE",
            "status never moves backwards",
            "DONE is terminal and cannot change",
            "DONE tasks cannot be deleted",
        ],
        "usage_examples": {
            "create_task": "POST /api/v1/tasks/ with {\"title\": \"My task\"}",
            "start_task": "PATCH /api/v1/tasks/1/status with {\"status\": \"IN_PROGRESS\"}",
            "finish_task": "PATCH /api/v1/tasks/1/status with {\"status\": \"DONE\"}",
        },
    }
