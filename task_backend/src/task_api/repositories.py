from __future__ import annotations

from abc import ABC, abstractmethod
from threading import RLock
from typing import Callable, Iterable, List, Optional

from .lifecycle import TaskStatus
from .models import Task


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def save(self, task: Task) -> Task:
        """
        Insert or overwrite a task and return the stored copy.
        A task with id 0 receives the next free id.
        """

    @abstractmethod
    def find_by_id(self, task_id: int) -> Optional[Task]:
        """Return a Task by id, or None if not found."""

    @abstractmethod
    def list_all(self) -> List[Task]:
        """Return every task, newest first."""

    @abstractmethod
    def list_by_status(self, status: TaskStatus) -> List[Task]:
        """Return tasks in the given status, newest first."""

    @abstractmethod
    def search_by_title(self, text: str) -> List[Task]:
        """Return tasks whose title contains `text` (case-insensitive), newest first."""

    @abstractmethod
    def modify(self, task_id: int, change: Callable[[Task], None]) -> Optional[Task]:
        """
        Atomically apply `change` to a copy of the stored task and store the result.
        Return the stored copy, or None if not found. If `change` raises, nothing
        is written and the exception propagates.
        """

    @abstractmethod
    def remove(self, task_id: int) -> bool:
        """Delete a task by id. Return True if deleted, False if not found."""

    @abstractmethod
    def remove_if(self, task_id: int, guard: Callable[[Task], None]) -> Optional[Task]:
        """
        Atomically delete a task after `guard` accepted it. `guard` vetoes by raising.
        Return the removed task, or None if not found.
        """

    @abstractmethod
    def count_by_status(self, status: TaskStatus) -> int:
        """Return the number of tasks in the given status."""

    @abstractmethod
    def count_all(self) -> int:
        """Return the number of stored tasks."""

    @abstractmethod
    def exists(self, task_id: int) -> bool:
        """Return True if a task with this id is stored."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every task and restart id allocation at 1."""


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory repository.

    Stored tasks are never handed out directly: every read and write goes
    through a copy so callers can only change state by saving again or through
    modify/remove_if, which run their callback under the lock.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, Task] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def save(self, task: Task) -> Task:
        stored = task.copy()
        with self._lock:
            if stored.id == 0:
                stored.id = self._allocate_id()
            self._items[stored.id] = stored
            return stored.copy()

    def find_by_id(self, task_id: int) -> Optional[Task]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def _select(self, predicate: Optional[Callable[[Task], bool]] = None) -> List[Task]:
        with self._lock:
            items: Iterable[Task] = list(self._items.values())
        if predicate is not None:
            items = [t for t in items if predicate(t)]
        # Newest first; id breaks ties between equal timestamps
        items_sorted = sorted(items, key=lambda t: (t.created_at, t.id), reverse=True)
        return [t.copy() for t in items_sorted]

    def list_all(self) -> List[Task]:
        return self._select()

    def list_by_status(self, status: TaskStatus) -> List[Task]:
        return self._select(lambda t: t.status == status)

    def search_by_title(self, text: str) -> List[Task]:
        s = text.lower()
        return self._select(lambda t: s in t.title.lower())

    def modify(self, task_id: int, change: Callable[[Task], None]) -> Optional[Task]:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return None
            updated = existing.copy()
            change(updated)
            self._items[task_id] = updated
            return updated.copy()

    def remove(self, task_id: int) -> bool:
        with self._lock:
            return self._items.pop(task_id, None) is not None

    def remove_if(self, task_id: int, guard: Callable[[Task], None]) -> Optional[Task]:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return None
            guard(existing.copy())
            del self._items[task_id]
            return existing.copy()

    def count_by_status(self, status: TaskStatus) -> int:
        with self._lock:
            return sum(1 for t in self._items.values() if t.status == status)

    def count_all(self) -> int:
        with self._lock:
            return len(self._items)

    def exists(self, task_id: int) -> bool:
        with self._lock:
            return task_id in self._items

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._next_id = 1


# PUBLIC_INTERFACE
def get_repository() -> TaskRepository:
    """
    Factory returning a fresh repository instance.
    Only the in-memory backend exists; each application owns its own instance.
    """
    return InMemoryTaskRepository()
