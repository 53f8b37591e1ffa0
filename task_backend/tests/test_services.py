import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from src.task_api import models
from src.task_api.errors import InvalidTransitionError, TaskNotFoundError, TaskValidationError
from src.task_api.lifecycle import TaskStatus
from src.task_api.repositories import InMemoryTaskRepository
from src.task_api.services import TaskService


@pytest.fixture()
def service():
    return TaskService(InMemoryTaskRepository())


class TestCreateAndGet:
    def test_create_starts_pending(self, service):
        task = service.create("Implement login", "Auth flow")
        assert task.id == 1
        assert task.status == TaskStatus.PENDING
        assert task.created_at == task.updated_at
        assert service.get_by_id(task.id).description == "Auth flow"

    def test_get_missing(self, service):
        with pytest.raises(TaskNotFoundError) as exc:
            service.get_by_id(99)
        assert exc.value.task_id == 99

    def test_concurrent_creates(self, service):
        n = 100
        with ThreadPoolExecutor(max_workers=10) as pool:
            created = list(pool.map(lambda i: service.create(f"Task {i}"), range(n)))
        assert sorted(t.id for t in created) == list(range(1, n + 1))


class TestChangeStatus:
    def test_full_lifecycle(self, service):
        task = service.create("Write tests")
        assert service.change_status(task.id, TaskStatus.IN_PROGRESS).status == TaskStatus.IN_PROGRESS
        assert service.change_status(task.id, TaskStatus.DONE).status == TaskStatus.DONE
        assert service.get_by_id(task.id).status == TaskStatus.DONE

    def test_skip_rejected_with_context(self, service):
        task = service.create("Write tests")
        with pytest.raises(InvalidTransitionError) as exc:
            service.change_status(task.id, TaskStatus.DONE)
        assert exc.value.current == TaskStatus.PENDING
        assert exc.value.requested == TaskStatus.DONE
        assert exc.value.allowed == [TaskStatus.IN_PROGRESS]
        assert service.get_by_id(task.id).status == TaskStatus.PENDING

    @pytest.mark.parametrize("target", list(TaskStatus))
    def test_done_never_changes(self, service, target):
        task = service.create("Finished")
        service.change_status(task.id, TaskStatus.IN_PROGRESS)
        service.change_status(task.id, TaskStatus.DONE)
        with pytest.raises(InvalidTransitionError) as exc:
            service.change_status(task.id, target)
        assert exc.value.allowed == []

    def test_missing(self, service):
        with pytest.raises(TaskNotFoundError):
            service.change_status(5, TaskStatus.IN_PROGRESS)


class TestUpdate:
    def test_requires_content(self, service):
        task = service.create("Title")
        with pytest.raises(TaskValidationError):
            service.update(task.id)
        with pytest.raises(TaskValidationError):
            service.update(task.id, title="   ")

    def test_title_update_refreshes_timestamp(self, service, monkeypatch):
        task = service.create("Title", "desc")
        later = task.updated_at + timedelta(seconds=10)
        monkeypatch.setattr(models, "_now", lambda: later)

        updated = service.update(task.id, title="X")
        assert updated.title == "X"
        assert updated.description == "desc"
        assert updated.updated_at == later
        assert updated.created_at == task.created_at
        assert service.get_by_id(task.id).title == "X"

    def test_blank_title_with_description(self, service):
        task = service.create("Title", "desc")
        updated = service.update(task.id, title="  ", description="")
        assert updated.title == "Title"
        assert updated.description == ""

    def test_missing(self, service):
        with pytest.raises(TaskNotFoundError):
            service.update(12, title="X")


class TestRemove:
    def test_remove_pending_and_in_progress(self, service):
        pending = service.create("P")
        started = service.create("S")
        service.change_status(started.id, TaskStatus.IN_PROGRESS)

        service.remove(pending.id)
        service.remove(started.id)
        for task_id in (pending.id, started.id):
            with pytest.raises(TaskNotFoundError):
                service.get_by_id(task_id)

    def test_done_task_is_kept(self, service):
        task = service.create("Done")
        service.change_status(task.id, TaskStatus.IN_PROGRESS)
        service.change_status(task.id, TaskStatus.DONE)
        with pytest.raises(TaskValidationError):
            service.remove(task.id)
        assert service.get_by_id(task.id).status == TaskStatus.DONE

    def test_missing(self, service):
        with pytest.raises(TaskNotFoundError):
            service.remove(1)


class TestListingAndSearch:
    def test_list_all_counts_every_status(self, service):
        service.create("A")
        b = service.create("B")
        service.change_status(b.id, TaskStatus.IN_PROGRESS)

        result = service.list_all()
        assert result.total == 2
        assert [t.title for t in result.tasks] == ["B", "A"]
        assert result.counts_by_status == {
            TaskStatus.PENDING: 1,
            TaskStatus.IN_PROGRESS: 1,
            TaskStatus.DONE: 0,
        }

    def test_list_by_status_counts_only_queried_status(self, service):
        service.create("A")
        service.create("B")
        result = service.list_by_status(TaskStatus.PENDING)
        assert result.total == 2
        assert result.counts_by_status == {TaskStatus.PENDING: 2}

        empty = service.list_by_status(TaskStatus.DONE)
        assert empty.tasks == []
        assert empty.counts_by_status == {TaskStatus.DONE: 0}

    def test_search(self, service):
        service.create("Implement login")
        service.create("Write tests")
        result = service.search_by_title("LOGIN")
        assert [t.title for t in result.tasks] == ["Implement login"]
        assert result.total == 1
        assert result.counts_by_status == {
            TaskStatus.PENDING: 1,
            TaskStatus.IN_PROGRESS: 0,
            TaskStatus.DONE: 0,
        }

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_search_rejected(self, service, query):
        with pytest.raises(TaskValidationError):
            service.search_by_title(query)


class TestStatistics:
    def test_empty(self, service):
        stats = service.statistics()
        assert stats.total == 0
        assert stats.completion_percentage == "0.0%"
        assert stats.summary == "0 tasks total: 0 pending, 0 in progress, 0 done"

    def test_scenario(self, service):
        a = service.create("Implement login")
        b = service.create("Write tests")

        service.change_status(a.id, TaskStatus.IN_PROGRESS)
        with pytest.raises(InvalidTransitionError):
            service.change_status(b.id, TaskStatus.DONE)
        service.change_status(a.id, TaskStatus.DONE)

        stats = service.statistics()
        assert stats.total == 2
        assert stats.counts_by_status[TaskStatus.DONE] == 1
        assert stats.counts_by_status[TaskStatus.PENDING] == 1
        assert stats.counts_by_status[TaskStatus.IN_PROGRESS] == 0
        assert stats.completion_percentage == "50.0%"
        assert stats.summary == "2 tasks total: 1 pending, 0 in progress, 1 done"

    def test_one_decimal(self, service):
        for i in range(3):
            service.create(f"T{i}")
        service.change_status(1, TaskStatus.IN_PROGRESS)
        service.change_status(1, TaskStatus.DONE)
        assert service.statistics().completion_percentage == "33.3%"


class HoldingRepository(InMemoryTaskRepository):
    """
    Holds the next modify/remove_if inside its critical section for a moment
    once `armed`, so another thread can try to cut in.
    """

    def __init__(self):
        super().__init__()
        self.armed = False
        self.entered = threading.Event()

    def _hold(self, fn):
        def wrapped(task):
            if self.armed:
                self.armed = False
                self.entered.set()
                time.sleep(0.2)
            fn(task)
        return wrapped

    def modify(self, task_id, change):
        return super().modify(task_id, self._hold(change))

    def remove_if(self, task_id, guard):
        return super().remove_if(task_id, self._hold(guard))


def interleave(repo, first, second):
    repo.armed = True
    with ThreadPoolExecutor(max_workers=2) as pool:
        held = pool.submit(first)
        assert repo.entered.wait(timeout=5)
        racing = pool.submit(second)
    return held, racing


class TestConcurrentChanges:
    @pytest.fixture()
    def repo(self):
        return HoldingRepository()

    @pytest.fixture()
    def svc(self, repo):
        return TaskService(repo)

    def test_update_does_not_undo_status_change(self, repo, svc):
        task = svc.create("Title")
        held, racing = interleave(
            repo,
            lambda: svc.update(task.id, title="X"),
            lambda: svc.change_status(task.id, TaskStatus.IN_PROGRESS),
        )
        held.result()
        racing.result()
        final = svc.get_by_id(task.id)
        assert final.title == "X"
        assert final.status == TaskStatus.IN_PROGRESS

    def test_done_task_not_deleted_while_finishing(self, repo, svc):
        task = svc.create("Finish me")
        svc.change_status(task.id, TaskStatus.IN_PROGRESS)
        held, racing = interleave(
            repo,
            lambda: svc.change_status(task.id, TaskStatus.DONE),
            lambda: svc.remove(task.id),
        )
        held.result()
        assert isinstance(racing.exception(), TaskValidationError)
        assert svc.get_by_id(task.id).status == TaskStatus.DONE

    def test_removed_task_stays_removed(self, repo, svc):
        task = svc.create("Gone")
        held, racing = interleave(
            repo,
            lambda: svc.remove(task.id),
            lambda: svc.change_status(task.id, TaskStatus.IN_PROGRESS),
        )
        held.result()
        assert isinstance(racing.exception(), TaskNotFoundError)
        assert repo.exists(task.id) is False
