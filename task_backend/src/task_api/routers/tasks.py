from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request, status

from ..lifecycle import TaskStatus, transition_rules
from ..schemas import StatisticsOut, StatusChange, TaskCreate, TaskListOut, TaskOut, TaskUpdate
from ..services import TaskListResult, TaskService
from ..utils import list_envelope

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def get_service(request: Request) -> TaskService:
    """
    Dependency returning the TaskService owned by the running application.
    """
    return request.app.state.task_service


def _list_out(result: TaskListResult) -> TaskListOut:
    envelope = list_envelope(
        items=[TaskOut.from_task(t) for t in result.tasks],
        total=result.total,
        counts_by_status=result.counts_by_status,
    )
    return TaskListOut(**envelope)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task in PENDING status and return it.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(payload: TaskCreate, service: TaskService = Depends(get_service)) -> TaskOut:
    created = service.create(payload.title, payload.description)
    return TaskOut.from_task(created)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TaskListOut,
    summary="List Tasks",
    description="List every task, newest first, with a count for each status.",
)
def list_tasks(service: TaskService = Depends(get_service)) -> TaskListOut:
    return _list_out(service.list_all())


# PUBLIC_INTERFACE
@router.get(
    "/status/{task_status}",
    response_model=TaskListOut,
    summary="List Tasks By Status",
    description="List tasks in one status, newest first. The count only covers the queried status.",
)
def list_tasks_by_status(task_status: TaskStatus, service: TaskService = Depends(get_service)) -> TaskListOut:
    return _list_out(service.list_by_status(task_status))


# PUBLIC_INTERFACE
@router.get(
    "/search",
    response_model=TaskListOut,
    summary="Search Tasks",
    description="Case-insensitive substring search on task titles.",
    responses={
        200: {"description": "Search completed"},
        400: {"description": "Blank search text"},
    },
)
def search_tasks(
    title: str = Query(..., description="Text to look for in task titles"),
    service: TaskService = Depends(get_service),
) -> TaskListOut:
    return _list_out(service.search_by_title(title))


# PUBLIC_INTERFACE
@router.get(
    "/statistics",
    response_model=StatisticsOut,
    summary="Task Statistics",
    description="Totals per status and completion percentage.",
)
def task_statistics(service: TaskService = Depends(get_service)) -> StatisticsOut:
    stats = service.statistics()
    return StatisticsOut(
        total=stats.total,
        counts_by_status=stats.counts_by_status,
        completion_percentage=stats.completion_percentage,
        summary=stats.summary,
    )


# PUBLIC_INTERFACE
@router.get(
    "/rules",
    summary="Lifecycle Rules",
    description="Describe the allowed status transitions and deletion policy.",
)
def lifecycle_rules() -> Dict[str, Any]:
    return transition_rules()


# PUBLIC_INTERFACE
@router.get(
    "/info",
    summary="API Info",
    description="Name, version, available statuses and an endpoint catalogue.",
)
def api_info(request: Request) -> Dict[str, Any]:
    p = router.prefix
    return {
        "name": request.app.title,
        "version": request.app.version,
        "description": request.app.description,
        "statuses": [s.value for s in TaskStatus],
        "endpoints": {
            "crud": [
                f"POST {p}/ - create",
                f"GET {p}/ - list all",
                f"GET {p}/{{task_id}} - get by id",
                f"PUT {p}/{{task_id}} - update",
                f"DELETE {p}/{{task_id}} - delete",
            ],
            "status": [
                f"PATCH {p}/{{task_id}}/status - change status",
                f"GET {p}/status/{{task_status}} - list by status",
            ],
            "utilities": [
                f"GET {p}/search?title=X - search by title",
                f"GET {p}/statistics - statistics",
                f"GET {p}/rules - lifecycle rules",
                f"GET {p}/info - this catalogue",
            ],
        },
    }


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: int, service: TaskService = Depends(get_service)) -> TaskOut:
    return TaskOut.from_task(service.get_by_id(task_id))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Edit the title and/or description of a task. At least one of them is required.",
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Nothing to update"},
        404: {"description": "Task not found"},
    },
)
def update_task(task_id: int, payload: TaskUpdate, service: TaskService = Depends(get_service)) -> TaskOut:
    updated = service.update(task_id, title=payload.title, description=payload.description)
    return TaskOut.from_task(updated)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}/status",
    response_model=TaskOut,
    summary="Change Task Status",
    description="Move a task to its next lifecycle status (PENDING -> IN_PROGRESS -> DONE).",
    responses={
        200: {"description": "Status changed"},
        400: {"description": "Invalid transition"},
        404: {"description": "Task not found"},
    },
)
def change_task_status(
    task_id: int, payload: StatusChange, service: TaskService = Depends(get_service)
) -> TaskOut:
    return TaskOut.from_task(service.change_status(task_id, payload.status))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    summary="Delete Task",
    description="Delete a task by ID. DONE tasks are kept for history and cannot be deleted.",
    responses={
        200: {"description": "Task deleted"},
        400: {"description": "Task is DONE"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: int, service: TaskService = Depends(get_service)) -> Dict[str, Any]:
    service.remove(task_id)
    return {"message": "Task deleted", "id": task_id}
