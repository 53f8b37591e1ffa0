import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import InvalidTransitionError, TaskNotFoundError, TaskValidationError
from .lifecycle import TaskStatus
from .logging_setup import setup_logging
from .repositories import get_repository
from .routers import tasks as tasks_router
from .seed import load_demo_tasks
from .services import TaskService
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "CRUD operations for tasks with a forward-only status lifecycle.",
    },
]


def _error_body(status_code: int, error: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
        "status": status_code,
        "error": error,
        "message": message,
    }
    if details is not None:
        body["details"] = details
    return body


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(TaskNotFoundError)
    async def not_found_handler(request: Request, exc: TaskNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_error_body(404, "TaskNotFound", str(exc)))

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        details = {
            "current": exc.current.value,
            "requested": exc.requested.value,
            "allowed": [s.value for s in exc.allowed],
        }
        return JSONResponse(
            status_code=400, content=_error_body(400, "InvalidTransition", str(exc), details)
        )

    @app.exception_handler(TaskValidationError)
    async def business_validation_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error_body(400, "BusinessRuleViolation", str(exc)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body(500, "InternalError", "An unexpected error occurred. Please try again."),
        )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Each application owns its own repository and service (available as
    app.state.task_repository and app.state.task_service). Logging is
    configured once, when the application starts serving.
    """
    settings = settings or get_settings()

    repository = get_repository()
    service = TaskService(repository)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        if settings.seed_demo_data:
            load_demo_tasks(repository)
        logger.info("Task backend started")
        yield

    app = FastAPI(
        title="Task Backend",
        description="Backend API service for managing tasks with a PENDING -> IN_PROGRESS -> DONE lifecycle.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.task_repository = repository
    app.state.task_service = service

    # Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the known statuses.
        """
        return {"message": "Healthy", "statuses": [s.value for s in TaskStatus]}

    app.include_router(tasks_router.router)
    return app


app = create_app()
