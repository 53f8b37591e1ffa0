"""
FastAPI Task Backend package.

The application is built by `src.task_api.main.create_app`; `src.task_api.main.app`
is the default instance for ASGI servers.
The business core lives in lifecycle, models, repositories and services and
does not depend on FastAPI.
"""
