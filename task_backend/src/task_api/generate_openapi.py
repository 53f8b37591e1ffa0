"""
Utility script to generate and write the OpenAPI schema for the task backend.

Builds the application through create_app (without seeding demo data) and
serializes its OpenAPI schema to interfaces/openapi.json so API clients and
documentation tools can consume a stable schema without running the server.

Usage:
    python -m src.task_api.generate_openapi
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .logging_setup import setup_logging
from .main import create_app, openapi_tags
from .settings import get_settings

logger = logging.getLogger(__name__)


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema contains every tag declared in openapi_tags.
    Existing tag definitions are left untouched.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def _default_output_path() -> str:
    # <container_root>/interfaces/openapi.json, container root being the parent of src/
    src_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(os.path.dirname(src_dir), "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the OpenAPI schema file and return its path."""
    app = create_app(replace(get_settings(), seed_demo_data=False))
    schema = app.openapi()
    _ensure_tags(schema)

    out_path = out_path or _default_output_path()
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to: %s", out_path)
    return out_path


if __name__ == "__main__":
    setup_logging()
    generate_openapi()
