from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

from .lifecycle import TaskStatus


# PUBLIC_INTERFACE
def list_envelope(
    items: Union[Sequence[Any], Iterable[Any]],
    total: int,
    counts_by_status: Mapping[TaskStatus, int],
) -> Dict[str, Any]:
    """
    Build the standard envelope for list endpoints.

    Args:
        items: The tasks of the listing.
        total: Number of tasks the listing reports.
        counts_by_status: Per-status breakdown; only the statuses present are kept.

    Returns:
        Dict with keys: tasks, total, counts_by_status.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    # Keep lifecycle order regardless of the mapping's insertion order
    ordered = {s: int(counts_by_status[s]) for s in TaskStatus if s in counts_by_status}
    return {
        "tasks": materialized,
        "total": int(total),
        "counts_by_status": ordered,
    }
