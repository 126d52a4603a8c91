"""
System endpoints - task introspection
"""

from typing import Any, Dict

from fastapi import APIRouter

from lifecycle.task_registry import TaskRegistry

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/tasks/summary")
async def get_task_summary() -> Dict[str, Any]:
    """
    Returns:
        - summary: Human-readable summary string
        - total / active / failed / cancelled: task counts
        - running: running task count per category
    """
    registry = TaskRegistry.instance()
    return {
        "summary": registry.summary(),
        "total": len(registry.list_all()),
        "active": len(registry.active()),
        "failed": len(registry.failed()),
        "cancelled": len(registry.cancelled()),
        "running": registry.running_by_category(),
        "pruned": registry.pruned,
    }


@router.get("/tasks")
async def get_all_tasks() -> Dict[str, Any]:
    """Tracked background tasks (render loop, presenters, timers, API), oldest first."""
    tasks = [
        {
            "id": r.info.id,
            "category": r.info.category.name,
            "description": r.info.description,
            "critical": r.info.category.critical,
            "created_at": r.info.created_at,
            "runtime_s": round(r.runtime_s, 3),
            "status": r.status,
            "error": str(r.finished_with_error) if r.finished_with_error else None,
        }
        for r in TaskRegistry.instance().list_all()
    ]
    return {"count": len(tasks), "tasks": tasks}
