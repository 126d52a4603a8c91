"""
Task Registry
-------------

Tracks the asyncio tasks the signage runs:
- the Orchestrator render loop (one, for the whole process)
- an Ambient Presenter per idle period (a new task after every announcement)
- the refresh and error-recheck timers
- the local API server

Presenter tasks come and go with every announcement, so finished records are
pruned down to a bounded history. Failed records of critical categories are
never pruned: the ShutdownCoordinator polls for them.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


class TaskCategory(Enum):
    """What a background task is for; decides criticality and shutdown order."""
    RENDER = "render"          # Orchestrator render loop
    AMBIENT = "ambient"        # Ambient presenter
    SCHEDULER = "scheduler"    # Refresh / error-recheck timers
    API = "api"                # Local HTTP API (uvicorn)
    BACKGROUND = "background"

    @property
    def critical(self) -> bool:
        """A failed task of a critical category brings the process down"""
        return self in CRITICAL_CATEGORIES


CRITICAL_CATEGORIES = frozenset({TaskCategory.RENDER, TaskCategory.SCHEDULER, TaskCategory.API})

# Cancelled first to last: everything that feeds or competes with the render
# loop goes before it.
SHUTDOWN_ORDER = (
    TaskCategory.AMBIENT,
    TaskCategory.BACKGROUND,
    TaskCategory.SCHEDULER,
    TaskCategory.API,
    TaskCategory.RENDER,
)


@dataclass(frozen=True)
class TaskInfo:
    id: int
    category: TaskCategory
    description: str
    created_at: str  # ISO UTC
    started: float   # monotonic


@dataclass
class TaskRecord:
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished: Optional[float] = None  # monotonic

    @property
    def status(self) -> str:
        if not self.task.done():
            return "running"
        if self.cancelled:
            return "cancelled"
        if self.finished_with_error is not None:
            return "failed"
        return "completed"

    @property
    def runtime_s(self) -> float:
        end = self.finished if self.finished is not None else time.monotonic()
        return end - self.info.started

    @property
    def keep(self) -> bool:
        """Never pruned: still running, or a critical failure"""
        return self.status == "running" or (
            self.status == "failed" and self.info.category.critical
        )


class TaskRegistry:
    """
    Process-wide registry of tracked tasks.

    Example:
        task = create_tracked_task(presenter.run(), category=TaskCategory.AMBIENT,
                                   description="Ambient presenter")
        TaskRegistry.instance().summary()
        # "running=3 (RENDER=1, AMBIENT=1, SCHEDULER=1) failed=0 cancelled=4"
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self, history_limit: int = 50) -> None:
        self.history_limit = history_limit
        self._records: Dict[int, TaskRecord] = {}
        self._ids: Dict[asyncio.Task, int] = {}
        self._next_id = 1
        self.pruned = 0

    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, task: asyncio.Task, category: TaskCategory, description: str) -> int:
        task_id = self._next_id
        self._next_id += 1

        info = TaskInfo(
            id=task_id,
            category=category,
            description=description,
            created_at=datetime.now(timezone.utc).isoformat(),
            started=time.monotonic(),
        )
        self._records[task_id] = TaskRecord(task=task, info=info)
        self._ids[task] = task_id

        log.debug(f"[Task {task_id}] {category.name}: {description}")
        task.add_done_callback(self._on_task_done)
        return task_id

    def _on_task_done(self, task: asyncio.Task) -> None:
        task_id = self._ids.get(task)
        record = self._records.get(task_id) if task_id is not None else None
        if record is None:
            return

        record.finished = time.monotonic()
        if task.cancelled():
            record.cancelled = True
            log.debug(f"[Task {task_id}] Cancelled after {record.runtime_s:.1f}s")
        elif task.exception() is not None:
            exc = task.exception()
            record.finished_with_error = exc
            if record.info.category.critical:
                log.error(f"[Task {task_id}] {record.info.description} FAILED: {exc}", exc_info=exc)
            else:
                log.warn(f"[Task {task_id}] {record.info.description} failed: {exc}")
        else:
            log.debug(f"[Task {task_id}] Completed after {record.runtime_s:.1f}s")

        self._prune()

    def _prune(self) -> None:
        finished = [r for r in self._records.values() if not r.keep]
        excess = len(finished) - self.history_limit
        # Records are in creation order, oldest first
        for record in finished[:max(excess, 0)]:
            del self._records[record.info.id]
            self._ids.pop(record.task, None)
            self.pruned += 1

    # === Queries ===

    def list_all(self) -> List[TaskRecord]:
        return list(self._records.values())

    def active(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if not r.task.done()]

    def failed(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def cancelled(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.cancelled]

    def by_category(self, category: TaskCategory) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.info.category is category]

    def running_by_category(self) -> Dict[str, int]:
        counts = Counter(r.info.category for r in self.active())
        return {c.name: counts[c] for c in TaskCategory if counts[c]}

    def summary(self) -> str:
        per_category = ", ".join(f"{name}={n}" for name, n in self.running_by_category().items())
        return (
            f"running={len(self.active())} ({per_category or 'none'}) "
            f"failed={len(self.failed())} cancelled={len(self.cancelled())}"
        )

    # === Shutdown ===

    def tasks_for_shutdown(self, exclude: Iterable[asyncio.Task] = ()) -> List[asyncio.Task]:
        """Running tasks in SHUTDOWN_ORDER, excluding the given ones"""
        excluded = set(exclude)
        rank = {category: i for i, category in enumerate(SHUTDOWN_ORDER)}
        records = sorted(
            (r for r in self.active() if r.task not in excluded),
            key=lambda r: rank[r.info.category],
        )
        return [r.task for r in records]


def create_tracked_task(coro, *, category: TaskCategory, description: str) -> asyncio.Task:
    """Create a task on the running loop and register it."""
    task = asyncio.get_running_loop().create_task(coro, name=description)
    TaskRegistry.instance().register(task, category=category, description=description)
    return task
