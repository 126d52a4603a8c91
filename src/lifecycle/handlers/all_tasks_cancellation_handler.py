# lifecycle/handlers/all_tasks_cancellation_handler.py

import asyncio
from typing import List, Optional

from utils.logger import get_logger, LogCategory
from lifecycle.shutdown_protocol import IShutdownHandler
from lifecycle.task_registry import TaskRegistry

log = get_logger().for_category(LogCategory.SHUTDOWN)


class AllTasksCancellationHandler(IShutdownHandler):
    """
    Cancels every tracked task that is still running, one at a time in the
    registry's shutdown order (presenters first, render loop last), except
    the task running this handler and any explicitly excluded ones.

    Priority: 30 (last)
    """

    shutdown_priority = 30

    def __init__(self, exclude_tasks: Optional[List[asyncio.Task]] = None, grace_s: float = 0.05):
        self.exclude_tasks = exclude_tasks or []
        self.grace_s = grace_s

    async def shutdown(self) -> None:
        current = asyncio.current_task()

        exclude = list(self.exclude_tasks)
        if current:
            exclude.append(current)

        tasks = TaskRegistry.instance().tasks_for_shutdown(exclude=exclude)
        if not tasks:
            log.debug("No tasks to cancel")
            return

        log.info(f"Cancelling {len(tasks)} background task(s)")
        stuck = 0
        for task in tasks:
            if task.done():
                continue
            task.cancel(msg="shutdown")
            done, _ = await asyncio.wait([task], timeout=self.grace_s)
            if not done:
                stuck += 1
                log.warn(f"Task '{task.get_name()}' still running after cancel")

        log.info("Background tasks cancelled", still_running=stuck)
