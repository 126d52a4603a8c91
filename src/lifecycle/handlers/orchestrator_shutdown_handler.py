"""
Orchestrator shutdown handler.

Stops the refresh timers and the render loop before the display is blanked,
so nothing writes to the panel afterwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from engine.orchestrator import Orchestrator
    from services.refresh_scheduler import RefreshScheduler

log = get_logger().for_category(LogCategory.SHUTDOWN)


class OrchestratorShutdownHandler(IShutdownHandler):
    """
    Priority: 120 (first - stop producing frames)
    """

    def __init__(self, orchestrator: "Orchestrator", scheduler: Optional["RefreshScheduler"] = None):
        self.orchestrator = orchestrator
        self.scheduler = scheduler

    @property
    def shutdown_priority(self) -> int:
        return 120

    async def shutdown(self) -> None:
        log.info("Stopping orchestrator...")

        if self.scheduler is not None:
            try:
                await self.scheduler.stop()
            except Exception as e:
                log.error(f"Error stopping scheduler: {e}", exc_info=True)

        await self.orchestrator.stop()
