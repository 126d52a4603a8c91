from __future__ import annotations

from hardware.display.display_interface import IDisplay
from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class DisplayShutdownHandler(IShutdownHandler):
    """
    Blanks and releases the panel so it is not left lit.

    Runs AFTER the orchestrator stops, otherwise an in-flight scroll frame
    could land after the blank.

    Priority: 100
    """

    def __init__(self, display: IDisplay):
        self.display = display

    @property
    def shutdown_priority(self) -> int:
        return 100

    async def shutdown(self) -> None:
        log.info("Blanking display...")
        try:
            self.display.halt()
        finally:
            self.display.close()
        log.info("Display blanked")
