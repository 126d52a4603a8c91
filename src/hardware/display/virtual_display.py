from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from hardware.display.display_interface import IDisplay, Origin
from models.frame import RenderedFrame
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)


@dataclass(frozen=True)
class DisplayWrite:
    """One recorded device call: a drawn frame, or None for halt()"""
    frame: Optional[RenderedFrame]

    @property
    def is_halt(self) -> bool:
        return self.frame is None


class VirtualDisplay(IDisplay):
    """
    In-memory panel used off the Pi and in tests.

    Keeps the current buffer plus the full write history so callers can assert
    what reached the "hardware".
    """

    def __init__(self, history_limit: Optional[int] = None):
        self.buffer = RenderedFrame.blank()
        self.history: List[DisplayWrite] = []
        self.history_limit = history_limit
        self.closed = False

    def draw(self, frame: RenderedFrame, origin: Origin = (0, 0)) -> None:
        self.buffer = frame.shifted(origin)
        self._record(DisplayWrite(self.buffer))

    def halt(self) -> None:
        self.buffer = RenderedFrame.blank()
        self._record(DisplayWrite(None))

    def close(self) -> None:
        if not self.closed:
            log.debug("Virtual display closed", writes=len(self.history))
        self.closed = True

    # === Inspection helpers ===

    def drawn_frames(self) -> List[RenderedFrame]:
        return [w.frame for w in self.history if w.frame is not None]

    def halt_count(self) -> int:
        return sum(1 for w in self.history if w.is_halt)

    def visible_frames(self) -> List[RenderedFrame]:
        """Drawn frames with at least one lit pixel"""
        return [f for f in self.drawn_frames() if f.lit_count() > 0]

    def clear_history(self) -> None:
        self.history.clear()

    def _record(self, write: DisplayWrite) -> None:
        self.history.append(write)
        if self.history_limit is not None and len(self.history) > self.history_limit:
            del self.history[0]
