"""
GuardedWriter - every physical write goes through here

Checks DisplayEnabledFlag immediately before touching the device. While the
display is disabled the write is substituted according to DisabledMode, and
the caller's timing is left untouched.
"""

from __future__ import annotations

from typing import Callable, Union

from engine.display_context import DisplayContext
from hardware.display.display_interface import IDisplay
from models.enums import DisabledMode
from models.frame import RenderedFrame

FrameSource = Union[RenderedFrame, Callable[[], RenderedFrame]]


class GuardedWriter:
    """
    Display-enabled aware wrapper around the device sink.

    Callers must hold context.display_lock.
    """

    def __init__(
        self,
        context: DisplayContext,
        display: IDisplay,
        disabled_mode: DisabledMode = DisabledMode.BLANK,
    ):
        self.context = context
        self.display = display
        self.disabled_mode = disabled_mode

        self.frames_written = 0
        self.writes_suppressed = 0

    def write(self, frame: FrameSource) -> bool:
        """
        Draw frame (or the frame produced by a render callable).

        The callable is only invoked when the frame will actually be shown.

        Returns:
            True if the frame reached the device
        """
        if not self.context.display_enabled:
            self.writes_suppressed += 1
            if self.disabled_mode == DisabledMode.BLANK:
                self.display.halt()
            return False

        if callable(frame):
            frame = frame()
        self.display.draw(frame, (0, 0))
        self.frames_written += 1
        return True

    def halt(self) -> None:
        """Device halt (flash off phase); no device call when disabled in SKIP mode"""
        if not self.context.display_enabled and self.disabled_mode == DisabledMode.SKIP:
            self.writes_suppressed += 1
            return
        self.display.halt()

    def blank(self) -> None:
        """Blank write (night mode, shutdown); a halt when disabled in BLANK mode"""
        self.write(RenderedFrame.blank())
