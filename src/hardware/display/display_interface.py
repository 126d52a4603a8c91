# hardware/display/display_interface.py
"""
IDisplay Protocol
=================
Hardware abstraction for the 16×16 matrix panel.
Minimal contract for any device sink (Unicorn HAT HD, in-memory, ...).
"""

from __future__ import annotations
from typing import Protocol, Tuple

from models.frame import RenderedFrame

Origin = Tuple[int, int]


class IDisplay(Protocol):
    """
    Protocol defining the device sink.

    All implementations must provide:
    - draw: push a full pixel buffer positioned at an origin
    - halt: blank the panel (display switched off / night / shutdown)
    - close: release the underlying device
    """

    def draw(self, frame: RenderedFrame, origin: Origin = (0, 0)) -> None:
        """Write frame to the panel with its top-left corner at origin."""
        ...

    def halt(self) -> None:
        """Blank the panel."""
        ...

    def close(self) -> None:
        """Release the device (idempotent)."""
        ...
