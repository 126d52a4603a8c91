"""
DisplayContext - shared state for everything that touches the physical display

Single-writer flags (documented per field) plus the display lock that backs
single-owner access to the device sink.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from models.enums import DisplayPhase


@dataclass
class DisplayContext:
    """
    Process-lifetime coordination state, passed by reference.

    Fields and their single writer:
      display_enabled       CommandController (inbound on/off commands)
      showing_announcement  Orchestrator (set before a sequence, cleared after)
      ambient_error         RefreshScheduler (ambient source failing, backoff)
      phase                 Orchestrator

    Everyone else only reads. Every physical write happens while holding
    display_lock: the Orchestrator holds it for a whole announcement sequence,
    the Ambient Presenter takes it per write.
    """
    display_enabled: bool = True
    showing_announcement: bool = False
    ambient_error: bool = False
    phase: DisplayPhase = DisplayPhase.IDLE
    display_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def snapshot(self) -> dict:
        """Plain-value view for status reporting"""
        return {
            "display_enabled": self.display_enabled,
            "showing_announcement": self.showing_announcement,
            "ambient_error": self.ambient_error,
            "phase": self.phase.name,
        }
