"""CommandController - single consumer of inbound commands"""

from __future__ import annotations

from engine.display_context import DisplayContext
from engine.intake_queue import IntakeQueue
from models.display_power import format_power_state
from models.events import (
    AnnouncementReceivedEvent,
    DisplayPowerChangedEvent,
    DisplayPowerCommandEvent,
    EventType,
)
from services.event_bus import EventBus
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.DISPLAY)


class CommandController:
    """
    Inbound command handling (MQTT and HTTP API alike)

    Responsibilities:
    - Enqueue announcements into the IntakeQueue (waits when full)
    - Sole writer of DisplayContext.display_enabled
    - Publish DISPLAY_POWER_CHANGED after every power command (acknowledgement)
    """

    def __init__(self, context: DisplayContext, intake: IntakeQueue, event_bus: EventBus):
        self.context = context
        self.intake = intake
        self.event_bus = event_bus

        self.event_bus.subscribe(EventType.ANNOUNCEMENT_RECEIVED, self._on_announcement)
        self.event_bus.subscribe(EventType.DISPLAY_POWER_COMMAND, self._on_display_power)

    async def _on_announcement(self, event: AnnouncementReceivedEvent) -> None:
        await self.intake.put(event.announcement)
        log.info(
            f"Announcement queued from {event.source.name}",
            text=event.announcement.text,
            priority=event.announcement.priority.name,
            depth=self.intake.qsize(),
        )

    async def _on_display_power(self, event: DisplayPowerCommandEvent) -> None:
        await self.set_display_enabled(event.enabled)

    async def set_display_enabled(self, enabled: bool) -> None:
        changed = self.context.display_enabled != enabled
        self.context.display_enabled = enabled

        if changed:
            log.info(f"Display switched {format_power_state(enabled)}")
        else:
            log.debug(f"Display already {format_power_state(enabled)}")

        # Acknowledged even when unchanged
        await self.event_bus.publish(DisplayPowerChangedEvent(enabled))
