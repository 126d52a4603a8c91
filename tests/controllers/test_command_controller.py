import asyncio

from controllers.command_controller import CommandController
from models.announcement import Announcement
from models.events import (
    AnnouncementReceivedEvent,
    DisplayPowerCommandEvent,
    EventSource,
    EventType,
)


async def test_announcement_enqueued(context, intake, event_bus):
    CommandController(context, intake, event_bus)

    await event_bus.publish(AnnouncementReceivedEvent(Announcement("one")))
    await event_bus.publish(AnnouncementReceivedEvent(Announcement("two"), source=EventSource.HTTP_API))

    assert intake.qsize() == 2
    assert (await intake.get()).text == "one"
    assert (await intake.get()).text == "two"


async def test_power_command_sets_flag_and_acknowledges(context, intake, event_bus):
    CommandController(context, intake, event_bus)
    acks = []
    event_bus.subscribe(EventType.DISPLAY_POWER_CHANGED, acks.append)

    await event_bus.publish(DisplayPowerCommandEvent(False))

    assert context.display_enabled is False
    assert [a.enabled for a in acks] == [False]


async def test_unchanged_power_command_still_acknowledged(context, intake, event_bus):
    controller = CommandController(context, intake, event_bus)
    acks = []
    event_bus.subscribe(EventType.DISPLAY_POWER_CHANGED, acks.append)

    await controller.set_display_enabled(True)
    await controller.set_display_enabled(True)

    assert context.display_enabled is True
    assert len(acks) == 2


async def test_full_queue_holds_publisher(context, event_bus):
    from engine.intake_queue import IntakeQueue

    intake = IntakeQueue(capacity=1)
    CommandController(context, intake, event_bus)
    await event_bus.publish(AnnouncementReceivedEvent(Announcement("first")))

    pending = asyncio.create_task(event_bus.publish(AnnouncementReceivedEvent(Announcement("second"))))
    await asyncio.sleep(0.01)
    assert not pending.done()

    assert (await intake.get()).text == "first"
    await asyncio.wait_for(pending, timeout=1)
    assert (await intake.get()).text == "second"
