"""
Event Bus - routes commands and display state changes inside the process

Publishers:
- MqttBridge / API routes: ANNOUNCEMENT_RECEIVED, DISPLAY_POWER_COMMAND
- CommandController: DISPLAY_POWER_CHANGED
- Orchestrator: ANNOUNCEMENT_STARTED / ANNOUNCEMENT_FINISHED
- RefreshScheduler: AMBIENT_REFRESHED / AMBIENT_FETCH_FAILED

Subscribers run in priority order on the publisher's task. publish() returns
once every handler has finished, so an announcement published while the
IntakeQueue is full holds its publisher until there is room.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from models.events import Event, EventType
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.EVENT)

Handler = Callable[[Event], Any]
Middleware = Callable[[Event], Optional[Event]]


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", repr(handler))


@dataclass
class Subscription:
    handler: Handler
    priority: int
    filter_fn: Optional[Callable[[Event], bool]]

    def accepts(self, event: Event) -> bool:
        return self.filter_fn is None or self.filter_fn(event)


class EventBus:
    """
    In-process pub/sub.

    A handler may be sync or async (anything returning an awaitable is
    awaited). A failing handler is logged and the remaining ones still run.

    Example:
        bus = EventBus()
        bus.add_middleware(log_middleware)

        bus.subscribe(
            EventType.ANNOUNCEMENT_RECEIVED,
            controller.on_announcement,
            priority=10,
            filter_fn=lambda e: e.source == EventSource.MQTT,
        )

        await bus.publish(AnnouncementReceivedEvent(announcement, source=EventSource.MQTT))
    """

    def __init__(self):
        self._subscriptions: Dict[EventType, List[Subscription]] = {}
        self._middleware: List[Middleware] = []

        self.published = 0
        self.blocked = 0
        self.handler_failures = 0

    def subscribe(
        self,
        event_type: EventType,
        handler: Handler,
        priority: int = 0,
        filter_fn: Optional[Callable[[Event], bool]] = None,
    ) -> None:
        """
        Args:
            event_type: Which events to receive
            handler: Sync or async callable taking the event
            priority: Higher runs first; equal priorities keep subscription order
            filter_fn: Return False to skip an event
        """
        subscriptions = self._subscriptions.setdefault(event_type, [])
        subscriptions.append(Subscription(handler, priority, filter_fn))
        subscriptions.sort(key=lambda s: s.priority, reverse=True)

        log.debug(
            "Handler subscribed",
            event_type=event_type.name,
            handler=_handler_name(handler),
            priority=priority,
        )

    def add_middleware(self, middleware: Middleware) -> None:
        """
        Middleware runs before any handler, in registration order. It returns
        the (possibly replaced) event, or None to drop it.
        """
        self._middleware.append(middleware)
        log.debug("Middleware registered", middleware=_handler_name(middleware))

    def subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscriptions.get(event_type, []))

    async def publish(self, event: Event) -> None:
        for middleware in self._middleware:
            processed = middleware(event)
            if processed is None:
                self.blocked += 1
                log.debug("Event dropped by middleware", event_type=event.type.name,
                          middleware=_handler_name(middleware))
                return
            event = processed

        self.published += 1

        subscriptions = self._subscriptions.get(event.type)
        if not subscriptions:
            log.debug("No handlers for event", event_type=event.type.name)
            return

        # Copy: a handler may subscribe while we iterate
        for subscription in list(subscriptions):
            if not subscription.accepts(event):
                continue
            await self._dispatch(subscription.handler, event)

    async def _dispatch(self, handler: Handler, event: Event) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.handler_failures += 1
            log.error(
                f"Handler {_handler_name(handler)} failed for {event.type.name}: {e}",
                exc_info=True,
            )
