"""
MQTT Bridge - message bus adapter (paho-mqtt)

Inbound:
  announcement topic   {"msg": ..., "priority": "0.0".."3.0"} → ANNOUNCEMENT_RECEIVED
  display power topic  ON/OFF (1/0, true/false)               → DISPLAY_POWER_COMMAND

Outbound:
  availability    "online" on connect and on every heartbeat, "offline" as last will
  display status  "ON"/"OFF" after every power command (retained)
  status          "showing"/"idle" around announcements

paho runs its network loop in its own thread. Payloads are parsed there and
well-formed commands are handed to the asyncio loop with
run_coroutine_threadsafe; malformed ones are logged and dropped.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Optional, Union

import paho.mqtt.client as mqtt

from models.announcement import Announcement
from models.config import MqttConfig
from models.display_power import format_power_state, parse_power_state
from models.errors import MalformedPayloadError
from models.events import (
    AnnouncementFinishedEvent,
    AnnouncementReceivedEvent,
    AnnouncementStartedEvent,
    DisplayPowerChangedEvent,
    DisplayPowerCommandEvent,
    Event,
    EventSource,
    EventType,
)
from services.event_bus import EventBus
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MQTT)

AVAILABLE = "online"
UNAVAILABLE = "offline"
STATUS_SHOWING = "showing"
STATUS_IDLE = "idle"


def create_client(config: MqttConfig) -> mqtt.Client:
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=config.client_id,
    )
    if config.username:
        client.username_pw_set(config.username, config.password)
    client.reconnect_delay_set(min_delay=1, max_delay=120)
    return client


class MqttBridge:
    """
    Bidirectional bridge between the MQTT broker and the EventBus.

    Example:
        bridge = MqttBridge(config.mqtt, event_bus)
        await bridge.connect()
        ...
        await bridge.refresh()      # scheduler heartbeat
        ...
        await bridge.disconnect()
    """

    def __init__(
        self,
        config: MqttConfig,
        event_bus: EventBus,
        client: Optional[mqtt.Client] = None,
    ):
        self.config = config
        self.topics = config.topics
        self.event_bus = event_bus
        self.client = client if client is not None else create_client(config)
        self.loop: Optional[asyncio.AbstractEventLoop] = None

        self.connected = False
        self.messages_received = 0
        self.messages_dropped = 0
        self.publish_failures = 0

        self.client.will_set(self.topics.availability, UNAVAILABLE, qos=config.qos, retain=True)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self.event_bus.subscribe(EventType.DISPLAY_POWER_CHANGED, self._on_display_power_changed)
        self.event_bus.subscribe(EventType.ANNOUNCEMENT_STARTED, self._on_announcement_started)
        self.event_bus.subscribe(EventType.ANNOUNCEMENT_FINISHED, self._on_announcement_finished)

    # === Lifecycle ===

    async def connect(self) -> None:
        """Start connecting in the background; subscriptions follow in on_connect."""
        self.loop = asyncio.get_running_loop()
        log.info(f"Connecting to {self.config.broker}:{self.config.port}", client_id=self.config.client_id)

        self.client.connect_async(self.config.broker, self.config.port, keepalive=self.config.keepalive_s)
        self.client.loop_start()

    async def refresh(self) -> None:
        """Heartbeat: reconnect if the connection dropped, then publish availability."""
        if not self.connected:
            log.warn("Connection lost, reconnecting")
            try:
                await asyncio.to_thread(self.client.reconnect)
            except (OSError, ValueError) as e:
                log.warn(f"Reconnect failed: {e}")
                return

        self.publish(self.topics.availability, AVAILABLE, retain=True)

    async def disconnect(self) -> None:
        if self.loop is None:
            return
        self.publish(self.topics.availability, UNAVAILABLE, retain=True)
        self.client.disconnect()
        await asyncio.to_thread(self.client.loop_stop)
        self.connected = False
        self.loop = None
        log.info("Disconnected from broker")

    # === Publishing ===

    def publish(self, topic: str, payload: str, retain: bool = False) -> bool:
        """Fire-and-forget publish. Failures are logged, never raised."""
        try:
            info = self.client.publish(topic, payload, qos=self.config.qos, retain=retain)
        except (OSError, ValueError) as e:
            self.publish_failures += 1
            log.warn(f"Publish to {topic} failed: {e}")
            return False

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self.publish_failures += 1
            log.warn(f"Publish to {topic} failed: {mqtt.error_string(info.rc)}")
            return False

        log.debug(f"Published {payload!r} → {topic}")
        return True

    # === paho callbacks (network thread) ===

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code.is_failure:
            log.error(f"Broker refused connection: {reason_code}")
            return

        self.connected = True
        client.subscribe([
            (self.topics.announcement, self.config.qos),
            (self.topics.display_power, self.config.qos),
        ])
        self.publish(self.topics.availability, AVAILABLE, retain=True)
        log.info(
            "Connected to broker",
            subscribed=f"{self.topics.announcement}, {self.topics.display_power}",
        )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self.connected = False
        log.warn(f"Disconnected from broker: {reason_code}")

    def _on_message(self, client, userdata, message) -> None:
        self.handle_message(message.topic, message.payload)

    def handle_message(
        self,
        topic: str,
        payload: Union[bytes, str],
    ) -> Optional[concurrent.futures.Future]:
        """
        Parse one inbound message and hand it to the event loop.

        Returns:
            Future of the EventBus publish, or None when the message was dropped
        """
        self.messages_received += 1
        log.debug(f"Received on {topic}", payload=payload)

        try:
            event = self._parse(topic, payload)
        except MalformedPayloadError as e:
            self.messages_dropped += 1
            log.warn(f"Dropped malformed message on {topic}: {e.reason}", payload=e.payload)
            return None

        if event is None:
            return None

        if self.loop is None or self.loop.is_closed():
            self.messages_dropped += 1
            log.warn(f"Event loop not available, dropped message on {topic}")
            return None

        return asyncio.run_coroutine_threadsafe(self.event_bus.publish(event), self.loop)

    def _parse(self, topic: str, payload: Union[bytes, str]) -> Optional[Event]:
        if topic == self.topics.announcement:
            return AnnouncementReceivedEvent(Announcement.from_payload(payload), source=EventSource.MQTT)

        if topic == self.topics.display_power:
            return DisplayPowerCommandEvent(parse_power_state(payload), source=EventSource.MQTT)

        log.debug(f"Ignoring message on unhandled topic {topic}")
        return None

    # === EventBus handlers ===

    def _on_display_power_changed(self, event: DisplayPowerChangedEvent) -> None:
        self.publish(self.topics.display_status, format_power_state(event.enabled), retain=True)

    def _on_announcement_started(self, event: AnnouncementStartedEvent) -> None:
        self.publish(self.topics.status, STATUS_SHOWING)

    def _on_announcement_finished(self, event: AnnouncementFinishedEvent) -> None:
        self.publish(self.topics.status, STATUS_IDLE)
