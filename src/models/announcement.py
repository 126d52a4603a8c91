"""
Announcement model and inbound payload parsing
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
import time
from typing import Any, Mapping, Union

from models.enums import AnnouncementPriority, FlashColor
from models.errors import MalformedPayloadError


PRIORITY_FLASH_COLORS = {
    AnnouncementPriority.CRITICAL: FlashColor.RED,
    AnnouncementPriority.WARNING: FlashColor.ORANGE,
    AnnouncementPriority.INFO: FlashColor.BLUE,
}


def parse_priority(value: Any) -> AnnouncementPriority:
    """
    Parse a wire priority value.

    Accepts the canonical strings ("0.0" .. "3.0") and plain numbers
    (3, 3.0, "3"), which Home Assistant sends depending on the entity type.
    """
    if isinstance(value, bool):
        raise MalformedPayloadError(f"Invalid priority: {value!r}", value)

    if not isinstance(value, (int, float, str)):
        raise MalformedPayloadError(f"Invalid priority type: {type(value).__name__}", value)

    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # OverflowError: integer too large for a float
        raise MalformedPayloadError(f"Invalid priority: {_preview(value)}", value)
    key = f"{number:.1f}"

    try:
        return AnnouncementPriority(key)
    except ValueError:
        raise MalformedPayloadError(f"Unknown priority: {_preview(value)}", value)


def _preview(value: Any, limit: int = 40) -> str:
    text = repr(value) if not isinstance(value, int) or value.bit_length() < 128 else f"<{value.bit_length()}-bit int>"
    return text if len(text) <= limit else text[:limit] + "..."


@dataclass(frozen=True)
class Announcement:
    """
    Text message with an urgency priority destined for temporary display.

    Immutable; consumed exactly once by the Orchestrator.
    """
    text: str
    priority: AnnouncementPriority = AnnouncementPriority.NONE
    received_at: float = field(default_factory=time.time, compare=False)

    @property
    def flash_color(self):
        """Panel colour for the priority flash, None when no flash is needed"""
        return PRIORITY_FLASH_COLORS.get(self.priority)

    @classmethod
    def from_payload(cls, payload: Union[bytes, str, Mapping[str, Any]]) -> "Announcement":
        """
        Build an Announcement from an inbound control message.

        Payload shape: {"msg": "<text>", "priority": "0.0"|"1.0"|"2.0"|"3.0"}
        A missing priority means NONE.

        Raises:
            MalformedPayloadError: payload is not a JSON object with a string "msg"
        """
        data = payload
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError:
                raise MalformedPayloadError("Payload is not valid UTF-8", payload)

        if isinstance(payload, str):
            try:
                data = json.loads(payload)
            except ValueError as e:
                # JSONDecodeError, or an integer literal past the int digit limit
                raise MalformedPayloadError(f"Payload is not valid JSON: {str(e)[:80]}", payload)

        if not isinstance(data, Mapping):
            raise MalformedPayloadError("Payload is not a JSON object", payload)

        text = data.get("msg")
        if not isinstance(text, str):
            raise MalformedPayloadError("Field 'msg' missing or not a string", payload)

        priority = AnnouncementPriority.NONE
        if data.get("priority") is not None:
            try:
                priority = parse_priority(data["priority"])
            except MalformedPayloadError as e:
                raise MalformedPayloadError(e.reason, payload) from e

        return cls(text=text, priority=priority)

    def __str__(self) -> str:
        return f"Announcement({self.text!r}, {self.priority.name})"
