"""
Display on/off control payload parsing
"""

from typing import Union

from models.errors import MalformedPayloadError

ON_SENTINELS = {"on", "1", "true"}
OFF_SENTINELS = {"off", "0", "false"}


def parse_power_state(payload: Union[bytes, str]) -> bool:
    """
    Parse a display-power sentinel (ON/OFF, 1/0, true/false; case-insensitive).

    Returns:
        True for on, False for off

    Raises:
        MalformedPayloadError: anything else
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedPayloadError("Power payload is not valid UTF-8", payload)

    if not isinstance(payload, str):
        raise MalformedPayloadError(f"Invalid power payload type: {type(payload).__name__}", payload)

    value = payload.strip().lower()
    if value in ON_SENTINELS:
        return True
    if value in OFF_SENTINELS:
        return False
    raise MalformedPayloadError(f"Unknown power state: {payload!r}", payload)


def format_power_state(enabled: bool) -> str:
    return "ON" if enabled else "OFF"
