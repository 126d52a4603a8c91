"""
Application error hierarchy

Fatal errors (configuration, assets) abort startup.
Transient errors (fetch, render, bus) are logged and the cycle is abandoned.
Malformed input is logged and discarded.
"""

from typing import Optional


class SignageError(Exception):
    """Base class for all application errors"""


# === Fatal (startup) ===

class ConfigError(SignageError):
    """Configuration or credentials file missing, unreadable or invalid"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)


class AssetError(SignageError):
    """Required bundled asset (font, panel image, weather icon) missing or unreadable"""


class FontError(AssetError):
    """Font binary cannot be parsed"""


# === Transient ===

class RenderError(SignageError):
    """A single frame could not be produced"""


class WeatherFetchError(SignageError):
    """Ambient data source request failed or returned unusable data"""


class BusError(SignageError):
    """Message bus publish/subscribe failure"""


# === Malformed input ===

class MalformedPayloadError(SignageError):
    """Inbound command payload cannot be parsed"""

    def __init__(self, reason: str, payload: object = None):
        self.reason = reason
        self.payload = payload
        super().__init__(reason)
