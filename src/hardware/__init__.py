"""
Hardware Layer

Low-level device access only:

- 16×16 display sinks (Unicorn HAT HD over SPI, in-memory virtual panel)
- Display driver selection
"""
from .display import IDisplay, create_display

__all__ = [
    "IDisplay",
    "create_display",
]
