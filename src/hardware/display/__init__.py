from hardware.display.display_interface import IDisplay
from hardware.display.display_factory import create_display

__all__ = ["IDisplay", "create_display"]
