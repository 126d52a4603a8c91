from hardware.display import create_display
from hardware.display.virtual_display import VirtualDisplay
from models.config import DisplayConfig
from models.enums import DisplayDriver
from runtime.runtime_info import RuntimeInfo


def test_virtual_driver():
    assert isinstance(create_display(DisplayConfig(driver=DisplayDriver.VIRTUAL)), VirtualDisplay)


def test_auto_falls_back_off_pi(monkeypatch):
    monkeypatch.setattr(RuntimeInfo, "is_raspberry_pi", classmethod(lambda cls: False))

    assert isinstance(create_display(DisplayConfig(driver=DisplayDriver.AUTO)), VirtualDisplay)


def test_auto_falls_back_when_panel_fails(monkeypatch):
    from hardware.display import display_factory

    def broken(config):
        raise OSError("no /dev/spidev0.0")

    monkeypatch.setattr(RuntimeInfo, "is_raspberry_pi", classmethod(lambda cls: True))
    monkeypatch.setattr(RuntimeInfo, "has_spidev", classmethod(lambda cls: True))
    monkeypatch.setattr(display_factory, "_create_unicorn", broken)

    assert isinstance(create_display(DisplayConfig()), VirtualDisplay)
