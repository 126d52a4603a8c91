import pytest

pytest.importorskip("spidev")

from hardware.display import unicorn_hd
from hardware.display.unicorn_hd import FRAME_BYTES, SOF, UnicornHDConfig, UnicornHDDisplay
from models.frame import RenderedFrame


class FakeSpi:
    def __init__(self):
        self.opened = None
        self.max_speed_hz = None
        self.transfers = []
        self.closed = False

    def open(self, bus, device):
        self.opened = (bus, device)

    def xfer2(self, data):
        self.transfers.append(list(data))

    def close(self):
        self.closed = True


@pytest.fixture
def spi(monkeypatch):
    fake = FakeSpi()
    monkeypatch.setattr(unicorn_hd.spidev, "SpiDev", lambda: fake)
    return fake


def test_opens_configured_device(spi):
    UnicornHDDisplay(UnicornHDConfig(bus=0, device=1, speed_hz=1_000_000))

    assert spi.opened == (0, 1)
    assert spi.max_speed_hz == 1_000_000


def test_draw_sends_one_frame(spi):
    display = UnicornHDDisplay(UnicornHDConfig(brightness=1.0))
    display.draw(RenderedFrame.solid((10, 20, 30)))

    assert len(spi.transfers) == 1
    payload = spi.transfers[0]
    assert payload[0] == SOF
    assert len(payload) == FRAME_BYTES + 1
    assert payload[1:4] == [10, 20, 30]


def test_brightness_scales_channels(spi):
    display = UnicornHDDisplay(UnicornHDConfig(brightness=0.5))
    display.draw(RenderedFrame.solid((200, 100, 0)))

    assert spi.transfers[0][1:4] == [100, 50, 0]


def test_halt_sends_black(spi):
    UnicornHDDisplay(UnicornHDConfig()).halt()

    assert spi.transfers[0][1:] == [0] * FRAME_BYTES


def test_close_blanks_once(spi):
    display = UnicornHDDisplay(UnicornHDConfig())
    display.close()
    display.close()
    display.draw(RenderedFrame.solid((255, 255, 255)))

    assert len(spi.transfers) == 1
    assert spi.closed
