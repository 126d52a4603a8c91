"""
RenderedFrame - one full 16×16 panel image

Value type: immutable row-major tuple of (r, g, b) pixels.
Produced by the frame renderer, consumed by the display sink.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from PIL import Image

PANEL_WIDTH = 16
PANEL_HEIGHT = 16
PANEL_SIZE = (PANEL_WIDTH, PANEL_HEIGHT)

RGB = Tuple[int, int, int]
BLACK: RGB = (0, 0, 0)


@dataclass(frozen=True)
class RenderedFrame:
    """
    Fixed 16×16 grid of RGB pixel values.

    Example:
        frame = RenderedFrame.from_image(img)
        r, g, b = frame.get(0, 0)
        spi_payload = frame.to_bytes()
    """

    pixels: Tuple[RGB, ...]

    def __post_init__(self):
        if len(self.pixels) != PANEL_WIDTH * PANEL_HEIGHT:
            raise ValueError(
                f"RenderedFrame needs {PANEL_WIDTH * PANEL_HEIGHT} pixels, got {len(self.pixels)}"
            )

    # === Constructors ===

    @classmethod
    def blank(cls) -> "RenderedFrame":
        return cls(pixels=(BLACK,) * (PANEL_WIDTH * PANEL_HEIGHT))

    @classmethod
    def solid(cls, color: RGB) -> "RenderedFrame":
        return cls(pixels=(tuple(color),) * (PANEL_WIDTH * PANEL_HEIGHT))

    @classmethod
    def from_image(cls, image: Image.Image) -> "RenderedFrame":
        """
        Build a frame from a 16×16 PIL image (any mode, alpha dropped).

        Raises:
            ValueError: image is not panel-sized
        """
        if image.size != PANEL_SIZE:
            raise ValueError(f"Image size {image.size} does not match panel {PANEL_SIZE}")

        rgb = image if image.mode == "RGB" else image.convert("RGB")
        data = rgb.tobytes()
        return cls(pixels=tuple(zip(data[0::3], data[1::3], data[2::3])))

    # === Access ===

    def get(self, x: int, y: int) -> RGB:
        return self.pixels[y * PANEL_WIDTH + x]

    def rows(self) -> Iterator[Tuple[RGB, ...]]:
        for y in range(PANEL_HEIGHT):
            yield self.pixels[y * PANEL_WIDTH:(y + 1) * PANEL_WIDTH]

    def shifted(self, origin: Tuple[int, int]) -> "RenderedFrame":
        """Frame moved so its top-left corner sits at origin; uncovered pixels are black."""
        ox, oy = origin
        if ox == 0 and oy == 0:
            return self

        pixels = []
        for y in range(PANEL_HEIGHT):
            for x in range(PANEL_WIDTH):
                sx, sy = x - ox, y - oy
                if 0 <= sx < PANEL_WIDTH and 0 <= sy < PANEL_HEIGHT:
                    pixels.append(self.pixels[sy * PANEL_WIDTH + sx])
                else:
                    pixels.append(BLACK)
        return RenderedFrame(pixels=tuple(pixels))

    def to_image(self) -> Image.Image:
        image = Image.new("RGB", PANEL_SIZE)
        image.putdata(list(self.pixels))
        return image

    def to_bytes(self) -> bytes:
        """Row-major RGB bytes (768 bytes)"""
        return bytes(channel for pixel in self.pixels for channel in pixel)

    def lit_count(self) -> int:
        """Number of pixels with any non-zero channel"""
        return sum(1 for p in self.pixels if p[0] or p[1] or p[2])

    def __repr__(self) -> str:
        return f"RenderedFrame(lit={self.lit_count()})"
