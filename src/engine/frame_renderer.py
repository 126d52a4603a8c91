"""
Frame Renderer - text, solid-colour and ambient frames for the 16×16 panel

Pure functions that rasterize into a black panel-sized canvas and rotate the
result to the physical mounting orientation.

Rotation is configurable per content type:
  TEXT    90°  (scroll direction follows the mounted panel)
  FLASH   90°
  AMBIENT 180° (icons are pre-oriented for upright viewing)
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from PIL import Image, ImageDraw, ImageFont

from models.config import DisplayConfig, TimingConfig
from models.enums import ContentType
from models.errors import FontError, RenderError
from models.frame import BLACK, PANEL_SIZE, RenderedFrame
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RENDER)

TEXT_COLOR = (255, 255, 255)

_TRANSPOSE = {
    90: Image.Transpose.ROTATE_90,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_270,
}


@dataclass(eq=False)
class FontAsset:
    """
    Font binary plus a per-size cache of parsed faces.

    Example:
        font = FontAsset(name="UbuntuMono-Regular.ttf", data=ttf_bytes)
        face = font.face(15)
    """
    name: str
    data: bytes
    _faces: Dict[int, ImageFont.FreeTypeFont] = field(default_factory=dict, repr=False)

    def face(self, size_px: int) -> ImageFont.FreeTypeFont:
        """
        Parse the font at the given pixel size.

        Raises:
            FontError: font binary is malformed
        """
        cached = self._faces.get(size_px)
        if cached is not None:
            return cached

        try:
            face = ImageFont.truetype(io.BytesIO(self.data), size_px)
        except (OSError, ValueError) as e:
            raise FontError(f"Cannot parse font {self.name}: {e}") from e

        self._faces[size_px] = face
        return face


# === Geometry helpers ===

def rotate(image: Image.Image, degrees: int) -> Image.Image:
    """Rotate counter-clockwise by a multiple of 90 degrees."""
    degrees = degrees % 360
    if degrees == 0:
        return image
    transpose = _TRANSPOSE.get(degrees)
    if transpose is None:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
    return image.transpose(transpose)


def fit_to_panel(image: Image.Image) -> Image.Image:
    """
    Return an RGB panel-sized copy of the image.

    Larger images are scaled down preserving aspect ratio and centred on black;
    transparent areas become black.
    """
    if image.size == PANEL_SIZE and image.mode == "RGB":
        return image

    source = image.convert("RGBA")
    if source.size != PANEL_SIZE:
        source = source.copy()
        source.thumbnail(PANEL_SIZE)

    canvas = Image.new("RGB", PANEL_SIZE, BLACK)
    offset = ((PANEL_SIZE[0] - source.width) // 2, (PANEL_SIZE[1] - source.height) // 2)
    canvas.paste(source, offset, source)
    return canvas


# === Pure render functions ===

def render_text(
    text: str,
    font: FontAsset,
    scroll_offset: int,
    font_size_px: int = 15,
    rotation: int = 90,
    baseline_y: int = 12,
) -> RenderedFrame:
    """
    Rasterize text shifted left by scroll_offset pixels.

    The text is anchored at its left baseline on (-scroll_offset, baseline_y),
    so offset -16 places it just off the right edge and growing offsets move it
    leftward until it leaves the canvas.

    Raises:
        FontError: font cannot be parsed (fatal configuration problem)
        RenderError: rasterization failed
    """
    face = font.face(font_size_px)

    try:
        canvas = Image.new("RGB", PANEL_SIZE, BLACK)
        draw = ImageDraw.Draw(canvas)
        draw.text((-scroll_offset, baseline_y), text, font=face, fill=TEXT_COLOR, anchor="ls")
        return RenderedFrame.from_image(rotate(canvas, rotation))
    except (OSError, ValueError) as e:
        raise RenderError(f"Text render failed at offset {scroll_offset}: {e}") from e


def render_solid_color(color_image: Image.Image, rotation: int = 90) -> RenderedFrame:
    """Rotate a pre-rendered full-panel image (priority flash)."""
    try:
        return RenderedFrame.from_image(rotate(fit_to_panel(color_image), rotation))
    except (OSError, ValueError) as e:
        raise RenderError(f"Solid colour render failed: {e}") from e


def render_ambient(ambient_image: Image.Image, rotation: int = 180) -> RenderedFrame:
    """Rotate the cached ambient (weather) image for display."""
    try:
        return RenderedFrame.from_image(rotate(fit_to_panel(ambient_image), rotation))
    except (OSError, ValueError) as e:
        raise RenderError(f"Ambient render failed: {e}") from e


class FrameRenderer:
    """
    Frame renderer bound to the loaded font and configured rotations.

    Used by the Orchestrator and the Ambient Presenter so that both apply the
    same mounting orientation.
    """

    def __init__(
        self,
        font: FontAsset,
        display_config: Optional[DisplayConfig] = None,
        timing: Optional[TimingConfig] = None,
    ):
        self.font = font
        self.display_config = display_config or DisplayConfig()
        self.timing = timing or TimingConfig()

    def text(self, text: str, scroll_offset: int) -> RenderedFrame:
        return render_text(
            text,
            self.font,
            scroll_offset,
            font_size_px=self.timing.font_size_px,
            rotation=self.display_config.rotation_for(ContentType.TEXT),
            baseline_y=self.timing.text_baseline_y,
        )

    def text_width(self, text: str) -> int:
        """Advance width of text in pixels at the configured font size"""
        face = self.font.face(self.timing.font_size_px)
        return math.ceil(face.getlength(text))

    def solid_color(self, color_image: Image.Image) -> RenderedFrame:
        return render_solid_color(color_image, self.display_config.rotation_for(ContentType.FLASH))

    def ambient(self, ambient_image: Image.Image) -> RenderedFrame:
        return render_ambient(ambient_image, self.display_config.rotation_for(ContentType.AMBIENT))
