"""
Blank-frame detection (scroll termination signal)
"""

from typing import Union

from PIL import Image

from models.frame import RenderedFrame

# Scrolling may only stop once the offset reaches this many columns
DEFAULT_MIN_SCROLL_OFFSET = 17


def is_fully_black(frame: Union[RenderedFrame, Image.Image]) -> bool:
    """True iff every pixel has R = G = B = 0 (alpha ignored)."""
    if isinstance(frame, Image.Image):
        frame = frame.convert("RGB")
        return frame.getbbox() is None

    return all(r == 0 and g == 0 and b == 0 for r, g, b in frame.pixels)


def scroll_finished(
    offset: int,
    frame: RenderedFrame,
    min_offset: int = DEFAULT_MIN_SCROLL_OFFSET,
) -> bool:
    """
    Scroll termination test.

    Short strings render blank before the intended scroll distance, so a blank
    frame only ends the scroll once the offset has reached min_offset.
    """
    return offset >= min_offset and is_fully_black(frame)
