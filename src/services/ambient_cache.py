"""
AmbientContentCache - last successfully fetched ambient (weather) image

Owned by the RefreshScheduler (only writer), read by Ambient Presenters.
A failed fetch never touches the cache: readers always see either the last
good image or the initial absent state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.AMBIENT)


@dataclass(frozen=True)
class AmbientEntry:
    """Complete cache entry, replaced atomically"""
    image: Image.Image
    fetched_at: float
    description: str = ""


class AmbientContentCache:

    def __init__(self):
        self._entry: Optional[AmbientEntry] = None

    def store(self, image: Image.Image, description: str = "", fetched_at: Optional[float] = None) -> AmbientEntry:
        """Replace the cached image. Only called after a successful fetch."""
        if image is None:
            raise ValueError("Refusing to store an empty ambient image")

        entry = AmbientEntry(
            image=image.copy(),
            fetched_at=fetched_at if fetched_at is not None else time.time(),
            description=description,
        )
        self._entry = entry
        log.debug("Ambient cache updated", description=description or "-")
        return entry

    @property
    def entry(self) -> Optional[AmbientEntry]:
        return self._entry

    @property
    def image(self) -> Optional[Image.Image]:
        entry = self._entry
        return entry.image if entry else None

    @property
    def fetched_at(self) -> Optional[float]:
        entry = self._entry
        return entry.fetched_at if entry else None

    def is_present(self) -> bool:
        return self._entry is not None
