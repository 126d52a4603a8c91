"""
Asset Manager

Loads the font and images the display needs at startup:
- font binary (validated by parsing it once)
- red / orange / blue full-panel images for the priority flash
- 16×16 weather icon set (day icons required, *_night variants optional)

A missing or unreadable asset raises AssetError (fatal at startup).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from PIL import Image, UnidentifiedImageError

from engine.frame_renderer import FontAsset
from models.config import AssetConfig
from models.enums import FlashColor
from models.errors import AssetError
from services.weather_service import NIGHT_SUFFIX, WEATHER_ICON_NAMES, WeatherIconSet
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

SRC_DIR = Path(__file__).parent.parent

PANEL_IMAGE_FILES = {
    FlashColor.RED: "redScreen.png",
    FlashColor.ORANGE: "orangeScreen.png",
    FlashColor.BLUE: "blueScreen.png",
}


@dataclass
class LoadedAssets:
    font: FontAsset
    panel_images: Dict[FlashColor, Image.Image]
    weather_icons: WeatherIconSet


def load_image(path: Path, mode: str = "RGBA") -> Image.Image:
    """
    Read an image file fully into memory.

    Raises:
        AssetError: file missing or not an image
    """
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert(mode)
    except FileNotFoundError:
        raise AssetError(f"Asset not found: {path}")
    except (UnidentifiedImageError, OSError) as e:
        raise AssetError(f"Cannot read image {path}: {e}")


class AssetManager:
    """
    Example:
        assets = AssetManager(config.assets).load(font_size_px=15)
        assets.font.face(15)
        assets.panel_images[FlashColor.RED]
        assets.weather_icons.resolve("clear", night=True)
    """

    def __init__(self, config: AssetConfig, base_dir: Path = SRC_DIR):
        self.config = config
        self.base_dir = Path(base_dir)

    def _path(self, p: Path) -> Path:
        p = Path(p)
        return p if p.is_absolute() else self.base_dir / p

    def load(self, font_size_px: int = 15) -> LoadedAssets:
        assets = LoadedAssets(
            font=self.load_font(font_size_px),
            panel_images=self.load_panel_images(),
            weather_icons=self.load_weather_icons(),
        )
        log.info(
            "Assets loaded",
            font=assets.font.name,
            panels=len(assets.panel_images),
            weather_icons=len(assets.weather_icons.names()),
        )
        return assets

    def load_font(self, font_size_px: int = 15) -> FontAsset:
        """
        Raises:
            AssetError: font file missing
            FontError: font file is not a parseable font
        """
        path = self._path(self.config.font_path)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise AssetError(f"Font not found: {path}")
        except OSError as e:
            raise AssetError(f"Cannot read font {path}: {e}")

        font = FontAsset(name=path.name, data=data)
        font.face(font_size_px)
        return font

    def load_panel_images(self) -> Dict[FlashColor, Image.Image]:
        images_dir = self._path(self.config.images_dir)
        return {
            color: load_image(images_dir / filename, mode="RGB")
            for color, filename in PANEL_IMAGE_FILES.items()
        }

    def load_weather_icons(self) -> WeatherIconSet:
        weather_dir = self._path(self.config.weather_dir)

        icons: Dict[str, Image.Image] = {}
        for name in WEATHER_ICON_NAMES:
            icons[name] = load_image(weather_dir / f"{name}.png")

            night_path = weather_dir / f"{name}{NIGHT_SUFFIX}.png"
            if night_path.exists():
                icons[name + NIGHT_SUFFIX] = load_image(night_path)

        return WeatherIconSet(icons)
