#!/usr/bin/env python3
"""
Asset Generator

Draws the bundled 16×16 images with Pillow:
- images/redScreen.png, orangeScreen.png, blueScreen.png (priority flash panels)
- images/weather/<name>.png and <name>_night.png (weather icons)

The font is not generated: copy UbuntuMono-Regular.ttf (or any TTF) to
src/assets/fonts/ or point assets.font_path at it.

Usage:
    From command line:
        python tools/generate_assets.py                 # writes into src/assets
        python tools/generate_assets.py --out /tmp/assets --force

    From Python:
        from tools.generate_assets import generate
        written = generate(Path("src/assets"))
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from PIL import Image, ImageDraw

SIZE = (16, 16)
RGBA = Tuple[int, int, int, int]

PANEL_COLORS: Dict[str, Tuple[int, int, int]] = {
    "redScreen.png": (255, 0, 0),
    "orangeScreen.png": (255, 110, 0),
    "blueScreen.png": (0, 40, 255),
}

SUN = (255, 200, 0, 255)
MOON = (200, 200, 160, 255)
CLOUD = (150, 150, 160, 255)
DARK_CLOUD = (90, 90, 100, 255)
RAIN = (0, 90, 255, 255)
DRIZZLE = (90, 160, 255, 255)
SNOW = (255, 255, 255, 255)
BOLT = (255, 230, 0, 255)
MIST = (120, 120, 120, 255)


def _canvas() -> Tuple[Image.Image, ImageDraw.ImageDraw]:
    image = Image.new("RGBA", SIZE, (0, 0, 0, 0))
    return image, ImageDraw.Draw(image)


# === Primitives ===

def _sun(draw: ImageDraw.ImageDraw, cx: int, cy: int, r: int, rays: bool = True) -> None:
    draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=SUN)
    if rays:
        reach = r + 2
        for dx, dy in ((0, -1), (0, 1), (-1, 0), (1, 0), (-1, -1), (1, 1), (-1, 1), (1, -1)):
            draw.point((cx + dx * reach, cy + dy * reach), fill=SUN)


def _moon(draw: ImageDraw.ImageDraw, cx: int, cy: int, r: int) -> None:
    draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=MOON)
    # Cut the crescent
    draw.ellipse((cx - r + 3, cy - r - 1, cx + r + 3, cy + r - 1), fill=(0, 0, 0, 0))


def _cloud(draw: ImageDraw.ImageDraw, x: int, y: int, color: RGBA = CLOUD) -> None:
    """Cloud roughly 12×6 with its top-left corner at (x, y)"""
    draw.ellipse((x + 2, y, x + 7, y + 5), fill=color)
    draw.ellipse((x + 5, y - 1, x + 11, y + 5), fill=color)
    draw.rectangle((x, y + 3, x + 12, y + 6), fill=color)


# === Icons ===

def clear() -> Image.Image:
    image, draw = _canvas()
    _sun(draw, 8, 8, 4)
    return image


def clear_night() -> Image.Image:
    image, draw = _canvas()
    _moon(draw, 7, 8, 5)
    return image


def partly_cloudy() -> Image.Image:
    image, draw = _canvas()
    _sun(draw, 5, 5, 3)
    _cloud(draw, 3, 8)
    return image


def partly_cloudy_night() -> Image.Image:
    image, draw = _canvas()
    _moon(draw, 5, 5, 4)
    _cloud(draw, 3, 8)
    return image


def cloudy() -> Image.Image:
    image, draw = _canvas()
    _cloud(draw, 0, 3, DARK_CLOUD)
    _cloud(draw, 3, 7)
    return image


def _precipitation(color: RGBA, drops: List[Tuple[int, int]], length: int, cloud_color: RGBA = CLOUD) -> Image.Image:
    image, draw = _canvas()
    _cloud(draw, 2, 2, cloud_color)
    for x, y in drops:
        draw.line((x, y, x, y + length - 1), fill=color)
    return image


def rain() -> Image.Image:
    return _precipitation(RAIN, [(4, 10), (7, 11), (10, 10), (13, 11)], length=3)


def drizzle() -> Image.Image:
    return _precipitation(DRIZZLE, [(4, 11), (7, 13), (10, 11), (13, 13)], length=1)


def snow() -> Image.Image:
    image, draw = _canvas()
    _cloud(draw, 2, 2)
    for x, y in ((4, 11), (8, 13), (12, 11), (6, 14), (10, 10)):
        draw.point((x, y), fill=SNOW)
    return image


def thunder() -> Image.Image:
    image, draw = _canvas()
    _cloud(draw, 2, 1, DARK_CLOUD)
    draw.line((9, 8, 7, 11), fill=BOLT)
    draw.line((7, 11, 10, 11), fill=BOLT)
    draw.line((10, 11, 8, 15), fill=BOLT)
    return image


def mist() -> Image.Image:
    image, draw = _canvas()
    for i, y in enumerate(range(3, 15, 3)):
        inset = 1 if i % 2 == 0 else 3
        draw.line((inset, y, 15 - inset, y), fill=MIST)
    return image


WEATHER_ICONS: Dict[str, Callable[[], Image.Image]] = {
    "thunder": thunder,
    "drizzle": drizzle,
    "rain": rain,
    "snow": snow,
    "mist": mist,
    "clear": clear,
    "clear_night": clear_night,
    "partly_cloudy": partly_cloudy,
    "partly_cloudy_night": partly_cloudy_night,
    "cloudy": cloudy,
}


def panel_image(color: Tuple[int, int, int]) -> Image.Image:
    return Image.new("RGB", SIZE, color)


def generate(out_dir: Path, force: bool = True) -> List[Path]:
    """
    Write all images below out_dir (images/ and images/weather/).

    Returns:
        Paths written (existing files are kept when force is False)
    """
    images_dir = out_dir / "images"
    weather_dir = images_dir / "weather"
    weather_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "fonts").mkdir(parents=True, exist_ok=True)

    targets: List[Tuple[Path, Callable[[], Image.Image]]] = []
    for filename, color in PANEL_COLORS.items():
        targets.append((images_dir / filename, lambda c=color: panel_image(c)))
    for name, draw_fn in WEATHER_ICONS.items():
        targets.append((weather_dir / f"{name}.png", draw_fn))

    written = []
    for path, make in targets:
        if path.exists() and not force:
            continue
        make().save(path, format="PNG")
        written.append(path)
    return written


def main() -> int:
    import argparse

    default_out = Path(__file__).resolve().parent.parent / "src" / "assets"

    parser = argparse.ArgumentParser(description="Generate panel and weather icon PNGs")
    parser.add_argument("--out", type=Path, default=default_out, help=f"Asset directory (default: {default_out})")
    parser.add_argument("--force", action="store_true", help="Overwrite existing files")
    args = parser.parse_args()

    written = generate(args.out, force=args.force)
    for path in written:
        print(f"  wrote {path}")
    print(f"{len(written)} file(s) written to {args.out}")

    font_dir = args.out / "fonts"
    if not any(font_dir.glob("*.ttf")):
        print(f"NOTE: no font in {font_dir} - copy UbuntuMono-Regular.ttf there before starting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
