from PIL import Image

from tools.generate_assets import PANEL_COLORS, WEATHER_ICONS, generate


def test_writes_all_images(tmp_path):
    written = generate(tmp_path)

    assert len(written) == len(PANEL_COLORS) + len(WEATHER_ICONS)
    assert (tmp_path / "fonts").is_dir()
    for path in written:
        with Image.open(path) as image:
            assert image.size == (16, 16)


def test_panel_colors(tmp_path):
    generate(tmp_path)

    with Image.open(tmp_path / "images" / "orangeScreen.png") as image:
        assert image.convert("RGB").getpixel((0, 15)) == (255, 110, 0)


def test_existing_files_kept_without_force(tmp_path):
    generate(tmp_path)
    marker = tmp_path / "images" / "redScreen.png"
    Image.new("RGB", (16, 16), (1, 2, 3)).save(marker)

    written = generate(tmp_path, force=False)

    assert written == []
    with Image.open(marker) as image:
        assert image.getpixel((0, 0)) == (1, 2, 3)


def test_weather_icons_not_empty(tmp_path):
    generate(tmp_path)

    for name in WEATHER_ICONS:
        with Image.open(tmp_path / "images" / "weather" / f"{name}.png") as image:
            assert image.getbbox() is not None, name
