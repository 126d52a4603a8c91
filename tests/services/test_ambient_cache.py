import pytest
from PIL import Image

from services.ambient_cache import AmbientContentCache


def test_starts_empty():
    cache = AmbientContentCache()
    assert not cache.is_present()
    assert cache.image is None
    assert cache.fetched_at is None


def test_store_copies_image():
    cache = AmbientContentCache()
    image = Image.new("RGB", (16, 16), (0, 0, 255))
    cache.store(image, "overcast", fetched_at=100.0)

    image.putpixel((0, 0), (255, 0, 0))

    assert cache.image.getpixel((0, 0)) == (0, 0, 255)
    assert cache.fetched_at == 100.0
    assert cache.entry.description == "overcast"


def test_store_replaces_whole_entry():
    cache = AmbientContentCache()
    first = cache.store(Image.new("RGB", (16, 16)), "a")
    second = cache.store(Image.new("RGB", (16, 16)), "b")

    assert cache.entry is second
    assert first.description == "a"


def test_refuses_empty_image():
    with pytest.raises(ValueError):
        AmbientContentCache().store(None)
