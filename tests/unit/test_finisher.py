"""
Unit tests for the topic upload artwork fix-up.
"""
import io

import pytest
from PIL import Image

from musicbox.exceptions import MetadataError
from musicbox.finisher import crop_embedded_cover, finish_topic_upload
from musicbox.tagging import open_container
from tests.helpers import create_mp3, make_image, read_id3


def _size(data: bytes):
    return Image.open(io.BytesIO(data)).size


class TestCropEmbeddedCover:
    """Test cropping through an open container."""

    def test_wide_cover_cropped(self, settings, cache):
        path = create_mp3(settings.music_dir / "Song.mp3", cover=make_image((80, 45), "JPEG"))

        assert crop_embedded_cover(open_container(path), "Song", cache) is True

        apic = read_id3(path).getall("APIC")[0]
        assert apic.mime == "image/jpeg"
        assert _size(apic.data) == (45, 45)
        assert cache.path_for("Song").read_bytes() == apic.data

    def test_png_cover_cropped_to_jpeg(self, settings, cache, png_bytes):
        path = create_mp3(settings.music_dir / "Song.mp3", cover=png_bytes, mime="image/png")

        assert crop_embedded_cover(open_container(path), "Song", cache) is True

        apic = read_id3(path).getall("APIC")[0]
        assert apic.mime == "image/jpeg"
        assert _size(apic.data) == (20, 20)

    def test_square_cover_left_alone(self, settings, cache, mocker):
        path = create_mp3(settings.music_dir / "Song.mp3", cover=make_image((30, 30), "JPEG"))
        container = open_container(path)
        save = mocker.spy(container, "save")

        assert crop_embedded_cover(container, "Song", cache) is False

        save.assert_not_called()
        assert not cache.exists("Song")

    def test_missing_cover(self, settings, cache):
        path = create_mp3(settings.music_dir / "Song.mp3", title="Song")

        with pytest.raises(MetadataError, match="No embedded cover"):
            crop_embedded_cover(open_container(path), "Song", cache)


class TestFinishTopicUpload:
    """Test the post-download step."""

    def test_returns_cache_url(self, settings, cache):
        path = create_mp3(settings.music_dir / "Numb.mp3", cover=make_image((64, 36), "JPEG"))

        assert finish_topic_upload(path, "Numb", cache) == "/img/Numb.jpeg"
        assert cache.exists("Numb")

    def test_square_cover_is_cached(self, settings, cache):
        path = create_mp3(settings.music_dir / "Numb.mp3", cover=make_image((36, 36), "JPEG"))

        assert finish_topic_upload(path, "Numb", cache) == "/img/Numb.jpeg"
        assert cache.path_for("Numb").read_bytes() == open_container(path).cover.data

    def test_square_png_cover_is_normalized_and_cached(self, settings, cache, square_png_bytes):
        path = create_mp3(settings.music_dir / "Numb.mp3", cover=square_png_bytes, mime="image/png")

        finish_topic_upload(path, "Numb", cache)

        apic = read_id3(path).getall("APIC")[0]
        assert apic.mime == "image/jpeg"
        assert cache.path_for("Numb").read_bytes() == apic.data
