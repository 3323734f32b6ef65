"""
Unit tests for tag container access.
"""
import pytest
from unittest.mock import MagicMock, patch

from mutagen.mp4 import MP4Cover

from musicbox.exceptions import MetadataError, TagReadError
from musicbox.models import CoverImage, ImageFormat
from musicbox.tagging import ContainerKind, Id3Container, Mp4Container, open_container
from tests.helpers import create_mp3, read_id3, write_mpeg_audio


class TestContainerKind:
    """Test container kind selection."""

    @pytest.mark.parametrize(
        "filename,kind",
        [
            ("Song.mp3", ContainerKind.MP3),
            ("Song.MP3", ContainerKind.MP3),
            ("Song.m4a", ContainerKind.MP4),
            ("Song.mp4", ContainerKind.MP4),
            ("No Extension", ContainerKind.MP3),
            ("Song.flac", None),
            ("cover.jpeg", None),
        ],
    )
    def test_from_filename(self, filename, kind):
        assert ContainerKind.from_filename(filename) is kind


class TestId3Container:
    """Test ID3 tags with real files."""

    def test_read_fields(self, tmp_test_dir, jpeg_bytes):
        path = create_mp3(tmp_test_dir / "YYZ.mp3", title="YYZ", artist="Rush", cover=jpeg_bytes)
        container = open_container(path)

        assert isinstance(container, Id3Container)
        assert container.title == "YYZ"
        assert container.artist == "Rush"
        assert container.cover == CoverImage(jpeg_bytes, ImageFormat.JPEG)

    def test_missing_fields(self, tmp_test_dir):
        path = create_mp3(tmp_test_dir / "Empty.mp3")
        container = open_container(path)
        assert container.title is None
        assert container.artist is None
        assert container.cover is None

    def test_untagged_mpeg_audio_opens_empty(self, tmp_test_dir):
        path = write_mpeg_audio(tmp_test_dir / "raw.mp3")
        container = open_container(path)
        assert container.title is None
        assert container.cover is None

        container.set_title("Raw")
        container.save()

        assert read_id3(path)["TIT2"].text == ["Raw"]
        assert open_container(path).title == "Raw"

    @pytest.mark.parametrize(
        "payload",
        [
            b"no tag here",
            b"\x00\x00\x00\x18ftypM4A \x00\x00\x02\x00M4A isommp42" + bytes(64),
        ],
    )
    def test_non_mpeg_file_raises_tag_read_error(self, tmp_test_dir, payload):
        path = tmp_test_dir / "Garbage.mp3"
        path.write_bytes(payload)

        with pytest.raises(TagReadError, match="Failed to read tag"):
            open_container(path)

        assert path.read_bytes() == payload

    def test_write_and_read_back(self, tmp_test_dir, png_bytes):
        path = create_mp3(tmp_test_dir / "Old.mp3", title="Old", artist="Someone")
        container = open_container(path)
        container.set_title("New")
        container.set_artist("Other")
        container.set_cover(CoverImage(png_bytes, ImageFormat.PNG))
        container.save()

        tags = read_id3(path)
        assert tags["TIT2"].text == ["New"]
        assert tags["TPE1"].text == ["Other"]
        pictures = tags.getall("APIC")
        assert len(pictures) == 1
        assert pictures[0].mime == "image/png"
        assert pictures[0].data == png_bytes

    def test_set_cover_replaces_existing(self, tmp_test_dir, jpeg_bytes, png_bytes):
        path = create_mp3(tmp_test_dir / "A.mp3", cover=png_bytes, mime="image/png")
        container = open_container(path)
        container.set_cover(CoverImage(jpeg_bytes, ImageFormat.JPEG))
        container.save()

        assert open_container(path).cover == CoverImage(jpeg_bytes, ImageFormat.JPEG)

    def test_unknown_cover_mime(self, tmp_test_dir, png_bytes):
        path = create_mp3(tmp_test_dir / "A.mp3", cover=png_bytes, mime="image/webp")
        cover = open_container(path).cover
        assert cover.data == png_bytes
        assert cover.format is None

    def test_missing_file_raises_tag_read_error(self, tmp_test_dir):
        with pytest.raises(TagReadError, match="Failed to read tag"):
            open_container(tmp_test_dir / "missing.mp3")

    def test_save_failure_raises_metadata_error(self, tmp_test_dir):
        path = create_mp3(tmp_test_dir / "A.mp3", title="A")
        container = open_container(path)
        path.unlink()
        path.mkdir()
        container.set_title("B")
        with pytest.raises(MetadataError, match="Failed to write tag"):
            container.save()


class TestMp4Container:
    """Test MP4 atoms with mutagen mocked."""

    @pytest.fixture
    def mp4_file(self):
        mp4 = MagicMock()
        mp4.tags = {}
        with patch("musicbox.tagging.MP4", return_value=mp4) as mp4_class:
            yield mp4, mp4_class

    def test_read_fields(self, tmp_test_dir, mp4_file, png_bytes):
        mp4, _ = mp4_file
        mp4.tags.update(
            {
                "\xa9nam": ["Crawling"],
                "\xa9ART": ["Linkin Park"],
                "covr": [MP4Cover(png_bytes, imageformat=MP4Cover.FORMAT_PNG)],
            }
        )
        container = open_container(tmp_test_dir / "Crawling.m4a")

        assert isinstance(container, Mp4Container)
        assert container.title == "Crawling"
        assert container.artist == "Linkin Park"
        assert container.cover == CoverImage(png_bytes, ImageFormat.PNG)

    def test_adds_missing_tags(self, tmp_test_dir, mp4_file):
        mp4, _ = mp4_file
        mp4.tags = None

        def add_tags():
            mp4.tags = {}

        mp4.add_tags.side_effect = add_tags
        container = open_container(tmp_test_dir / "a.m4a")
        assert container.cover is None
        mp4.add_tags.assert_called_once()

    def test_write_fields(self, tmp_test_dir, mp4_file, jpeg_bytes):
        mp4, _ = mp4_file
        container = open_container(tmp_test_dir / "a.mp4")
        container.set_title("T")
        container.set_artist("A")
        container.set_cover(CoverImage(jpeg_bytes, ImageFormat.JPEG))
        container.save()

        assert mp4.tags["\xa9nam"] == ["T"]
        assert mp4.tags["\xa9ART"] == ["A"]
        assert mp4.tags["covr"][0].imageformat == MP4Cover.FORMAT_JPEG
        assert bytes(mp4.tags["covr"][0]) == jpeg_bytes
        mp4.save.assert_called_once()

    def test_rejects_unsupported_cover_format(self, tmp_test_dir, mp4_file):
        container = open_container(tmp_test_dir / "a.m4a")
        with pytest.raises(MetadataError, match="JPEG or PNG"):
            container.set_cover(CoverImage(b"GIF89a", ImageFormat.GIF))

    def test_id3_file_opened_as_mp4_fails(self, tmp_test_dir):
        """A file of the wrong container kind is a tag read error."""
        path = create_mp3(tmp_test_dir / "wrong.mp3", title="x")
        with pytest.raises(TagReadError):
            open_container(path, ContainerKind.MP4)


def test_unrecognized_extension_raises(tmp_test_dir):
    path = tmp_test_dir / "a.flac"
    path.write_bytes(b"fLaC")
    with pytest.raises(TagReadError, match="Unrecognized format"):
        open_container(path)
