"""
Tag container access using mutagen.

Two container kinds are supported: ID3 for mp3 files and MP4 atoms for
mp4/m4a files. The kind is chosen once from the file extension.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from mutagen import MutagenError
from mutagen.id3 import APIC, TIT2, TPE1
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4, MP4Cover

from musicbox.exceptions import MetadataError, TagReadError
from musicbox.models import CoverImage, ImageFormat
from musicbox.utils import split_filename

logger = logging.getLogger(__name__)

# APIC picture type for the front cover
FRONT_COVER = 3


class ContainerKind(Enum):
    """Tag container families."""

    MP3 = "mp3"
    MP4 = "mp4"

    @classmethod
    def from_extension(cls, ext: str) -> Optional["ContainerKind"]:
        ext = ext.lower()
        if ext == "mp3":
            return cls.MP3
        if ext in ("mp4", "m4a"):
            return cls.MP4
        return None

    @classmethod
    def from_filename(cls, filename: str) -> Optional["ContainerKind"]:
        """Container kind for a filename, or None if unrecognized."""
        return cls.from_extension(split_filename(filename)[1])


class TagContainer:
    """Pending tag state of one audio file."""

    kind: ContainerKind

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def title(self) -> Optional[str]:
        raise NotImplementedError

    @property
    def artist(self) -> Optional[str]:
        raise NotImplementedError

    @property
    def cover(self) -> Optional[CoverImage]:
        raise NotImplementedError

    def set_title(self, title: str) -> None:
        raise NotImplementedError

    def set_artist(self, artist: str) -> None:
        raise NotImplementedError

    def set_cover(self, cover: CoverImage) -> None:
        raise NotImplementedError

    def save(self) -> None:
        """Write pending changes back to the same path."""
        raise NotImplementedError


class Id3Container(TagContainer):
    """ID3v2 tags of an mp3 file."""

    kind = ContainerKind.MP3

    def __init__(self, path: Path):
        super().__init__(path)
        try:
            self._file = MP3(str(self.path))
        except (MutagenError, OSError) as e:
            raise TagReadError(f"Failed to read tag ({self.path.name}): {e}") from e
        if self._file.tags is None:
            # MPEG audio without an ID3 header
            self._file.add_tags()
        self._tags = self._file.tags

    def _text(self, frame_id: str) -> Optional[str]:
        frame = self._tags.get(frame_id)
        if frame is None or not frame.text:
            return None
        return ", ".join(str(t) for t in frame.text)

    @property
    def title(self) -> Optional[str]:
        return self._text("TIT2")

    @property
    def artist(self) -> Optional[str]:
        return self._text("TPE1")

    @property
    def cover(self) -> Optional[CoverImage]:
        pictures = self._tags.getall("APIC")
        if not pictures:
            return None
        # Prefer the front cover
        picture = next((p for p in pictures if p.type == FRONT_COVER), pictures[0])
        try:
            fmt = ImageFormat.from_mime(picture.mime)
        except ValueError:
            logger.warning(f"Unknown cover type {picture.mime!r} in {self.path.name}")
            fmt = None
        return CoverImage(data=picture.data, format=fmt)

    def set_title(self, title: str) -> None:
        self._tags.setall("TIT2", [TIT2(encoding=3, text=title)])

    def set_artist(self, artist: str) -> None:
        self._tags.setall("TPE1", [TPE1(encoding=3, text=artist)])

    def set_cover(self, cover: CoverImage) -> None:
        fmt = cover.format or ImageFormat.JPEG
        self._tags.delall("APIC")
        self._tags.add(
            APIC(
                encoding=3,
                mime=fmt.mime,
                type=FRONT_COVER,
                desc="Cover",
                data=cover.data,
            )
        )

    def save(self) -> None:
        try:
            self._tags.save(str(self.path), v2_version=3)
        except (MutagenError, OSError) as e:
            raise MetadataError(f"Failed to write tag ({self.path.name}): {e}") from e


class Mp4Container(TagContainer):
    """iTunes-style atoms of an mp4/m4a file."""

    kind = ContainerKind.MP4

    _FORMATS = {
        MP4Cover.FORMAT_JPEG: ImageFormat.JPEG,
        MP4Cover.FORMAT_PNG: ImageFormat.PNG,
    }

    def __init__(self, path: Path):
        super().__init__(path)
        try:
            self._file = MP4(str(self.path))
        except (MutagenError, OSError) as e:
            raise TagReadError(f"Failed to read tag ({self.path.name}): {e}") from e
        if self._file.tags is None:
            self._file.add_tags()

    def _text(self, key: str) -> Optional[str]:
        values = self._file.tags.get(key)
        if not values:
            return None
        return ", ".join(str(v) for v in values)

    @property
    def title(self) -> Optional[str]:
        return self._text("\xa9nam")

    @property
    def artist(self) -> Optional[str]:
        return self._text("\xa9ART")

    @property
    def cover(self) -> Optional[CoverImage]:
        covers = self._file.tags.get("covr")
        if not covers:
            return None
        cover = covers[0]
        return CoverImage(data=bytes(cover), format=self._FORMATS.get(cover.imageformat))

    def set_title(self, title: str) -> None:
        self._file.tags["\xa9nam"] = [title]

    def set_artist(self, artist: str) -> None:
        self._file.tags["\xa9ART"] = [artist]

    def set_cover(self, cover: CoverImage) -> None:
        fmt = cover.format or ImageFormat.JPEG
        if fmt is ImageFormat.JPEG:
            imageformat = MP4Cover.FORMAT_JPEG
        elif fmt is ImageFormat.PNG:
            imageformat = MP4Cover.FORMAT_PNG
        else:
            raise MetadataError(f"MP4 cover art must be JPEG or PNG, got {fmt.mime}")
        self._file.tags["covr"] = [MP4Cover(cover.data, imageformat=imageformat)]

    def save(self) -> None:
        try:
            self._file.save()
        except (MutagenError, OSError) as e:
            raise MetadataError(f"Failed to write tag ({self.path.name}): {e}") from e


def open_container(path: Path, kind: Optional[ContainerKind] = None) -> TagContainer:
    """
    Open the tag container of an audio file.

    Args:
        path: Path to audio file
        kind: Container kind, derived from the extension when omitted

    Returns:
        TagContainer for the file

    Raises:
        TagReadError: If the kind is unrecognized or the file cannot be read
    """
    path = Path(path)
    if kind is None:
        kind = ContainerKind.from_filename(path.name)
        if kind is None:
            raise TagReadError(f"Unrecognized format: {path.name}")
    if kind is ContainerKind.MP3:
        return Id3Container(path)
    return Mp4Container(path)
