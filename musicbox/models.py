"""
Data models for musicbox.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from musicbox.exceptions import InputError

UNKNOWN_ARTIST = "Unknown"


class ImageFormat(Enum):
    """Image formats that may be embedded as cover art."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    BMP = "image/bmp"
    GIF = "image/gif"
    TIFF = "image/tiff"

    @property
    def mime(self) -> str:
        return self.value

    @property
    def pil_name(self) -> str:
        """Format name as understood by Pillow."""
        return self.name

    @classmethod
    def from_mime(cls, mime: Optional[str]) -> "ImageFormat":
        """
        Look up a format by MIME type.

        Raises:
            ValueError: If the MIME type is not a supported image format
        """
        normalized = (mime or "").split(";")[0].strip().lower()
        if normalized == "image/jpg":
            normalized = "image/jpeg"
        for fmt in cls:
            if fmt.value == normalized:
                return fmt
        raise ValueError(f"Unsupported image type: {mime}")


@dataclass
class CoverImage:
    """Cover art extracted from (or destined for) a tag container."""

    data: bytes
    format: Optional[ImageFormat] = None


@dataclass(eq=False)
class Track:
    """Track as exposed to clients. Two tracks are equal when their filenames are."""

    filename: str
    title: str
    artist: str
    artists: Optional[List[str]] = None
    thumbnail: Optional[str] = None
    duration: Optional[int] = None
    artist_thumbnail: Optional[str] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self.filename == other.filename

    def __hash__(self) -> int:
        return hash(self.filename)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        """
        Build a Track from a client-supplied JSON object.

        Raises:
            InputError: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise InputError("Track must be a JSON object")
        for key in ("filename", "title", "artist"):
            if not isinstance(data.get(key), str):
                raise InputError(f"Track field '{key}' must be a string")
        artists = data.get("artists")
        duration = data.get("duration")
        if artists is not None and not isinstance(artists, list):
            raise InputError("Track field 'artists' must be a list")
        if duration is not None and not isinstance(duration, (int, float)):
            raise InputError("Track field 'duration' must be a number")
        return cls(
            filename=data["filename"],
            title=data["title"],
            artist=data["artist"],
            artists=list(artists) if artists is not None else None,
            thumbnail=data.get("thumbnail"),
            duration=int(duration) if duration is not None else None,
            artist_thumbnail=data.get("artist_thumbnail"),
        )


class RawAcquisitionResult(BaseModel):
    """Structured result printed by yt-dlp (only the fields we consume)."""

    title: str
    description: Optional[str] = None
    thumbnail: str
    duration: float
    artist: Optional[str] = None
    uploader: Optional[str] = None
    channel: Optional[str] = None


@dataclass
class DownloadSummary:
    """Result of a successful download."""

    title: str
    artist: str
    thumbnail: str
    duration: float
    filename: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FileListing:
    """Response of the file listing operation."""

    recently_played: List[Track] = field(default_factory=list)
    files: List[Track] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recently_played": [t.to_dict() for t in self.recently_played],
            "files": [t.to_dict() for t in self.files],
        }
