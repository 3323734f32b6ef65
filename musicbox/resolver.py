"""
Parsing of yt-dlp results into track metadata.
"""

import logging
import re
from typing import List, Optional

from pydantic import ValidationError

from musicbox.exceptions import ParseError
from musicbox.models import UNKNOWN_ARTIST, DownloadSummary, RawAcquisitionResult

logger = logging.getLogger(__name__)

# Description prefix of auto-generated "Topic" channel uploads
TOPIC_MARKER = "Provided to YouTube by"

_ARTIST_SEPARATORS = re.compile(r"[&,]")


def parse_result(raw: bytes) -> RawAcquisitionResult:
    """
    Parse the JSON document printed by yt-dlp.

    Args:
        raw: stdout of a successful run

    Returns:
        RawAcquisitionResult

    Raises:
        ParseError: If the output is not a valid result document
    """
    try:
        return RawAcquisitionResult.model_validate_json(raw)
    except ValidationError as e:
        text = raw.decode("utf-8", errors="replace")
        logger.error(f"Failed to parse JSON: {e}\n{text}")
        raise ParseError("Failed to parse JSON") from e


def resolve_artist(
    artist: Optional[str],
    uploader: Optional[str] = None,
    channel: Optional[str] = None,
) -> str:
    """First present of artist, uploader and channel, else "Unknown"."""
    for candidate in (artist, uploader, channel):
        if candidate is not None:
            return candidate
    return UNKNOWN_ARTIST


def is_topic_upload(result: RawAcquisitionResult) -> bool:
    """Whether the result comes from an auto-generated "Topic" channel."""
    return bool(result.description) and result.description.startswith(TOPIC_MARKER)


def summarize(result: RawAcquisitionResult, filename: str, thumbnail: str) -> DownloadSummary:
    return DownloadSummary(
        title=result.title,
        artist=resolve_artist(result.artist, result.uploader, result.channel),
        thumbnail=thumbnail,
        duration=result.duration,
        filename=filename,
    )


def parse_duration(text: str) -> Optional[int]:
    """
    Parse a "minutes:seconds" duration into seconds.

    Anything other than exactly two numeric parts gives None.
    """
    parts = text.split(":")
    if len(parts) != 2 or not all(p.isdecimal() for p in parts):
        return None
    minutes, seconds = (int(p) for p in parts)
    return minutes * 60 + seconds


def split_artists(text: str) -> List[str]:
    """Split a combined artist string ("A & B, C") into names."""
    return [name.strip() for name in _ARTIST_SEPARATORS.split(text) if name.strip()]
