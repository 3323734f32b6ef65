"""
Shared utility functions for musicbox.

Filename handling shared by the download, listing and edit paths.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from yt_dlp.utils import sanitize_filename

from musicbox.exceptions import InputError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "mp3"


def split_filename(filename: str) -> Tuple[str, str]:
    """
    Split a track filename into (title, extension) at the last dot.

    A filename without a dot is treated as an mp3 named after itself.
    """
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        return filename, DEFAULT_EXTENSION
    return stem, ext


def without_extension(filename: str) -> str:
    return split_filename(filename)[0]


def title_to_filename(title: str, ext: str = DEFAULT_EXTENSION) -> str:
    """
    Name of the file yt-dlp writes for a `%(title)s.%(ext)s` template.
    """
    return f"{sanitize_filename(title)}.{ext}"


def check_plain_name(name: str, what: str = "filename") -> str:
    """
    Reject names that would escape their store directory.

    Raises:
        InputError: If the name is empty or contains path components
    """
    if not name or name in (".", "..") or Path(name).name != name or "\\" in name:
        raise InputError(f"Invalid {what}: {name!r}")
    return name


def remove_quietly(path: Path) -> bool:
    """Remove a file, returning False if it did not exist."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug(f"Removed {path}")
    return True


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure root logging for an entry point.

    Args:
        log_level: Level name (DEBUG, INFO, ...)
        log_file: Optional file to log to in addition to stderr
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as e:
            logger.warning(f"Cannot write to log file {log_file}: {e}. File logging disabled.")
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )
