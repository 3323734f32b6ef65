"""
Core modules for the musicbox media library server.
"""

from musicbox.artwork import ArtworkCache
from musicbox.audio_provider import AudioProvider
from musicbox.downloader import Downloader
from musicbox.exceptions import (
    ConfigError,
    DownloadError,
    ImageError,
    InputError,
    MetadataError,
    MusicBoxError,
    NotFoundError,
    ParseError,
    TagReadError,
)
from musicbox.library import Library
from musicbox.models import CoverImage, DownloadSummary, ImageFormat, Track
from musicbox.tagging import ContainerKind, open_container

__all__ = [
    "ArtworkCache",
    "AudioProvider",
    "Downloader",
    "Library",
    "Track",
    "CoverImage",
    "ImageFormat",
    "DownloadSummary",
    "ContainerKind",
    "open_container",
    "MusicBoxError",
    "InputError",
    "NotFoundError",
    "DownloadError",
    "ParseError",
    "MetadataError",
    "TagReadError",
    "ImageError",
    "ConfigError",
]
