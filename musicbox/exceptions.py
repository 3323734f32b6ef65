"""
Custom exceptions for musicbox.

Every error carries the HTTP status the API layer answers with.
"""


class MusicBoxError(Exception):
    """Base exception for all musicbox errors."""

    status = 500

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class InputError(MusicBoxError):
    """Invalid request input. Nothing was mutated."""

    status = 400


class NotFoundError(InputError):
    """Requested track or file does not exist."""

    status = 404


class DownloadError(MusicBoxError):
    """External acquisition tool failures (after retries)."""

    def __init__(self, message: str, status: int = 500, attempts: int = 0):
        super().__init__(message, status)
        self.attempts = attempts


class ParseError(MusicBoxError):
    """Malformed structured result from the acquisition tool."""


class MetadataError(MusicBoxError):
    """Tag container write errors."""


class TagReadError(MetadataError):
    """Tag container could not be opened (wrong kind or corrupt)."""


class ImageError(MusicBoxError):
    """Image decode/encode errors."""


class ConfigError(MusicBoxError):
    """Configuration errors."""
