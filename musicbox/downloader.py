"""
Main download orchestrator.
"""

import logging
import time
from pathlib import Path
from typing import Optional

from musicbox import resolver
from musicbox.artwork import ArtworkCache
from musicbox.audio_provider import AudioProvider
from musicbox.config import ServerSettings
from musicbox.exceptions import DownloadError, InputError
from musicbox.finisher import finish_topic_upload
from musicbox.locks import FileLocks
from musicbox.models import DownloadSummary
from musicbox.utils import check_plain_name, title_to_filename, without_extension

logger = logging.getLogger(__name__)


class Downloader:
    """Runs yt-dlp with bounded retry and turns its output into a track."""

    def __init__(
        self,
        settings: ServerSettings,
        audio: Optional[AudioProvider] = None,
        cache: Optional[ArtworkCache] = None,
        locks: Optional[FileLocks] = None,
    ):
        """
        Initialize with configuration.

        Args:
            settings: ServerSettings configuration object
            audio: yt-dlp runner (built from settings if omitted)
            cache: Artwork cache (built from settings if omitted)
            locks: Per-file tag locks shared with the library
        """
        self.settings = settings
        self.audio = audio or AudioProvider(
            settings.music_dir,
            settings.temp_dir,
            command=settings.ytdlp_command,
            audio_format=settings.audio_format,
        )
        self.cache = cache or ArtworkCache(settings.img_dir)
        self.locks = locks or FileLocks()

    def _run_with_retries(self, args, label: str, stderr_status: int) -> bytes:
        """
        Run yt-dlp until an attempt succeeds or retries are exhausted.

        An attempt fails when the process cannot be started or when it
        writes anything to stderr.

        Args:
            args: Full command line
            label: Log prefix
            stderr_status: Status of the terminal error when the last
                failure came from stderr output

        Returns:
            stdout of the successful attempt

        Raises:
            DownloadError: After the final failed attempt
        """
        max_retries = self.settings.max_retries
        last_error = None
        for attempt in range(1, max_retries + 1):
            try:
                proc = self.audio.run(args)
            except OSError as e:
                message = f"Failed to spawn and capture output: {e}"
                logger.error(f"{label}: {message}")
                last_error = DownloadError(message, status=500, attempts=attempt)
            else:
                if not proc.stderr:
                    return proc.stdout
                message = proc.stderr.decode("utf-8", errors="replace")
                logger.error(f"{label}: yt-dlp stderr: {message}")
                last_error = DownloadError(message, status=stderr_status, attempts=attempt)

            if attempt < max_retries:
                wait_time = self.settings.retry_delay * 2 ** (attempt - 1)
                logger.warning(
                    f"{label}: attempt {attempt}/{max_retries} failed. Retrying in {wait_time}s..."
                )
                if wait_time:
                    time.sleep(wait_time)

        logger.error(f"{label}: giving up after {max_retries} attempts")
        raise last_error

    def fetch(self, source: str) -> bytes:
        """
        Download a source into the track store.

        Args:
            source: URL or catalog id

        Returns:
            Raw JSON document printed by yt-dlp

        Raises:
            InputError: If the source is empty
            DownloadError: If every attempt fails
        """
        source = source.strip()
        if not source:
            raise InputError("Missing source to download")
        return self._run_with_retries(
            self.audio.download_args(source), f"Download {source}", stderr_status=400
        )

    def download(self, source: str) -> DownloadSummary:
        """
        Download a track, parse its metadata and fix up its artwork.

        Args:
            source: URL or catalog id

        Returns:
            DownloadSummary of the new track

        Raises:
            DownloadError: If yt-dlp keeps failing
            ParseError: If yt-dlp's output cannot be parsed
            MusicBoxError: If the artwork fix-up fails (the file is kept)
        """
        logger.info(f"Downloading: {source}")
        raw = self.fetch(source)

        logger.debug("Parsing JSON from yt-dlp...")
        result = resolver.parse_result(raw)
        filename = title_to_filename(result.title, self.settings.audio_format)

        thumbnail = result.thumbnail
        if resolver.is_topic_upload(result):
            audio_path = self.settings.music_dir / filename
            with self.locks.hold(filename):
                thumbnail = finish_topic_upload(audio_path, without_extension(filename), self.cache)

        summary = resolver.summarize(result, filename, thumbnail)
        logger.info(f"Downloaded: {summary.artist} - {summary.title}")
        return summary

    def download_temp(self, media_id: str) -> Path:
        """
        Download a preview copy into the temp store.

        Already downloaded ids are returned without running yt-dlp.

        Returns:
            Path of the temp file

        Raises:
            InputError: If the id is not a plain name
            DownloadError: If every attempt fails
        """
        check_plain_name(media_id, "id")
        path = self.audio.temp_path(media_id)
        if path.exists():
            return path

        logger.info(f"Downloading to temp: {media_id}")
        path.parent.mkdir(parents=True, exist_ok=True)
        self._run_with_retries(
            self.audio.temp_args(media_id), f"Temp download {media_id}", stderr_status=500
        )
        return path
