"""
Audio acquisition through the yt-dlp command line tool.

Each call runs the tool once; retry and error classification live in the
downloader.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class AudioProvider:
    """Builds and runs yt-dlp invocations."""

    def __init__(
        self,
        music_dir: Path,
        temp_dir: Path,
        command: Optional[List[str]] = None,
        audio_format: str = "mp3",
    ):
        """
        Initialize with store directories and tool settings.

        Args:
            music_dir: Track store, where downloads are written
            temp_dir: Temp store for preview downloads
            command: Command prefix used to start yt-dlp
            audio_format: Audio format passed to --audio-format
        """
        self.music_dir = Path(music_dir)
        self.temp_dir = Path(temp_dir)
        self.command = list(command or ["yt-dlp"])
        self.audio_format = audio_format

        # Options shared by every invocation
        self.base_args = [
            "-f",
            "bestaudio/best",
            "--no-playlist",
            "--no-warnings",
        ]

    def download_args(self, source: str) -> List[str]:
        """Arguments for a library download that prints its info JSON."""
        return [
            *self.command,
            *self.base_args,
            "--embed-thumbnail",
            "--embed-metadata",
            "--print-json",
            "-x",
            "--audio-format",
            self.audio_format,
            "-o",
            f"{self.music_dir}/%(title)s.%(ext)s",
            "--",
            source,
        ]

    def temp_path(self, media_id: str) -> Path:
        return self.temp_dir / f"{media_id}.{self.audio_format}"

    def temp_args(self, media_id: str) -> List[str]:
        """Arguments for a bare preview download into the temp store."""
        return [
            *self.command,
            *self.base_args,
            "-x",
            "--audio-format",
            self.audio_format,
            "-o",
            str(self.temp_path(media_id)),
            "--",
            media_id,
        ]

    def run(self, args: List[str]) -> subprocess.CompletedProcess:
        """
        Run yt-dlp to completion, capturing stdout and stderr as bytes.

        Raises:
            OSError: If the process cannot be started
        """
        logger.debug(f"Running: {' '.join(args)}")
        return subprocess.run(
            args,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            check=False,
        )
