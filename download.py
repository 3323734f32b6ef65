#!/usr/bin/env python3
"""
Download tracks into the library from the command line.

USAGE:
    python3 download.py [-c CONFIG] SOURCE [SOURCE ...]

SYNOPSIS:
    Runs yt-dlp for each source (URL or video id) and stores the result in
    the configured music directory, exactly as the server's /download
    endpoint does.

COMMAND LINE ARGUMENTS:
    SOURCE        URL or id of the video/track to download
    -c CONFIG     musicbox YAML configuration file
"""

import argparse
import logging
import sys
from typing import Dict, List

from musicbox.config import ConfigError, load_config
from musicbox.downloader import Downloader
from musicbox.exceptions import MusicBoxError
from musicbox.utils import setup_logging

logger = logging.getLogger(__name__)


def process_downloads(downloader: Downloader, sources: List[str]) -> Dict[str, int]:
    """
    Download every source, continuing past failures.

    Returns:
        Dictionary with success/failed counts
    """
    results = {"success": 0, "failed": 0}
    for source in sources:
        try:
            summary = downloader.download(source)
            results["success"] += 1
            logger.info(f"Successfully downloaded: {summary.filename}")
        except MusicBoxError as e:
            results["failed"] += 1
            logger.error(f"Failed to download {source} ({e.status}): {e}")
    return results


def print_summary(results: Dict[str, int]) -> None:
    """Print download summary."""
    print("\n" + "=" * 80)
    print("DOWNLOAD SUMMARY")
    print("=" * 80)
    print(f"Total: {results['success']} successful, {results['failed']} failed")
    print("=" * 80)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="download.py",
        description="Download tracks into the musicbox library.",
    )
    parser.add_argument(
        "sources",
        nargs="+",
        help="URLs or ids to download.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to the YAML configuration file.",
    )
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    settings = config.server
    setup_logging(settings.log_level, settings.log_file)
    settings.ensure_directories()

    logger.info(f"Max retries: {settings.max_retries}")
    logger.info(f"Format: {settings.audio_format}")

    try:
        results = process_downloads(Downloader(settings), args.sources)
        print_summary(results)
        if results["failed"] > 0:
            sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Download interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
