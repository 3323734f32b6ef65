#!/usr/bin/env python3
"""
Run the musicbox media library server.

USAGE:
    python3 serve.py [CONFIG] [--port PORT]
"""

import argparse
import logging
import sys

from musicbox.config import ConfigError, load_config
from musicbox.server import serve
from musicbox.utils import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="serve.py",
        description="Serve the musicbox media library.",
    )
    parser.add_argument(
        "config",
        nargs="?",
        default=None,
        help="Path to the YAML configuration file.",
    )
    parser.add_argument("--host", default=None, help="Address to bind.")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on.")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    settings = config.server
    if args.host is not None:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port

    setup_logging(settings.log_level, settings.log_file)
    logger.info(f"Music directory: {settings.music_dir}")
    logger.info(f"Image directory: {settings.img_dir}")

    try:
        serve(settings)
    except OSError as e:
        logger.error(f"Cannot start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
