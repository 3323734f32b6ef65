"""
Shared pytest fixtures for musicbox tests.
"""
import tempfile
from pathlib import Path

import pytest

from musicbox.artwork import ArtworkCache
from musicbox.config import ServerSettings
from musicbox.locks import FileLocks
from musicbox.stores import HistoryStore
from tests.helpers import make_image


# Sample yt-dlp --print-json output for a "Topic" channel upload
SAMPLE_TOPIC_RESULT = {
    "id": "Yk0p8fQ9l3s",
    "title": "Crawling",
    "description": "Provided to YouTube by Warner Records\n\nCrawling · Linkin Park\n\nHybrid Theory",
    "thumbnail": "https://i.ytimg.com/vi/Yk0p8fQ9l3s/maxresdefault.jpg",
    "duration": 209.0,
    "artist": "Linkin Park",
    "uploader": "Linkin Park - Topic",
    "channel": "Linkin Park - Topic",
}

# Sample output for a regular upload without an artist field
SAMPLE_VIDEO_RESULT = {
    "id": "dQw4w9WgXcQ",
    "title": "YYZ (Live)",
    "description": "Rush performing YYZ",
    "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
    "duration": 266.4,
    "uploader": "Rush Archive",
    "channel": "Rush Archive Channel",
}


@pytest.fixture
def tmp_test_dir():
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(tmp_test_dir):
    """Settings with every store inside the temp directory."""
    settings = ServerSettings(
        music_dir=tmp_test_dir / "music",
        img_dir=tmp_test_dir / "img",
        temp_dir=tmp_test_dir / "temp",
        public_dir=tmp_test_dir / "public",
        max_retries=3,
        retry_delay=0,
    )
    settings.ensure_directories()
    return settings


@pytest.fixture
def cache(settings):
    return ArtworkCache(settings.img_dir)


@pytest.fixture
def locks():
    return FileLocks()


@pytest.fixture
def history():
    return HistoryStore(capacity=10)


@pytest.fixture
def png_bytes():
    """Wide 40x20 PNG cover."""
    return make_image((40, 20), "PNG")


@pytest.fixture
def square_png_bytes():
    return make_image((32, 32), "PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image((30, 30), "JPEG")
