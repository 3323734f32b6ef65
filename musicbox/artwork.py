"""
On-disk cache of normalized cover art.

A track's artwork lives at `<img_dir>/<title>.jpeg`. The file existing is the
whole validity test; entries are never invalidated, only removed when the
track is deleted or moved when it is renamed. Replacing a track's artwork
out of band leaves the old entry in place.
"""

import logging
from pathlib import Path
from typing import Optional

from musicbox import images
from musicbox.models import CoverImage, ImageFormat
from musicbox.tagging import TagContainer, open_container
from musicbox.utils import remove_quietly

logger = logging.getLogger(__name__)


class ArtworkCache:
    """Lazily populated JPEG cache keyed by track title."""

    def __init__(self, img_dir: Path, url_prefix: str = "/img"):
        self.img_dir = Path(img_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, title: str) -> Path:
        return self.img_dir / f"{title}.jpeg"

    def url_for(self, title: str) -> str:
        return f"{self.url_prefix}/{title}.jpeg"

    def exists(self, title: str) -> bool:
        return self.path_for(title).exists()

    def ensure(
        self,
        audio_path: Path,
        title: str,
        container: Optional[TagContainer] = None,
    ) -> bool:
        """
        Populate the cache entry for a track if it is missing.

        JPEG covers are copied as-is. Other formats are converted to JPEG and
        the converted image is also written back into the track's tag, so the
        cache file and the embedded cover stay identical.

        Args:
            audio_path: Path to the track file
            title: Track title (cache key)
            container: Already opened tag container for the track, if any

        Returns:
            True if a cache file was written

        Raises:
            TagReadError: If the track's tag cannot be read
            ImageError: If the cover cannot be converted
            MetadataError: If the converted cover cannot be written back
        """
        path = self.path_for(title)
        if path.exists():
            return False

        if container is None:
            container = open_container(audio_path)
        cover = container.cover
        if cover is None:
            return False

        if cover.format is ImageFormat.JPEG:
            self.store(title, cover.data)
            return True

        logger.info(f"Converting image for: {Path(audio_path).name}...")
        data = images.normalize(cover.data, cover.format)
        container.set_cover(CoverImage(data=data, format=ImageFormat.JPEG))
        container.save()
        self.store(title, data)
        return True

    def store(self, title: str, data: bytes) -> Path:
        """Write JPEG bytes as the cache entry for a title."""
        path = self.path_for(title)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug(f"Cached artwork: {path}")
        return path

    def rename(self, old_title: str, new_title: str) -> bool:
        """Move a cache entry to a new title. Returns False if there was none."""
        old_path = self.path_for(old_title)
        if not old_path.exists():
            return False
        old_path.replace(self.path_for(new_title))
        return True

    def remove(self, title: str) -> bool:
        """Delete a cache entry. Returns False if there was none."""
        return remove_quietly(self.path_for(title))
