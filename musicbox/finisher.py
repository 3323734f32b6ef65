"""
Post-download artwork fix-up for auto-generated "Topic" uploads.

Their thumbnails are wide video frames with the square album cover in the
middle, so the embedded cover is cropped to its centered square.
"""

import logging
from pathlib import Path

from musicbox import images
from musicbox.artwork import ArtworkCache
from musicbox.exceptions import MetadataError
from musicbox.models import CoverImage, ImageFormat
from musicbox.tagging import TagContainer, open_container

logger = logging.getLogger(__name__)


def crop_embedded_cover(container: TagContainer, title: str, cache: ArtworkCache) -> bool:
    """
    Crop a track's embedded cover to a centered square.

    Writes the cropped JPEG to the artwork cache and back into the tag.

    Args:
        container: Open tag container of the track
        title: Track title (cache key)
        cache: Artwork cache to update

    Returns:
        True if the cover was cropped, False if it was already square

    Raises:
        MetadataError: If the track has no cover or the tag cannot be written
        ImageError: If the cover cannot be decoded or encoded
    """
    cover = container.cover
    if cover is None:
        raise MetadataError(f"No embedded cover in {container.path.name}")

    cropped = images.crop_to_square(cover.data)
    if cropped is None:
        return False

    cache.store(title, cropped)
    container.set_cover(CoverImage(data=cropped, format=ImageFormat.JPEG))
    container.save()
    return True


def finish_topic_upload(audio_path: Path, title: str, cache: ArtworkCache) -> str:
    """
    Square up the artwork of a freshly downloaded topic upload.

    Returns:
        URL of the track's cached artwork
    """
    logger.info(f"Cropping image for {title}...")
    container = open_container(audio_path)
    if crop_embedded_cover(container, title, cache):
        logger.debug(f"Cropped artwork for {title}")
    else:
        logger.debug(f"Artwork for {title} is already square")
        cache.ensure(audio_path, title, container)
    return cache.url_for(title)
