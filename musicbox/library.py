"""
Operations on the local track store.

Listings are best effort: a track whose tag or artwork cannot be read is
logged and the listing carries on. Edit, delete and crop surface every error.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from musicbox import images
from musicbox.artwork import ArtworkCache
from musicbox.exceptions import InputError, MusicBoxError, NotFoundError, TagReadError
from musicbox.finisher import crop_embedded_cover
from musicbox.locks import FileLocks
from musicbox.models import UNKNOWN_ARTIST, CoverImage, FileListing, ImageFormat, Track
from musicbox.stores import HistoryStore
from musicbox.tagging import ContainerKind, TagContainer, open_container
from musicbox.utils import check_plain_name, split_filename

logger = logging.getLogger(__name__)


@dataclass
class Upload:
    """Uploaded image as received from a form field."""

    data: bytes
    content_type: Optional[str] = None


class Library:
    """Track store operations."""

    def __init__(
        self,
        music_dir: Path,
        cache: ArtworkCache,
        locks: Optional[FileLocks] = None,
        history: Optional[HistoryStore] = None,
    ):
        self.music_dir = Path(music_dir)
        self.cache = cache
        self.locks = locks or FileLocks()
        self.history = history or HistoryStore()

    def _entries(self) -> Iterator[Tuple[str, str, ContainerKind]]:
        """Yield (filename, title, kind) of every recognized track file."""
        for entry in sorted(self.music_dir.iterdir()):
            if not entry.is_file():
                continue
            filename = entry.name
            kind = ContainerKind.from_filename(filename)
            if kind is None:
                logger.error(f"Unrecognized format: {filename}")
                continue
            yield filename, split_filename(filename)[0], kind

    def _observe(self, filename: str, title: str, kind: ContainerKind) -> Optional[TagContainer]:
        """
        Open a track's tag and populate its artwork cache entry.

        Returns:
            The open container, or None if the tag cannot be read
        """
        path = self.music_dir / filename
        with self.locks.hold(filename):
            try:
                container = open_container(path, kind)
            except TagReadError as e:
                logger.error(f"{e}")
                return None
            try:
                self.cache.ensure(path, title, container)
            except MusicBoxError as e:
                logger.error(f"Failed to cache artwork ({filename}): {e}")
            except OSError as e:
                logger.error(f"Failed to save image ({filename}): {e}")
        return container

    def _track(self, filename: str, title: str, artist: str) -> Track:
        thumbnail = self.cache.url_for(title) if self.cache.exists(title) else None
        return Track(filename=filename, title=title, artist=artist, thumbnail=thumbnail)

    def list_files(self) -> FileListing:
        """All tracks in the store plus the recently played list."""
        files = []
        for filename, title, kind in self._entries():
            container = self._observe(filename, title, kind)
            artist = container.artist if container is not None else None
            files.append(self._track(filename, title, artist or UNKNOWN_ARTIST))
        return FileListing(recently_played=self.history.snapshot(), files=files)

    def group_by_artist(self) -> Dict[str, List[Track]]:
        """
        Group tracks by their first credited artist.

        Artists with a single track are left out, as are tracks whose tag
        cannot be read.
        """
        groups: Dict[str, List[Track]] = {}
        for filename, title, kind in self._entries():
            container = self._observe(filename, title, kind)
            if container is None:
                continue
            artist = container.artist or UNKNOWN_ARTIST
            lead_artist = artist.split(", ")[0]
            groups.setdefault(lead_artist, []).append(self._track(filename, title, artist))
        return {artist: tracks for artist, tracks in groups.items() if len(tracks) > 1}

    def warm_artwork_cache(self) -> int:
        """
        Populate the artwork cache for every track in the store.

        Returns:
            Number of tracks visited
        """
        count = 0
        for filename, title, kind in self._entries():
            self._observe(filename, title, kind)
            count += 1
        logger.info(f"Artwork cache checked for {count} tracks")
        return count

    def _existing(self, filename: str) -> Tuple[Path, ContainerKind]:
        check_plain_name(filename)
        path = self.music_dir / filename
        if not path.is_file():
            raise NotFoundError(f"No such track: {filename}")
        kind = ContainerKind.from_filename(filename)
        if kind is None:
            raise InputError(f"Unrecognized format: {filename}")
        return path, kind

    def edit(
        self,
        filename: str,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        thumbnail: Optional[Upload] = None,
    ) -> str:
        """
        Update a track's title, artist and cover.

        Tags are saved before the file is renamed for a new title. Uploaded
        covers are converted to JPEG before being embedded and cached.

        Args:
            filename: Existing track file
            title: New title (renames the file when it differs)
            artist: New artist
            thumbnail: New cover image

        Returns:
            Filename of the track after the edit

        Raises:
            InputError: For unknown tracks, bad titles or non-image uploads
            TagReadError: If the track's tag cannot be read
            MetadataError: If the tag cannot be written
            ImageError: If the uploaded image cannot be converted
        """
        path, kind = self._existing(filename)
        old_title, ext = split_filename(filename)

        cover = None
        if thumbnail is not None and thumbnail.data:
            cover = self._read_upload(thumbnail)

        rename = title is not None and title != old_title
        if rename:
            check_plain_name(title, "title")
            new_filename = f"{title}.{ext}"
        else:
            new_filename = filename
        new_title = split_filename(new_filename)[0]

        with self.locks.hold(filename, new_filename):
            if not path.is_file():
                raise NotFoundError(f"No such track: {filename}")
            if rename and (self.music_dir / new_filename).exists():
                raise InputError(f"A track named {new_filename} already exists")
            container = open_container(path, kind)
            if rename:
                container.set_title(title)
            if artist is not None:
                container.set_artist(artist)
            if cover is not None:
                container.set_cover(cover)
            container.save()

            if rename:
                new_path = self.music_dir / new_filename
                logger.debug(f"Renaming {path} to {new_path}")
                path.rename(new_path)

            if cover is not None:
                if rename:
                    self.cache.remove(old_title)
                self.cache.store(new_title, cover.data)
            elif rename:
                self.cache.rename(old_title, new_title)

        logger.info(f"Edited {filename} -> {new_filename}")
        return new_filename

    @staticmethod
    def _read_upload(upload: Upload) -> CoverImage:
        content_type = upload.content_type
        if content_type is None:
            raise InputError("Image was uploaded but has no content type")
        if not content_type.startswith("image/"):
            raise InputError("Invalid content type")
        try:
            fmt = ImageFormat.from_mime(content_type)
        except ValueError as e:
            raise InputError("Invalid content type") from e
        return CoverImage(data=images.normalize(upload.data, fmt), format=ImageFormat.JPEG)

    def delete(self, filename: str) -> None:
        """
        Delete a track and its cached artwork.

        Raises:
            NotFoundError: If the track does not exist
            OSError: If the file cannot be removed
        """
        path, _ = self._existing(filename)
        title = split_filename(filename)[0]
        with self.locks.hold(filename):
            if self.cache.remove(title):
                logger.debug(f"Removed cached artwork for {title}")
            path.unlink()
        logger.info(f"Deleted {filename}")

    def crop(self, filename: str) -> None:
        """
        Crop a track's cover to a centered square.

        Raises:
            InputError: If the track has no cover or it is already square
            TagReadError: If the track's tag cannot be read
        """
        path, kind = self._existing(filename)
        title = split_filename(filename)[0]
        with self.locks.hold(filename):
            container = open_container(path, kind)
            if container.cover is None:
                raise InputError(f"{filename} has no artwork")
            if not crop_embedded_cover(container, title, self.cache):
                raise InputError("Already square")
        logger.info(f"Cropped artwork of {filename}")
