"""
In-memory stores for the recently played list and the playlist session.

Both live for the life of the process and are not persisted.
"""

import threading
from collections import deque
from typing import List, Optional

from pydantic import BaseModel, Field

from musicbox.models import Track


class HistoryStore:
    """Most recently played tracks, newest first, without duplicates."""

    def __init__(self, capacity: int = 10):
        self.capacity = capacity
        self._tracks: deque = deque()
        self._lock = threading.Lock()

    def add(self, track: Track) -> List[Track]:
        """
        Move a track to the front of the history.

        Returns:
            Snapshot of the history after the update
        """
        with self._lock:
            if track in self._tracks:
                self._tracks.remove(track)
            elif len(self._tracks) >= self.capacity:
                self._tracks.pop()
            self._tracks.appendleft(track)
            return list(self._tracks)

    def snapshot(self) -> List[Track]:
        with self._lock:
            return list(self._tracks)


class QueueItem(BaseModel):
    """Queued track of a playlist session."""

    filename: str
    title: str
    artist: str
    artists: Optional[List[str]] = None
    thumbnail: Optional[str] = None
    duration: Optional[int] = None
    artist_thumbnail: Optional[str] = None
    url: str


class PlaylistSession(BaseModel):
    """Player state saved by the client."""

    current_time: float = 0.0
    current_index: int = 0
    queue: List[QueueItem] = Field(default_factory=list)


class PlaylistSessionStore:
    """Holds at most one saved playlist session."""

    def __init__(self):
        self._session: Optional[PlaylistSession] = None
        self._lock = threading.Lock()

    def save(self, session: PlaylistSession) -> None:
        with self._lock:
            self._session = session

    def load(self) -> Optional[PlaylistSession]:
        """Saved session, or None if nothing is stored."""
        with self._lock:
            return self._session

    def clear(self) -> None:
        with self._lock:
            self._session = None
