"""
HTTP API for the media library.

Endpoints:
- GET  /api/files            tracks plus recently played
- GET  /api/artist-playlist  tracks grouped by lead artist
- POST /api/edit             multipart: filename, title, artist, thumbnail
- POST /api/delete           body: filename
- POST /api/crop             JSON: {"filename": ...}
- POST /download             body: URL or id, returns the new track
- GET  /temp-download/<id>   preview download, returns its URL
- POST /history              JSON track, returns recently played
- POST /save-playlist, GET /load-playlist, POST /clear-playlist
- GET  /m/..., /td/..., /img/..., anything else from the public directory

Each request runs on its own thread.
"""

import http.server
import json
import logging
import mimetypes
import shutil
import threading
import urllib.parse
from dataclasses import dataclass, field
from http import HTTPStatus
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from werkzeug.http import parse_options_header
from werkzeug.sansio.multipart import Data, Epilogue, Field, File, MultipartDecoder, NeedData

from musicbox.artwork import ArtworkCache
from musicbox.config import ServerSettings
from musicbox.downloader import Downloader
from musicbox.exceptions import InputError, MusicBoxError
from musicbox.library import Library, Upload
from musicbox.locks import FileLocks
from musicbox.models import Track
from musicbox.stores import HistoryStore, PlaylistSession, PlaylistSessionStore

logger = logging.getLogger(__name__)


@dataclass
class FormField:
    """One part of a multipart/form-data body."""

    name: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")


def parse_multipart(content_type: str, body: bytes) -> List[FormField]:
    """
    Split a multipart/form-data body into its fields, in order.

    Raises:
        InputError: If the body is not well-formed multipart/form-data
    """
    mimetype, options = parse_options_header(content_type)
    boundary = options.get("boundary")
    if mimetype != "multipart/form-data" or not boundary:
        raise InputError("Expected a multipart/form-data body")

    decoder = MultipartDecoder(boundary.encode("latin-1"))
    decoder.receive_data(body)
    decoder.receive_data(None)

    fields: List[FormField] = []
    current = None
    chunks: List[bytes] = []
    try:
        while True:
            event = decoder.next_event()
            if isinstance(event, (Field, File)):
                current = event
                chunks = []
            elif isinstance(event, Data):
                chunks.append(event.data)
                if not event.more_data and current is not None:
                    fields.append(
                        FormField(
                            name=current.name,
                            data=b"".join(chunks),
                            content_type=current.headers.get("Content-Type"),
                        )
                    )
                    current = None
            elif isinstance(event, Epilogue):
                break
            elif isinstance(event, NeedData):
                raise InputError("Incomplete multipart body")
    except ValueError as e:
        raise InputError(f"Malformed multipart body: {e}") from e
    return fields


@dataclass
class App:
    """Everything a request handler needs, created once per process."""

    settings: ServerSettings
    library: Library
    downloader: Downloader
    history: HistoryStore
    sessions: PlaylistSessionStore = field(default_factory=PlaylistSessionStore)

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "App":
        cache = ArtworkCache(settings.img_dir)
        locks = FileLocks()
        history = HistoryStore(settings.history_size)
        return cls(
            settings=settings,
            library=Library(settings.music_dir, cache, locks=locks, history=history),
            downloader=Downloader(settings, cache=cache, locks=locks),
            history=history,
        )


class MusicBoxHandler(http.server.BaseHTTPRequestHandler):
    """HTTP request handler for the library API."""

    def __init__(self, app: App, *args, **kwargs):
        """
        Initialize handler with the application context.

        Args:
            app: Shared application context
            *args: Positional arguments for BaseHTTPRequestHandler
            **kwargs: Keyword arguments for BaseHTTPRequestHandler
        """
        self.app = app
        super().__init__(*args, **kwargs)

    def log_message(self, format: str, *args: Any) -> None:
        """Route request lines to our logger."""
        logger.debug(f"{self.address_string()} - {format % args}")

    # Responses

    def _send(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _send_json(self, data: Any, status: int = 200) -> None:
        self._send(status, json.dumps(data).encode("utf-8"), "application/json")

    def _send_text(self, text: str, status: int = 200) -> None:
        self._send(status, text.encode("utf-8"), "text/plain; charset=utf-8")

    def _send_error(self, status: int, message: str) -> None:
        self._send_json({"error": HTTPStatus(status).phrase, "message": message}, status)

    def _serve_file(self, base_dir: Path, rel_path: str) -> None:
        base = base_dir.resolve()
        target = (base / urllib.parse.unquote(rel_path).lstrip("/")).resolve()
        if target.is_dir():
            target = target / "index.html"
        if base != target and base not in target.parents:
            self._send_error(404, f"Not found: {self.path}")
            return
        if not target.is_file():
            self._send_error(404, f"Not found: {self.path}")
            return

        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(target.stat().st_size))
        self.end_headers()
        if self.command != "HEAD":
            with open(target, "rb") as f:
                shutil.copyfileobj(f, self.wfile)

    # Requests

    def _read_body(self) -> bytes:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError as e:
            raise InputError("Invalid Content-Length") from e
        if length < 0:
            raise InputError("Invalid Content-Length")
        return self.rfile.read(length) if length else b""

    def _read_json(self) -> Any:
        try:
            return json.loads(self._read_body())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InputError(f"Invalid JSON body: {e}") from e

    def _dispatch(self, routes: Dict[str, Any], prefixes: List[Tuple[str, Any]]) -> None:
        path = urllib.parse.urlparse(self.path).path
        try:
            handler = routes.get(path)
            if handler is not None:
                handler()
                return
            for prefix, prefix_handler in prefixes:
                if path.startswith(prefix):
                    prefix_handler(path[len(prefix):])
                    return
            self._send_error(404, f"Unknown endpoint: {path}")
        except MusicBoxError as e:
            logger.error(f"{self.command} {path} failed: {e}")
            self._send_error(e.status, e.message)
        except Exception as e:
            logger.error(f"Error handling request {path}: {e}", exc_info=True)
            self._send_error(500, str(e))

    def do_GET(self) -> None:
        settings = self.app.settings
        self._dispatch(
            {
                "/api/files": self.list_files,
                "/api/artist-playlist": self.group_by_artist,
                "/load-playlist": self.load_playlist,
            },
            [
                ("/temp-download/", self.temp_download),
                ("/m/", lambda rest: self._serve_file(settings.music_dir, rest)),
                ("/td/", lambda rest: self._serve_file(settings.temp_dir, rest)),
                ("/img/", lambda rest: self._serve_file(settings.img_dir, rest)),
                ("/", lambda rest: self._serve_file(settings.public_dir, rest)),
            ],
        )

    do_HEAD = do_GET

    def do_POST(self) -> None:
        self._dispatch(
            {
                "/api/edit": self.edit,
                "/api/delete": self.delete,
                "/api/crop": self.crop,
                "/download": self.download,
                "/history": self.add_to_history,
                "/save-playlist": self.save_playlist,
                "/clear-playlist": self.clear_playlist,
            },
            [],
        )

    # Endpoints

    def list_files(self) -> None:
        self._send_json(self.app.library.list_files().to_dict())

    def group_by_artist(self) -> None:
        groups = self.app.library.group_by_artist()
        self._send_json({artist: [t.to_dict() for t in tracks] for artist, tracks in groups.items()})

    def edit(self) -> None:
        content_type = self.headers.get("Content-Type", "")
        fields = parse_multipart(content_type, self._read_body())
        if not fields or fields[0].name != "filename":
            raise InputError("The first field must be 'filename'")

        values: Dict[str, Any] = {}
        for form_field in fields:
            if form_field.name in ("filename", "title", "artist"):
                values[form_field.name] = form_field.text
            elif form_field.name == "thumbnail":
                values["thumbnail"] = Upload(form_field.data, form_field.content_type)
        self.app.library.edit(**values)
        self._send_text("OK")

    def delete(self) -> None:
        filename = self._read_body().decode("utf-8").strip()
        self.app.library.delete(filename)
        self._send_text("OK")

    def crop(self) -> None:
        body = self._read_json()
        filename = body.get("filename") if isinstance(body, dict) else None
        if not isinstance(filename, str):
            raise InputError("Missing 'filename'")
        self.app.library.crop(filename)
        self._send_text("OK")

    def download(self) -> None:
        source = self._read_body().decode("utf-8")
        summary = self.app.downloader.download(source)
        self._send_json(summary.to_dict())

    def temp_download(self, media_id: str) -> None:
        path = self.app.downloader.download_temp(urllib.parse.unquote(media_id))
        self._send_text(f"/td/{path.name}")

    def add_to_history(self) -> None:
        track = Track.from_dict(self._read_json())
        logger.debug(f"Adding to history: {track.filename}")
        history = self.app.history.add(track)
        self._send_json([t.to_dict() for t in history])

    def save_playlist(self) -> None:
        try:
            session = PlaylistSession.model_validate_json(self._read_body())
        except ValidationError as e:
            raise InputError(f"Invalid playlist session: {e}") from e
        self.app.sessions.save(session)
        self._send_text("success")

    def load_playlist(self) -> None:
        session = self.app.sessions.load()
        if session is None:
            self._send_text("No session stored", status=404)
            return
        self._send(200, session.model_dump_json().encode("utf-8"), "application/json")

    def clear_playlist(self) -> None:
        self.app.sessions.clear()
        self._send_text("Ok")


def create_handler_class(app: App):
    """
    Create a handler class with the application context bound.

    Args:
        app: Shared application context

    Returns:
        Handler class
    """

    class Handler(MusicBoxHandler):
        def __init__(self, *args, **kwargs):
            super().__init__(app, *args, **kwargs)

    return Handler


class TempCleaner(threading.Thread):
    """Empties the temp store at a fixed interval."""

    def __init__(self, temp_dir: Path, interval: float):
        super().__init__(name="temp-cleaner", daemon=True)
        self.temp_dir = Path(temp_dir)
        self.interval = interval
        self._stop_event = threading.Event()

    def clean(self) -> None:
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Cleared temp directory {self.temp_dir}")

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.clean()
            except OSError as e:
                logger.warning(f"Failed to clear temp directory {self.temp_dir}: {e}")

    def stop(self) -> None:
        self._stop_event.set()


def create_server(app: App) -> http.server.ThreadingHTTPServer:
    settings = app.settings
    return http.server.ThreadingHTTPServer(
        (settings.host, settings.port), create_handler_class(app)
    )


def serve(settings: ServerSettings) -> None:
    """
    Run the server until interrupted.

    Creates the store directories, starts the temp cleaner and warms the
    artwork cache in the background before serving.
    """
    settings.ensure_directories()
    app = App.from_settings(settings)

    cleaner = TempCleaner(settings.temp_dir, settings.temp_cleanup_interval)
    cleaner.start()
    threading.Thread(
        target=app.library.warm_artwork_cache, name="artwork-warmup", daemon=True
    ).start()

    server = create_server(app)
    host, port = server.server_address[:2]
    logger.info(f"Listening on {host}:{port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    finally:
        cleaner.stop()
        server.server_close()
        logger.info("Server stopped")
