"""
Test helper functions and utilities.
"""
import io
import json
import subprocess
from pathlib import Path
from typing import Optional

from mutagen.id3 import APIC, ID3, TIT2, TPE1
from PIL import Image

# Silent MPEG-1 Layer III frame: 128 kbps, 48 kHz, no padding, 384 bytes
SILENT_FRAME = b"\xff\xfb\x94\x00" + bytes(380)


def make_image(size=(40, 20), fmt="PNG", color=(200, 30, 30), mode="RGB") -> bytes:
    """Encode a solid-color image in the given format."""
    if mode == "RGBA":
        color = (*color, 128)
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def write_mpeg_audio(path: Path, frames: int = 8) -> Path:
    """Write untagged MPEG audio that mutagen can sync to."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(SILENT_FRAME * frames)
    return path


def create_mp3(
    path: Path,
    title: Optional[str] = None,
    artist: Optional[str] = None,
    cover: Optional[bytes] = None,
    mime: str = "image/jpeg",
) -> Path:
    """
    Create an mp3 file: an ID3v2 tag in front of a few silent MPEG frames.
    """
    write_mpeg_audio(path)
    tags = ID3()
    if title is not None:
        tags.add(TIT2(encoding=3, text=title))
    if artist is not None:
        tags.add(TPE1(encoding=3, text=artist))
    if cover is not None:
        tags.add(APIC(encoding=3, mime=mime, type=3, desc="Cover", data=cover))
    tags.save(str(path), v2_version=3)
    return path


def read_id3(path: Path) -> ID3:
    return ID3(str(path))


def completed(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> subprocess.CompletedProcess:
    """Fake result of a yt-dlp run."""
    return subprocess.CompletedProcess(args=["yt-dlp"], returncode=returncode, stdout=stdout, stderr=stderr)


def result_json(data: dict) -> bytes:
    return json.dumps(data).encode("utf-8")
