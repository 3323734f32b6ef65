"""
Cover art normalization using Pillow.

Every cached or re-embedded cover is a JPEG. Images that are already JPEG
pass through untouched unless they need cropping.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from musicbox.exceptions import ImageError
from musicbox.models import ImageFormat

logger = logging.getLogger(__name__)


def center_square_box(width: int, height: int) -> Tuple[int, int, int, int]:
    """
    Crop box (left, upper, right, lower) for the centered square of an image.

    Wide images keep their full height and lose the sides. Tall images keep
    their full width and lose the top and bottom.
    """
    if width >= height:
        offset = (width // 2) - (height // 2)
        return (offset, 0, offset + height, height)
    offset = (height // 2) - (width // 2)
    return (0, offset, width, offset + width)


def decode(data: bytes, fmt: Optional[ImageFormat] = None) -> Image.Image:
    """
    Decode image bytes to an RGB image. Alpha is dropped.

    Args:
        data: Raw image bytes
        fmt: Declared format, or None to detect it from the data

    Raises:
        ImageError: If the data cannot be decoded
    """
    formats = [fmt.pil_name] if fmt else None
    try:
        with Image.open(io.BytesIO(data), formats=formats) as img:
            img.load()
            return img.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise ImageError(f"Failed to decode image: {e}") from e


def encode_jpeg(img: Image.Image) -> bytes:
    """
    Encode an image as JPEG.

    Raises:
        ImageError: If encoding fails
    """
    buffer = io.BytesIO()
    try:
        img.save(buffer, format="JPEG")
    except (OSError, ValueError) as e:
        raise ImageError(f"Failed to encode image: {e}") from e
    return buffer.getvalue()


def normalize(data: bytes, fmt: Optional[ImageFormat], crop: bool = False) -> bytes:
    """
    Convert cover art to JPEG, optionally cropping it to a centered square.

    Args:
        data: Raw image bytes
        fmt: Declared format (None means detect)
        crop: Whether to crop to a centered square

    Returns:
        JPEG bytes. The input itself when it is JPEG and no crop is requested.
    """
    if fmt is ImageFormat.JPEG and not crop:
        return data

    img = decode(data, fmt)
    if crop and img.width != img.height:
        img = img.crop(center_square_box(img.width, img.height))
    return encode_jpeg(img)


def crop_to_square(data: bytes, fmt: Optional[ImageFormat] = None) -> Optional[bytes]:
    """
    Crop cover art to a centered square.

    Returns:
        JPEG bytes of the cropped image, or None if it is already square
    """
    img = decode(data, fmt)
    width, height = img.size
    if width == height:
        return None
    logger.debug(f"Cropping {width}x{height} image to {min(width, height)}px square")
    return encode_jpeg(img.crop(center_square_box(width, height)))
