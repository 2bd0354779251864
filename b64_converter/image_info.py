"""Presentation helpers for extracted and encoded images.

These are the pieces a front end needs to describe a conversion result:
display names, file extensions, human-readable sizes, throughput, and the
pixel dimensions of a decoded payload.
"""

from __future__ import annotations

import base64
import binascii
import io
import math
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from .engine.messages import ExtractedImage, PerformanceMetrics
from .logger import get_logger

_logger = get_logger("image_info")

_FORMAT_NAMES = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "image/webp": "WebP",
    "image/svg+xml": "SVG",
    "image/bmp": "BMP",
    "image/x-icon": "ICO",
}

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "image/x-icon": "ico",
}

_KB = 1024
_MB = 1024 * 1024


@dataclass(frozen=True)
class ImageInfo:
    width: int
    height: int
    ratio_text: str


def format_file_size(size_bytes: float) -> str:
    if size_bytes < _KB:
        return f"{int(size_bytes)} B"
    if size_bytes < _MB:
        return f"{size_bytes / _KB:.2f} KB"
    return f"{size_bytes / _MB:.2f} MB"


def format_name(mime_type: str) -> str:
    if mime_type in _FORMAT_NAMES:
        return _FORMAT_NAMES[mime_type]
    _, _, subtype = mime_type.partition("/")
    return subtype.upper() if subtype else "IMG"


def extension_for(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type, "png")


def data_url(image: ExtractedImage) -> str:
    return f"data:{image.mime_type};base64,{image.base64}"


def decoded_size(payload: str) -> int:
    """Exact byte length `payload` decodes to (ignores a malformed tail)."""
    length = len(payload)
    padding = len(payload) - len(payload.rstrip("="))
    return max(0, length * 3 // 4 - padding)


def throughput_mb_per_s(perf: PerformanceMetrics) -> float:
    if perf.elapsed_ms <= 0:
        return 0.0
    return (perf.byte_size / _MB) / (perf.elapsed_ms / 1000.0)


def probe_image(image: ExtractedImage | str) -> ImageInfo:
    """Decode a payload and report its pixel size.

    Raises ValueError when the payload is not valid base64 or not an image
    Pillow can identify.
    """
    payload = image.base64 if isinstance(image, ExtractedImage) else image
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 payload: {exc}") from exc
    try:
        with Image.open(io.BytesIO(raw)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as exc:
        _logger.debug("probe failed: %s", exc)
        raise ValueError(f"not a decodable image: {exc}") from exc
    d = math.gcd(width, height) or 1
    return ImageInfo(width=width, height=height, ratio_text=f"{width // d}:{height // d}")
