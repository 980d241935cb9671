"""Media reference resolution: remote URLs pass through, local files become data URIs."""

from __future__ import annotations

import base64
import logging
from pathlib import Path

from dreamgen.errors import NotFoundError, ReadError

logger = logging.getLogger(__name__)

_IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

_VIDEO_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def detect_mime_type(path: str | Path, media_type: str) -> str:
    """
    MIME type from the file extension (case-insensitive).

    Unknown image extensions fall back to image/jpeg and unknown video
    extensions to video/mp4; any other media_type yields application/octet-stream.
    """
    ext = Path(path).suffix.lower()
    if media_type == "image":
        return _IMAGE_MIME_TYPES.get(ext, "image/jpeg")
    if media_type == "video":
        return _VIDEO_MIME_TYPES.get(ext, "video/mp4")
    return "application/octet-stream"


def check_media_exists(reference: str, media_type: str = "image", label: str | None = None) -> None:
    """Raise NotFoundError if reference is a local path that does not exist. URLs are not checked."""
    if is_url(reference):
        return
    if not Path(reference).exists():
        what = label or media_type
        raise NotFoundError(f"{what} not found: {reference}", code=f"{media_type}_not_found")


def encode_to_data_uri(path: str | Path, media_type: str = "image") -> str:
    """Read the whole file and return ``data:<mime>;base64,<payload>``."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        raise NotFoundError(f"{media_type} not found: {path}", code=f"{media_type}_not_found") from e
    except OSError as e:
        raise ReadError(f"cannot read {path}: {e}", code=f"{media_type}_read_error") from e
    mime_type = detect_mime_type(path, media_type)
    logger.debug("Encoded %s (%d bytes, %s) as data URI", path, len(data), mime_type)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def resolve_media(reference: str, media_type: str = "image", label: str | None = None) -> str:
    """
    Turn a user-supplied media reference into a value usable in a request body.

    URLs are returned unchanged. Local paths must exist (NotFoundError otherwise)
    and are inlined as base64 data URIs (ReadError if the file cannot be read).
    """
    if is_url(reference):
        return reference
    check_media_exists(reference, media_type, label)
    return encode_to_data_uri(reference, media_type)
