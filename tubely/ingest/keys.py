from __future__ import annotations

import base64
import re
import secrets

from tubely.media.aspect import AspectClass

__all__ = [
    "TOKEN_BYTES",
    "STORAGE_KEY_PATTERN",
    "random_object_token",
    "extension_for_media_type",
    "build_storage_key",
]

TOKEN_BYTES = 32

STORAGE_KEY_PATTERN = re.compile(r"^(landscape|portrait|other)/[A-Za-z0-9_-]{43}\.[a-z0-9.+-]+$")


def random_object_token(num_bytes: int = TOKEN_BYTES) -> str:
    """Return a URL-safe, unpadded base64 encoding of ``num_bytes`` random bytes.

    Args:
        num_bytes: Amount of entropy to draw; 32 bytes gives a 256-bit identifier.

    Returns:
        The encoded token.
    """
    raw = secrets.token_bytes(num_bytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def extension_for_media_type(media_type: str) -> str:
    """Return the subtype of a ``type/subtype`` media type, e.g. ``mp4`` for ``video/mp4``."""
    return media_type.split("/", 1)[1]


def build_storage_key(classification: AspectClass, media_type: str) -> str:
    """Compose ``<classification>/<token>.<extension>`` for a freshly processed upload.

    Args:
        classification: Aspect bucket of the video.
        media_type: Validated media type of the upload.

    Returns:
        The object key.
    """
    return f"{classification.value}/{random_object_token()}.{extension_for_media_type(media_type)}"
