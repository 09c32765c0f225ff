from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from tubely.core.logging import get_logger
from tubely.errors import PayloadTooLargeError, StorageError, ValidationError

CHUNK_SIZE = 1024 * 1024

logger = get_logger(component="ingress_buffer")


@dataclass(slots=True)
class StagedUpload:
    path: Path
    media_type: str
    size_bytes: int


def parse_media_type(content_type: Optional[str]) -> str:
    """Return the lower-cased ``type/subtype`` of a Content-Type header value, without parameters."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or "/" in sub:
        raise ValidationError("Couldn't parse mime type")
    return media_type


def validate_media_type(content_type: Optional[str], accepted: str) -> str:
    media_type = parse_media_type(content_type)
    if media_type != accepted.lower():
        raise ValidationError("invalid media type")
    return media_type


def stage_upload(
    stream: BinaryIO,
    content_type: Optional[str],
    *,
    accepted_content_type: str,
    max_bytes: int,
    tmp_dir: Optional[Path] = None,
) -> StagedUpload:
    """Validate the declared type, then copy ``stream`` into a fresh temporary file.

    Nothing touches the filesystem until the content type has been accepted.
    The caller owns the returned file and must remove it. A body larger than
    ``max_bytes`` raises ``PayloadTooLargeError`` and leaves no file behind.
    Filesystem or stream read failures raise ``StorageError``, also without a file.
    """
    media_type = validate_media_type(content_type, accepted_content_type)
    suffix = "." + media_type.split("/", 1)[1]

    written = 0
    try:
        handle = tempfile.NamedTemporaryFile(prefix="tubely_upload", suffix=suffix, dir=tmp_dir, delete=False)
    except OSError as exc:
        logger.error("upload_staging_failed", error=str(exc))
        raise StorageError("Failed to store a file", cause=exc) from exc

    path = Path(handle.name)
    with handle:
        try:
            while chunk := stream.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLargeError("Video exceeds the upload size limit")
                handle.write(chunk)
        except BaseException as exc:
            handle.close()
            path.unlink(missing_ok=True)
            if isinstance(exc, OSError):
                logger.error("upload_staging_failed", path=str(path), error=str(exc))
                raise StorageError("Failed to store a file", cause=exc) from exc
            raise

    logger.info("upload_staged", path=str(path), size_bytes=written, media_type=media_type)
    return StagedUpload(path=path, media_type=media_type, size_bytes=written)


__all__ = ["StagedUpload", "parse_media_type", "validate_media_type", "stage_upload", "CHUNK_SIZE"]
