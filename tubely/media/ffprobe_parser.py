from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from tubely.errors import ProbeError


@dataclass(frozen=True, slots=True)
class StreamDimensions:
    """Pixel dimensions of the first video stream; ``None`` where ffprobe did not report a value."""

    width: Optional[int]
    height: Optional[int]

    @property
    def ratio(self) -> Optional[float]:
        if not self.width or not self.height or self.height <= 0:
            return None
        return self.width / self.height


def parse_ffprobe_output(stdout: str) -> StreamDimensions:
    """Decode ffprobe's ``-print_format json`` output and return the first stream's dimensions.

    Args:
        stdout: Raw standard output of the ffprobe invocation.

    Returns:
        The dimensions of the first reported stream.

    Raises:
        ProbeError: If the output is not JSON or lists no streams.
    """
    try:
        raw = json.loads(stdout)
    except (TypeError, ValueError) as exc:
        raise ProbeError("Failed to parse ffprobe output", cause=exc) from exc
    if not isinstance(raw, dict):
        raise ProbeError("Unexpected ffprobe output")
    return parse_first_stream(raw)


def parse_first_stream(raw: Dict[str, Any]) -> StreamDimensions:
    """Return the dimensions of the first entry in ``raw["streams"]``.

    Args:
        raw: Parsed ffprobe JSON.

    Returns:
        The dimensions of the first stream.
    """
    streams = raw.get("streams")
    if not isinstance(streams, list) or not streams:
        raise ProbeError("No video streams found")
    first = streams[0]
    if not isinstance(first, dict):
        raise ProbeError("Unexpected ffprobe stream entry")
    return StreamDimensions(width=_int_or_none(first.get("width")), height=_int_or_none(first.get("height")))


def _int_or_none(value: Any) -> Optional[int]:
    if value in (None, "N/A", ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = ["StreamDimensions", "parse_ffprobe_output", "parse_first_stream"]
