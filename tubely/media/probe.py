from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol

from tubely.core.logging import get_logger
from tubely.errors import ProbeError

from .ffprobe_parser import StreamDimensions, parse_ffprobe_output


class Prober(Protocol):
    def probe(self, path: Path) -> StreamDimensions: ...


class FFprobeProber:
    """Reads the first video stream's dimensions with ffprobe."""

    def __init__(self, binary: str = "ffprobe"):
        self.binary = binary
        self.logger = get_logger(component="media_prober")

    def command(self, path: Path) -> list[str]:
        return [
            self.binary,
            "-v",
            "error",
            "-select_streams",
            "v:0",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

    def probe(self, path: Path) -> StreamDimensions:
        command = self.command(path)
        self.logger.info("ffprobe_run", command=command)
        try:
            proc = subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as exc:
            raise ProbeError(f"{self.binary} is not installed", cause=exc) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            self.logger.error("ffprobe_failed", returncode=exc.returncode, stderr=stderr)
            raise ProbeError("Failed to get aspect ratio", cause=exc) from exc
        return parse_ffprobe_output(proc.stdout)


__all__ = ["Prober", "FFprobeProber"]
