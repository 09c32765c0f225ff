from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol

from tubely.core.logging import get_logger
from tubely.errors import RemuxError

OUTPUT_SUFFIX = ".processing"


class Remuxer(Protocol):
    def remux(self, path: Path) -> Path: ...


def faststart_output_path(path: Path) -> Path:
    return path.with_name(path.name + OUTPUT_SUFFIX)


class FFmpegRemuxer:
    """Moves the MP4 index to the head of the file without re-encoding any stream."""

    def __init__(self, binary: str = "ffmpeg"):
        self.binary = binary
        self.logger = get_logger(component="remuxer")

    def command(self, source: Path, target: Path) -> list[str]:
        return [
            self.binary,
            "-nostdin",
            "-v",
            "error",
            "-y",
            "-i",
            str(source),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(target),
        ]

    def remux(self, path: Path) -> Path:
        target = faststart_output_path(path)
        command = self.command(path, target)
        self.logger.info("ffmpeg_faststart_run", command=command)
        try:
            subprocess.run(command, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except FileNotFoundError as exc:
            target.unlink(missing_ok=True)
            raise RemuxError(f"{self.binary} is not installed", cause=exc) from exc
        except subprocess.CalledProcessError as exc:
            target.unlink(missing_ok=True)
            self.logger.error("ffmpeg_faststart_failed", returncode=exc.returncode, stderr=(exc.stderr or "").strip())
            raise RemuxError("Failed to convert for fast start", cause=exc) from exc
        if not target.exists():
            raise RemuxError("Fast start output was not produced")
        return target


__all__ = ["Remuxer", "FFmpegRemuxer", "faststart_output_path", "OUTPUT_SUFFIX"]
