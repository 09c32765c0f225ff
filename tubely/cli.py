from __future__ import annotations

import argparse
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .errors import ProcessingError
from .media.aspect import classify_dimensions
from .media.probe import FFprobeProber
from .media.remux import FFmpegRemuxer

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check(args.ffmpeg, args.ffprobe)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tubely media developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")
    parser.add_argument("--ffmpeg", default="ffmpeg", help="ffmpeg binary to use")
    parser.add_argument("--ffprobe", default="ffprobe", help="ffprobe binary to use")

    subparsers = parser.add_subparsers(dest="command")

    probe_parser = subparsers.add_parser("probe", help="Print the first video stream's dimensions and aspect class")
    probe_parser.add_argument("--file", required=True, help="Path to the source media file")
    probe_parser.set_defaults(func=_cmd_probe)

    faststart_parser = subparsers.add_parser("faststart", help="Remux a local MP4 so playback can start early")
    faststart_parser.add_argument("--file", required=True, help="Path to the source media file")
    faststart_parser.set_defaults(func=_cmd_faststart)
    return parser


def _cmd_probe(args: argparse.Namespace) -> None:
    """Probe a local file and print its dimensions and classification.

    Args:
        args: The command-line arguments.
    """
    media_path = _existing_file(args.file)
    try:
        dimensions = FFprobeProber(args.ffprobe).probe(media_path)
    except ProcessingError as exc:
        console.print(f"[red]{exc.message}[/]")
        sys.exit(3)
    classification = classify_dimensions(dimensions.width, dimensions.height)
    console.print_json(
        data={
            "file": str(media_path),
            "width": dimensions.width,
            "height": dimensions.height,
            "ratio": round(dimensions.ratio, 4) if dimensions.ratio else None,
            "classification": classification.value,
        }
    )


def _cmd_faststart(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    try:
        output = FFmpegRemuxer(args.ffmpeg).remux(media_path)
    except ProcessingError as exc:
        console.print(f"[red]{exc.message}[/]")
        sys.exit(3)
    console.print(f"[green]Fast start copy written to {output}[/]")


def _existing_file(raw: str) -> Path:
    media_path = Path(raw).expanduser().resolve()
    if not media_path.is_file():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)
    return media_path


def _run_environment_check(ffmpeg: str, ffprobe: str) -> None:
    """Check for the presence of the external media tools."""
    checks = {
        "ffmpeg": [ffmpeg, "-version"],
        "ffprobe": [ffprobe, "-version"],
    }
    results = {}
    for label, cmd in checks.items():
        if shutil.which(cmd[0]) is None:
            results[label] = False
            continue
        try:
            subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
            results[label] = True
        except (OSError, subprocess.CalledProcessError):
            results[label] = False

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'✅' if ok else '❌'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg (which ships ffprobe).[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
