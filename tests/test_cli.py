from __future__ import annotations

import pytest

from tubely import cli
from tubely.media.ffprobe_parser import StreamDimensions


def test_probe_prints_classification(monkeypatch, tmp_path, capsys):
    media = tmp_path / "clip.mp4"
    media.write_bytes(b"data")
    monkeypatch.setattr(cli.FFprobeProber, "probe", lambda self, path: StreamDimensions(width=1080, height=1920))

    cli.main(["probe", "--file", str(media)])

    out = capsys.readouterr().out
    assert '"classification": "portrait"' in out
    assert '"width": 1080' in out


def test_probe_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe", "--file", str(tmp_path / "missing.mp4")])
    assert excinfo.value.code == 2


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 1


def test_check_fails_without_tools():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--check", "--ffmpeg", "no-such-ffmpeg", "--ffprobe", "no-such-ffprobe"])
    assert excinfo.value.code == 1
