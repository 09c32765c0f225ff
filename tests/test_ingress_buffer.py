from __future__ import annotations

import io
from pathlib import Path

import pytest

from tubely.errors import PayloadTooLargeError, StorageError, ValidationError
from tubely.ingest import buffer as buffer_module
from tubely.ingest.buffer import parse_media_type, stage_upload


@pytest.fixture()
def buffer_dir(tmp_path: Path) -> Path:
    path = tmp_path / "buffer"
    path.mkdir()
    return path


@pytest.mark.parametrize(
    "header, expected",
    [
        ("video/mp4", "video/mp4"),
        ("VIDEO/MP4", "video/mp4"),
        ("video/mp4; codecs=avc1", "video/mp4"),
        (" video/mp4 ", "video/mp4"),
    ],
)
def test_parse_media_type(header, expected):
    assert parse_media_type(header) == expected


@pytest.mark.parametrize("header", [None, "", "video", "/mp4", "video/", "video/mp4/extra"])
def test_parse_media_type_rejects_malformed(header):
    with pytest.raises(ValidationError):
        parse_media_type(header)


@pytest.mark.parametrize("content_type", ["image/png", "video/quicktime", "application/octet-stream", None])
def test_rejected_type_creates_no_file(buffer_dir: Path, content_type):
    stream = io.BytesIO(b"x" * 1024)
    with pytest.raises(ValidationError):
        stage_upload(stream, content_type, accepted_content_type="video/mp4", max_bytes=1 << 20, tmp_dir=buffer_dir)
    assert list(buffer_dir.iterdir()) == []
    assert stream.tell() == 0


def test_stage_upload_copies_stream(buffer_dir: Path):
    body = b"\x00\x00\x00\x18ftypmp42" + b"a" * (buffer_module.CHUNK_SIZE + 10)
    staged = stage_upload(
        io.BytesIO(body),
        "video/mp4",
        accepted_content_type="video/mp4",
        max_bytes=len(body),
        tmp_dir=buffer_dir,
    )
    assert staged.path.parent == buffer_dir
    assert staged.path.name.startswith("tubely_upload")
    assert staged.path.suffix == ".mp4"
    assert staged.size_bytes == len(body)
    assert staged.media_type == "video/mp4"
    assert staged.path.read_bytes() == body


def test_oversized_body_is_rejected_and_removed(buffer_dir: Path, monkeypatch):
    monkeypatch.setattr(buffer_module, "CHUNK_SIZE", 4)
    with pytest.raises(PayloadTooLargeError) as excinfo:
        stage_upload(
            io.BytesIO(b"0123456789"),
            "video/mp4",
            accepted_content_type="video/mp4",
            max_bytes=6,
            tmp_dir=buffer_dir,
        )
    assert excinfo.value.status_code == 413
    assert excinfo.value.message == "Video exceeds the upload size limit"
    assert list(buffer_dir.iterdir()) == []


def test_read_failure_removes_partial_file(buffer_dir: Path):
    class BrokenStream(io.RawIOBase):
        def __init__(self):
            self.calls = 0

        def read(self, size=-1):
            self.calls += 1
            if self.calls > 1:
                raise OSError("connection reset")
            return b"partial"

    with pytest.raises(StorageError) as excinfo:
        stage_upload(BrokenStream(), "video/mp4", accepted_content_type="video/mp4", max_bytes=100, tmp_dir=buffer_dir)
    assert excinfo.value.message == "Failed to store a file"
    assert isinstance(excinfo.value.cause, OSError)
    assert list(buffer_dir.iterdir()) == []


def test_unwritable_staging_dir_is_storage_error(tmp_path: Path):
    with pytest.raises(StorageError):
        stage_upload(
            io.BytesIO(b"data"),
            "video/mp4",
            accepted_content_type="video/mp4",
            max_bytes=100,
            tmp_dir=tmp_path / "missing",
        )
