"""Video upload pipeline.

validation → staging → probing → classification → remux → upload → metadata link.

Stages run strictly in order for one request. Blocking work (the body copy,
ffprobe, ffmpeg and the object-store PUT) is pushed to worker threads so the
event loop keeps serving other requests. Every external call is made once;
failures propagate to the caller after the session's temporary files and
inbound stream are released. An object that was written before a failed
metadata link is left in the store and logged as ``orphaned_object``.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Optional

from tubely.core.config import Settings
from tubely.core.logging import get_logger
from tubely.core.storage import ObjectStore, PresignedURL, StorageLocator
from tubely.db.models import Video
from tubely.errors import RemuxError, StorageError, TubelyError
from tubely.ingest.buffer import stage_upload, validate_media_type
from tubely.ingest.keys import build_storage_key
from tubely.media.aspect import AspectClass, classify_dimensions
from tubely.media.ffprobe_parser import StreamDimensions
from tubely.media.probe import Prober
from tubely.media.remux import Remuxer

from .video_service import VideoService


class PipelineState(str, enum.Enum):
    received = "received"
    validated = "validated"
    staged = "staged"
    probed = "probed"
    classified = "classified"
    remuxed = "remuxed"
    uploaded = "uploaded"
    linked = "linked"
    completed = "completed"
    failed = "failed"


@dataclass
class UploadSession:
    """Request-scoped state of one upload. ``discard`` releases everything it holds."""

    video_id: str
    stream: BinaryIO
    content_type: Optional[str]
    state: PipelineState = PipelineState.received
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.received])
    media_type: Optional[str] = None
    staged_path: Optional[Path] = None
    remuxed_path: Optional[Path] = None
    dimensions: Optional[StreamDimensions] = None
    classification: Optional[AspectClass] = None
    locator: Optional[StorageLocator] = None
    failure_reason: Optional[str] = None

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, reason: str) -> None:
        self.failure_reason = reason
        self.advance(PipelineState.failed)

    def discard(self) -> None:
        for path in (self.remuxed_path, self.staged_path):
            if path is not None:
                path.unlink(missing_ok=True)
        self.stream.close()


@dataclass(slots=True)
class UploadResult:
    video: Video
    locator: StorageLocator
    classification: AspectClass
    playback: PresignedURL


class UploadPipeline:
    def __init__(
        self,
        settings: Settings,
        store: ObjectStore,
        prober: Prober,
        remuxer: Remuxer,
        videos: VideoService,
    ):
        self.settings = settings
        self.store = store
        self.prober = prober
        self.remuxer = remuxer
        self.videos = videos
        self.logger = get_logger(component="upload_pipeline")

    def open_session(self, video: Video, stream: BinaryIO, content_type: Optional[str]) -> UploadSession:
        return UploadSession(video_id=video.id, stream=stream, content_type=content_type)

    async def run(self, video: Video, session: UploadSession) -> UploadResult:
        """Process ``session`` for a record whose ownership the caller has already verified."""
        log = self.logger.bind(video_id=video.id, user_id=video.user_id)
        try:
            result = await self._execute(video, session, log)
        except TubelyError as exc:
            session.fail(exc.message)
            log.error("upload_failed", state=session.history[-2].value, reason=exc.message, cause=repr(exc.cause))
            raise
        except Exception as exc:
            session.fail(str(exc))
            log.exception("upload_failed_unexpectedly", state=session.history[-2].value)
            raise
        finally:
            session.discard()
        return result

    async def _execute(self, video: Video, session: UploadSession, log: Any) -> UploadResult:
        settings = self.settings

        session.media_type = validate_media_type(session.content_type, settings.accepted_video_type)
        self._advance(session, PipelineState.validated, log)

        staged = await asyncio.to_thread(
            stage_upload,
            session.stream,
            session.content_type,
            accepted_content_type=settings.accepted_video_type,
            max_bytes=settings.max_upload_size_bytes,
            tmp_dir=settings.upload_tmp_dir,
        )
        session.staged_path = staged.path
        self._advance(session, PipelineState.staged, log, size_bytes=staged.size_bytes)

        session.dimensions = await asyncio.to_thread(self.prober.probe, staged.path)
        self._advance(
            session,
            PipelineState.probed,
            log,
            width=session.dimensions.width,
            height=session.dimensions.height,
        )

        session.classification = classify_dimensions(session.dimensions.width, session.dimensions.height)
        self._advance(session, PipelineState.classified, log, classification=session.classification.value)

        remuxed = await asyncio.to_thread(self.remuxer.remux, staged.path)
        if remuxed == staged.path:
            raise RemuxError("Fast start output must be a new file")
        session.remuxed_path = remuxed
        self._advance(session, PipelineState.remuxed, log)

        key = build_storage_key(session.classification, session.media_type)
        session.locator = await asyncio.to_thread(
            self.store.put_file, key, remuxed, content_type=session.media_type
        )
        self._advance(session, PipelineState.uploaded, log, bucket=session.locator.bucket, key=key)

        try:
            video = await self.videos.link_video_locator(video, session.locator)
        except StorageError:
            log.warning("orphaned_object", bucket=session.locator.bucket, key=session.locator.key)
            raise
        self._advance(session, PipelineState.linked, log)

        playback = self.store.presign_get(session.locator, expires_s=settings.presign_expiry_seconds)
        self._advance(session, PipelineState.completed, log)
        return UploadResult(
            video=video,
            locator=session.locator,
            classification=session.classification,
            playback=playback,
        )

    @staticmethod
    def _advance(session: UploadSession, state: PipelineState, log: Any, **fields: Any) -> None:
        session.advance(state)
        log.info("upload_state_changed", state=state.value, **fields)


__all__ = ["PipelineState", "UploadSession", "UploadResult", "UploadPipeline"]
