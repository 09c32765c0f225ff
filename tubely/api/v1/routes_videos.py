from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.datastructures import UploadFile

from tubely.api import deps
from tubely.core.config import Settings
from tubely.core.logging import get_logger
from tubely.core.storage import ObjectStore
from tubely.errors import PayloadTooLargeError, TubelyError, ValidationError

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])
logger = get_logger(component="videos_api")

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse},
    401: {"model": schemas.ErrorResponse},
    404: {"model": schemas.ErrorResponse},
    413: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}

UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "required": ["video"],
                    "properties": {"video": {"type": "string", "format": "binary"}},
                }
            }
        },
    }
}


def _http_error(exc: TubelyError) -> HTTPException:
    logger.warning("request_failed", status=exc.status_code, detail=exc.message, cause=repr(exc.cause))
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def parse_video_id(video_id: str) -> str:
    try:
        return str(uuid.UUID(video_id))
    except ValueError as exc:
        raise _http_error(ValidationError("Invalid ID", cause=exc)) from exc


def enforce_upload_ceiling(request: Request, settings: Settings = Depends(deps.get_app_settings)) -> None:
    """Reject a declared body over the ceiling before the multipart form is read."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > settings.max_upload_size_bytes:
        raise _http_error(PayloadTooLargeError("Video exceeds the upload size limit"))


VideoIdDependency = Annotated[str, Depends(parse_video_id)]


@router.post(
    "/{video_id}/upload",
    response_model=schemas.VideoResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=UPLOAD_REQUEST_BODY,
)
async def upload_video(
    video_id: VideoIdDependency,
    context: deps.AuthDependency,
    request: Request,
    videos: deps.VideoServiceDependency,
    pipeline: deps.PipelineDependency,
    _: None = Depends(enforce_upload_ceiling),
) -> schemas.VideoResponse:
    try:
        record = await videos.get_owned_video(video_id, context.user_id)
        async with request.form() as form:
            video = form.get("video")
            if not isinstance(video, UploadFile):
                raise ValidationError("Couldn't read video")
            logger.info("video_upload_started", video_id=record.id, user_id=context.user_id)
            session = pipeline.open_session(record, video.file, video.content_type)
            result = await pipeline.run(record, session)
    except TubelyError as exc:
        raise _http_error(exc) from exc
    return schemas.VideoResponse(**videos.snapshot(result.video, video_url=result.playback.url))


@router.get("/{video_id}", response_model=schemas.VideoResponse, responses=ERROR_RESPONSES)
async def get_video(
    video_id: VideoIdDependency,
    context: deps.AuthDependency,
    videos: deps.VideoServiceDependency,
    store: ObjectStore = Depends(deps.get_object_store),
    settings: Settings = Depends(deps.get_app_settings),
) -> schemas.VideoResponse:
    try:
        record = await videos.get_owned_video(video_id, context.user_id)
        payload = videos.to_signed_video(record, store, expires_s=settings.presign_expiry_seconds)
    except TubelyError as exc:
        raise _http_error(exc) from exc
    return schemas.VideoResponse(**payload)


__all__ = ["router"]
