from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tubely.core.auth import AuthContext, get_auth_context
from tubely.core.config import Settings
from tubely.core.storage import ObjectStore
from tubely.media.probe import Prober
from tubely.media.remux import Remuxer
from tubely.services.upload_pipeline import UploadPipeline
from tubely.services.video_service import VideoService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_object_store(request: Request) -> ObjectStore:
    store: ObjectStore = request.app.state.object_store
    return store


def get_app_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_prober(request: Request) -> Prober:
    return request.app.state.prober


def get_remuxer(request: Request) -> Remuxer:
    return request.app.state.remuxer


def get_video_service(session: AsyncSession = Depends(get_session)) -> VideoService:
    return VideoService(session)


def get_upload_pipeline(
    settings: Settings = Depends(get_app_settings),
    store: ObjectStore = Depends(get_object_store),
    prober: Prober = Depends(get_prober),
    remuxer: Remuxer = Depends(get_remuxer),
    videos: VideoService = Depends(get_video_service),
) -> UploadPipeline:
    return UploadPipeline(settings, store, prober, remuxer, videos)


VideoServiceDependency = Annotated[VideoService, Depends(get_video_service)]
PipelineDependency = Annotated[UploadPipeline, Depends(get_upload_pipeline)]
AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]


__all__ = [
    "get_session",
    "get_object_store",
    "get_app_settings",
    "get_prober",
    "get_remuxer",
    "get_video_service",
    "get_upload_pipeline",
    "VideoServiceDependency",
    "PipelineDependency",
    "AuthDependency",
]
