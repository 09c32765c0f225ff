from __future__ import annotations

from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.core.logging import get_logger
from tubely.core.storage import ObjectStore, StorageLocator
from tubely.db.models import Video
from tubely.errors import AuthorizationError, NotFoundError, StorageError


class VideoService:
    """Record-store access for video metadata, including the storage-locator link."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.logger = get_logger(component="video_service")

    async def get_video(self, video_id: str) -> Video | None:
        return await self.session.get(Video, video_id)

    async def get_owned_video(self, video_id: str, user_id: str) -> Video:
        video = await self.get_video(video_id)
        if video is None:
            raise NotFoundError("Couldn't find the video")
        if video.user_id != user_id:
            raise AuthorizationError("User is not owner of video")
        return video

    async def link_video_locator(self, video: Video, locator: StorageLocator) -> Video:
        """Point ``video`` at a stored object.

        The update is keyed by id and carries the owner established before the
        upload began; a record that vanished or changed hands in the meantime
        affects no rows and is reported as a storage failure.
        """
        stmt = (
            update(Video)
            .where(Video.id == video.id, Video.user_id == video.user_id)
            .values(video_url=locator.serialize())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount != 1:
                await self.session.rollback()
                raise StorageError("failed to update the video")
            await self.session.commit()
            await self.session.refresh(video)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError("failed to update the video", cause=exc) from exc
        self.logger.info("video_locator_linked", video_id=video.id, bucket=locator.bucket, key=locator.key)
        return video

    @staticmethod
    def snapshot(video: Video, *, video_url: str | None) -> dict[str, Any]:
        return {
            "id": video.id,
            "user_id": video.user_id,
            "title": video.title,
            "description": video.description,
            "thumbnail_url": video.thumbnail_url,
            "video_url": video_url,
            "created_at": video.created_at,
            "updated_at": video.updated_at,
        }

    def to_signed_video(self, video: Video, store: ObjectStore, *, expires_s: int) -> dict[str, Any]:
        """Return the record with its permanent locator swapped for a time-limited URL."""
        if not video.video_url:
            return self.snapshot(video, video_url=None)
        try:
            locator = StorageLocator.parse(video.video_url)
        except ValueError as exc:
            raise StorageError("Failed to get presigned s3 url", cause=exc) from exc
        presigned = store.presign_get(locator, expires_s=expires_s)
        return self.snapshot(video, video_url=presigned.url)


__all__ = ["VideoService"]
