from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from tubely.api.v1 import get_api_router
from tubely.core.config import Settings, get_settings
from tubely.core.db import create_engine, create_session_factory
from tubely.core.logging import configure_logging, level_from_name
from tubely.core.storage import get_object_store
from tubely.media.probe import FFprobeProber
from tubely.media.remux import FFmpegRemuxer


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level=level_from_name(settings.log_level))
    object_store = get_object_store(settings)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.object_store = object_store
        app.state.prober = FFprobeProber(settings.ffprobe_binary)
        app.state.remuxer = FFmpegRemuxer(settings.ffmpeg_binary)
        app.state.engine = engine
        app.state.session_factory = session_factory
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    app.include_router(get_api_router())
    return app


app = create_app()


__all__ = ["app", "create_app"]
