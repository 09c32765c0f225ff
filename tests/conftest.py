import asyncio
import uuid
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

from tubely.api import deps
from tubely.core.config import Settings, get_settings
from tubely.core.db import Base, create_engine, create_session_factory
from tubely.db.models import Video
from tubely.main import create_app
from tubely.media.ffprobe_parser import StreamDimensions
from tubely.media.remux import faststart_output_path

JWT_SECRET = "test-secret"
JWT_ISSUER = "tubely-test"
JWT_AUDIENCE = "tubely"
OWNER_ID = "user-owner"


class FakeProber:
    def __init__(self, width=1920, height=1080, error=None):
        self.width = width
        self.height = height
        self.error = error
        self.calls: list[Path] = []

    def probe(self, path: Path) -> StreamDimensions:
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return StreamDimensions(width=self.width, height=self.height)


class FakeRemuxer:
    def __init__(self, error=None):
        self.error = error
        self.calls: list[Path] = []
        self.outputs: list[Path] = []

    def remux(self, path: Path) -> Path:
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        target = faststart_output_path(path)
        target.write_bytes(b"moov" + path.read_bytes())
        self.outputs.append(target)
        return target


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path) -> Settings:
    staging = tmp_path / "staging"
    staging.mkdir()

    monkeypatch.setenv("TUBELY_ENV", "test")
    monkeypatch.setenv("TUBELY_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUBELY_DB_URL", f"sqlite+aiosqlite:///{tmp_path / 'tubely_test.db'}")
    monkeypatch.setenv("TUBELY_STORAGE_BACKEND", "local")
    monkeypatch.setenv("TUBELY_LOCAL_STORAGE_BASE_PATH", str(tmp_path / "objects"))
    monkeypatch.setenv("TUBELY_S3_BUCKET", "tubely-test")
    monkeypatch.setenv("TUBELY_UPLOAD_TMP_DIR", str(staging))
    monkeypatch.setenv("TUBELY_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("TUBELY_JWT_ISSUER", JWT_ISSUER)
    monkeypatch.setenv("TUBELY_JWT_AUDIENCE", JWT_AUDIENCE)

    get_settings.cache_clear()
    settings = get_settings()
    engine = create_engine(settings)

    async def _setup() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_setup())

    yield settings

    async def _teardown() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()

    asyncio.run(_teardown())
    get_settings.cache_clear()


@pytest.fixture()
def settings(configure_environment) -> Settings:
    return configure_environment


@pytest.fixture()
def staging_dir(settings) -> Path:
    return Path(settings.upload_tmp_dir)


@pytest.fixture()
def bucket_dir(settings) -> Path:
    return Path(settings.local_storage_base_path) / settings.s3_bucket


@pytest.fixture()
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture()
def remuxer() -> FakeRemuxer:
    return FakeRemuxer()


@pytest.fixture()
def client(settings, prober, remuxer):
    app = create_app(settings)
    app.dependency_overrides[deps.get_prober] = lambda: prober
    app.dependency_overrides[deps.get_remuxer] = lambda: remuxer
    with TestClient(app) as client:
        yield client


def build_token(user_id: str, *, secret: str = JWT_SECRET) -> str:
    payload = {"sub": user_id, "iss": JWT_ISSUER, "aud": JWT_AUDIENCE}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture()
def owner_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token(OWNER_ID)}"}


def seed_video(settings: Settings, *, user_id: str = OWNER_ID, title: str = "Boot.dev beats") -> str:
    video_id = str(uuid.uuid4())
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    async def _insert() -> None:
        async with session_factory() as session:
            session.add(Video(id=video_id, user_id=user_id, title=title, description="seeded"))
            await session.commit()
        await engine.dispose()

    asyncio.run(_insert())
    return video_id


def load_video(settings: Settings, video_id: str) -> Video | None:
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    async def _load() -> Video | None:
        async with session_factory() as session:
            video = await session.get(Video, video_id)
        await engine.dispose()
        return video

    return asyncio.run(_load())


@pytest.fixture()
def video_id(settings) -> str:
    return seed_video(settings)
