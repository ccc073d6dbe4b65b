from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import pixhub.models  # noqa: F401
from pixhub.core.config import Settings
from pixhub.db.base import Base
from pixhub.db.session import build_engine, build_sessionmaker
from pixhub.main import create_app
from pixhub.models.user import User
from pixhub.services.galleries import GalleryRepository
from pixhub.services.identity import SqlIdentityGateway
from pixhub.services.storage import LocalBlobStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'pixhub.db'}",
        db_create_all=True,
        redis_url="",
        upload_dir=str(tmp_path / "uploads"),
        upload_url_prefix="/uploads",
        jwt_secret="test-secret",
        max_upload_size_mb=1,
        rate_limit_per_minute=0,
        metrics_enabled=False,
    )


@pytest.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(engine)


@pytest.fixture
async def db(sessionmaker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def repository(db: AsyncSession) -> GalleryRepository:
    return GalleryRepository(db, SqlIdentityGateway(db))


@pytest.fixture
def blob_store(settings: Settings) -> LocalBlobStore:
    return LocalBlobStore(settings.upload_dir, settings.upload_url_prefix)


@pytest.fixture
def make_user(db: AsyncSession):
    async def _make(email: str = "u1@example.com") -> uuid.UUID:
        user = User(username=email.split("@")[0], email=email, password_hash="not-a-real-hash")
        db.add(user)
        await db.commit()
        return user.id

    return _make


@pytest.fixture
async def owner_id(make_user) -> uuid.UUID:
    return await make_user()


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client
