from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator

import pixhub.models  # noqa: F401
from pixhub import __version__
from pixhub.api.v1.router import api_router
from pixhub.core.config import Settings, get_settings
from pixhub.core.errors import install_exception_handlers
from pixhub.core.logging import configure_logging
from pixhub.db.base import Base
from pixhub.db.redis import build_redis
from pixhub.db.session import build_engine, build_sessionmaker
from pixhub.middleware.rate_limit import RedisRateLimitMiddleware
from pixhub.services.storage import build_blob_store

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = build_engine(settings)
        if settings.db_create_all:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        app.state.engine = engine
        app.state.sessionmaker = build_sessionmaker(engine)
        app.state.redis = build_redis(settings)
        if settings.blob_backend == "local":
            Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
        logger.info("%s started (env=%s, blobs=%s)", settings.app_name, settings.app_env, settings.blob_backend)
        try:
            yield
        finally:
            if app.state.redis is not None:
                await app.state.redis.aclose()
            await engine.dispose()
            logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        default_response_class=ORJSONResponse,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    # Available before startup so the static mount and the routes share it.
    app.state.blob_store = build_blob_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RedisRateLimitMiddleware,
        limit_per_minute=settings.rate_limit_per_minute,
        static_prefix=settings.upload_url_prefix if settings.blob_backend == "local" else None,
    )
    install_exception_handlers(app)

    app.include_router(api_router, prefix=settings.api_prefix)
    if settings.blob_backend == "local":
        app.mount(
            settings.upload_url_prefix,
            StaticFiles(directory=settings.upload_dir, check_dir=False),
            name="uploads",
        )

    if settings.metrics_enabled:
        Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
