from __future__ import annotations

from arq.connections import RedisSettings
from arq.cron import cron

from pixhub.core.config import settings
from pixhub.core.logging import configure_logging
from pixhub.db.session import build_engine, build_sessionmaker
from pixhub.services.galleries import GalleryRepository
from pixhub.services.identity import SqlIdentityGateway
from pixhub.services.reconciliation import reconcile_orphaned_blobs
from pixhub.services.storage import build_blob_store


async def startup(ctx) -> None:
    configure_logging(settings.log_level)
    ctx["engine"] = build_engine(settings)
    ctx["sessionmaker"] = build_sessionmaker(ctx["engine"])
    ctx["blob_store"] = build_blob_store(settings)


async def shutdown(ctx) -> None:
    await ctx["engine"].dispose()


async def reconcile_orphaned_blobs_job(ctx) -> dict:
    async with ctx["sessionmaker"]() as db:
        repository = GalleryRepository(db, SqlIdentityGateway(db))
        return await reconcile_orphaned_blobs(
            repository,
            ctx["blob_store"],
            grace_minutes=settings.orphan_blob_grace_minutes,
        )


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    on_startup = startup
    on_shutdown = shutdown
    functions = [reconcile_orphaned_blobs_job]
    cron_jobs = [cron(reconcile_orphaned_blobs_job, minute={7, 37})]
