from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pixhub.core.config import Settings
from pixhub.db.session import get_db
from pixhub.services.accounts import AccountService
from pixhub.services.galleries import GalleryRepository
from pixhub.services.identity import SqlIdentityGateway
from pixhub.services.ingestion import MediaIngestionPipeline
from pixhub.services.lifecycle import GalleryLifecycleManager
from pixhub.services.storage import BlobStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_identity(db: AsyncSession = Depends(get_db)) -> SqlIdentityGateway:
    return SqlIdentityGateway(db)


def get_gallery_repository(
    db: AsyncSession = Depends(get_db),
    identity: SqlIdentityGateway = Depends(get_identity),
) -> GalleryRepository:
    return GalleryRepository(db, identity)


def get_lifecycle_manager(
    repository: GalleryRepository = Depends(get_gallery_repository),
    blob_store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_app_settings),
) -> GalleryLifecycleManager:
    return GalleryLifecycleManager(repository, blob_store, reclaim_blobs_on_delete=settings.reclaim_blobs_on_delete)


def get_ingestion_pipeline(
    repository: GalleryRepository = Depends(get_gallery_repository),
    identity: SqlIdentityGateway = Depends(get_identity),
    blob_store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_app_settings),
) -> MediaIngestionPipeline:
    return MediaIngestionPipeline(repository, identity, blob_store, max_upload_bytes=settings.max_upload_bytes)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AccountService:
    return AccountService(db, settings)
