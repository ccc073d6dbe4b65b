"""Gallery repository: the only writer of gallery and media rows.

Media rows live in ``gallery_media`` and are only ever added one INSERT at a
time, under a row lock on their gallery. Concurrent uploads to one gallery
therefore queue behind each other instead of rewriting a shared list, and a
concurrent delete either runs before an append (which then reports
``NotFound``) or after it (and removes the new row with the rest).
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixhub.core.errors import InvalidArgumentError, NotFoundError, StorageError
from pixhub.models.gallery import Gallery, GalleryMedia
from pixhub.services.identity import IdentityGateway

logger = logging.getLogger(__name__)


class GalleryRepository:
    def __init__(self, db: AsyncSession, identity: IdentityGateway) -> None:
        self.db = db
        self.identity = identity

    async def create(self, title: str, description: str | None, owner_id: uuid.UUID) -> Gallery:
        if not (title or "").strip():
            raise InvalidArgumentError("title must not be empty")
        if not await self.identity.user_exists(owner_id):
            raise NotFoundError("Owner not found")

        row = Gallery(title=title, description=description or "", owner_id=owner_id, media=[])
        self.db.add(row)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("Failed to create gallery") from exc
        logger.info("Created gallery id=%s owner=%s", row.id, owner_id)
        return row

    async def exists(self, gallery_id: uuid.UUID) -> bool:
        try:
            found = (await self.db.execute(select(Gallery.id).where(Gallery.id == gallery_id))).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("Gallery lookup failed") from exc
        return found is not None

    async def list_by_owner(self, owner_id: uuid.UUID) -> Sequence[Gallery]:
        stmt = (
            select(Gallery)
            .where(Gallery.owner_id == owner_id)
            .options(selectinload(Gallery.media))
            .order_by(Gallery.created_at.asc(), Gallery.id.asc())
            # Appends do not touch loaded Gallery.media collections; always re-read them.
            .execution_options(populate_existing=True)
        )
        try:
            return (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to list galleries") from exc

    async def delete(self, gallery_id: uuid.UUID) -> list[str]:
        """Remove a gallery and its media; return the storage keys that were referenced.

        Deleting an unknown id is not an error and returns an empty list.
        """
        try:
            locked = (
                await self.db.execute(select(Gallery.id).where(Gallery.id == gallery_id).with_for_update())
            ).scalar_one_or_none()
            if locked is None:
                await self.db.rollback()
                return []

            keys = list(
                (
                    await self.db.execute(
                        select(GalleryMedia.storage_key)
                        .where(GalleryMedia.gallery_id == gallery_id)
                        .order_by(GalleryMedia.id.asc())
                    )
                ).scalars()
            )
            await self.db.execute(delete(GalleryMedia).where(GalleryMedia.gallery_id == gallery_id))
            await self.db.execute(delete(Gallery).where(Gallery.id == gallery_id))
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("Failed to delete gallery") from exc

        logger.info("Deleted gallery id=%s (%d media)", gallery_id, len(keys))
        return keys

    async def append_media(self, gallery_id: uuid.UUID, media: GalleryMedia) -> GalleryMedia:
        try:
            locked = (
                await self.db.execute(select(Gallery.id).where(Gallery.id == gallery_id).with_for_update())
            ).scalar_one_or_none()
            if locked is None:
                await self.db.rollback()
                raise NotFoundError("Gallery not found")

            media.gallery_id = gallery_id
            self.db.add(media)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("Failed to append media") from exc
        return media

    async def referenced_storage_keys(self) -> set[str]:
        try:
            return set((await self.db.execute(select(GalleryMedia.storage_key))).scalars())
        except SQLAlchemyError as exc:
            raise StorageError("Failed to list media storage keys") from exc
