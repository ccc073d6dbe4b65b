from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from pixhub.core.errors import InvalidArgumentError, StorageError
from pixhub.core.identifiers import parse_user_id
from pixhub.models.gallery import Gallery
from pixhub.services.galleries import GalleryRepository
from pixhub.services.storage import BlobStore

logger = logging.getLogger(__name__)


class GalleryLifecycleManager:
    def __init__(
        self,
        repository: GalleryRepository,
        blob_store: BlobStore,
        reclaim_blobs_on_delete: bool = True,
    ) -> None:
        self.repository = repository
        self.blob_store = blob_store
        self.reclaim_blobs_on_delete = reclaim_blobs_on_delete

    async def create_gallery(
        self,
        title: str | None,
        description: str | None,
        owner_id: uuid.UUID | str | None,
    ) -> Gallery:
        if not str(title or "").strip() or not str(owner_id or "").strip():
            raise InvalidArgumentError("title and ownerId are required")
        return await self.repository.create(str(title), description, parse_user_id(owner_id, "ownerId"))

    async def list_galleries(self, owner_id: uuid.UUID) -> Sequence[Gallery]:
        return await self.repository.list_by_owner(owner_id)

    async def delete_gallery(self, gallery_id: uuid.UUID) -> bool:
        """Delete a gallery. Always reports success, whether or not it existed."""
        keys = await self.repository.delete(gallery_id)
        if self.reclaim_blobs_on_delete:
            await self._reclaim(gallery_id, keys)
        return True

    async def _reclaim(self, gallery_id: uuid.UUID, keys: list[str]) -> None:
        for key in keys:
            try:
                await self.blob_store.delete(key)
            except StorageError:
                logger.warning("Could not reclaim blob %s of gallery id=%s", key, gallery_id, exc_info=True)
