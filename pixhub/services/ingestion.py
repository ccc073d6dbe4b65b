from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from pixhub.core.errors import InvalidArgumentError, NotFoundError, PayloadTooLargeError
from pixhub.models.gallery import GalleryMedia, MediaType
from pixhub.services.galleries import GalleryRepository
from pixhub.services.identity import IdentityGateway
from pixhub.services.storage import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(slots=True)
class IncomingUpload:
    filename: str
    content_type: str
    data: bytes


def classify_media_type(content_type: str | None) -> MediaType:
    # Coarse on purpose: anything that is not image/* is stored as video.
    if str(content_type or "").strip().lower().startswith("image"):
        return MediaType.IMAGE
    return MediaType.VIDEO


class MediaIngestionPipeline:
    """Stores an uploaded file and appends the matching media record to a gallery.

    The blob is written before the append. If the append then fails (for
    instance because the gallery was deleted in between) the blob is left in
    place; the orphan reconciliation job removes it later.
    """

    def __init__(
        self,
        repository: GalleryRepository,
        identity: IdentityGateway,
        blob_store: BlobStore,
        max_upload_bytes: int,
    ) -> None:
        self.repository = repository
        self.identity = identity
        self.blob_store = blob_store
        self.max_upload_bytes = max_upload_bytes

    def _validate(self, upload: IncomingUpload | None) -> IncomingUpload:
        if upload is None:
            raise InvalidArgumentError("Missing file")
        if not upload.data:
            raise InvalidArgumentError("Empty file")
        if self.max_upload_bytes > 0 and len(upload.data) > self.max_upload_bytes:
            raise PayloadTooLargeError(f"File too large (max {self.max_upload_bytes // (1024 * 1024)} MB)")
        return upload

    async def ingest(
        self,
        gallery_id: uuid.UUID,
        uploader_id: uuid.UUID,
        upload: IncomingUpload | None,
    ) -> GalleryMedia:
        upload = self._validate(upload)
        if not await self.identity.user_exists(uploader_id):
            raise NotFoundError("User not found")
        if not await self.repository.exists(gallery_id):
            raise NotFoundError("Gallery not found")

        content_type = str(upload.content_type or DEFAULT_CONTENT_TYPE)
        title = str(upload.filename or "").strip() or "untitled"
        stored = await self.blob_store.put(upload.data, title, content_type)

        media = GalleryMedia(
            title=title,
            url=stored.url,
            storage_key=stored.key,
            type=classify_media_type(content_type).value,
            owner_id=uploader_id,
            is_favorite=False,
        )
        try:
            media = await self.repository.append_media(gallery_id, media)
        except NotFoundError:
            logger.warning(
                "Gallery id=%s vanished before append; blob %s left for reconciliation",
                gallery_id,
                stored.key,
            )
            raise
        logger.info("Ingested media id=%s into gallery id=%s (%s)", media.id, gallery_id, media.type)
        return media
