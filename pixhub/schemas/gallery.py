from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from pixhub.models.gallery import Gallery, GalleryMedia, MediaType
from pixhub.schemas.common import CamelModel


class GalleryCreate(CamelModel):
    # Optional here so that missing fields surface as invalid_argument from the service.
    title: str | None = None
    description: str | None = None
    owner_id: str | None = None


class MediaOut(CamelModel):
    id: int
    title: str
    url: str
    type: MediaType
    owner_id: uuid.UUID
    is_favorite: bool = False

    @classmethod
    def from_row(cls, row: GalleryMedia) -> MediaOut:
        return cls(
            id=row.id,
            title=row.title,
            url=row.url,
            type=MediaType(row.type),
            owner_id=row.owner_id,
            is_favorite=row.is_favorite,
        )


class GalleryOut(CamelModel):
    id: uuid.UUID
    title: str
    description: str = ""
    owner_id: uuid.UUID
    media: list[MediaOut] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_row(cls, row: Gallery) -> GalleryOut:
        return cls(
            id=row.id,
            title=row.title,
            description=row.description or "",
            owner_id=row.owner_id,
            media=[MediaOut.from_row(m) for m in row.media],
            created_at=row.created_at,
        )


class DeleteOut(CamelModel):
    success: bool
