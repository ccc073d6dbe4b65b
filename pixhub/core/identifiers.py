from __future__ import annotations

import uuid
from typing import NewType

from pixhub.core.errors import InvalidArgumentError

UserId = NewType("UserId", uuid.UUID)
GalleryId = NewType("GalleryId", uuid.UUID)


def parse_identifier(raw: object, field: str) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    value = str(raw or "").strip()
    if not value:
        raise InvalidArgumentError(f"{field} is required")
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"{field} is not a valid identifier") from exc


def parse_user_id(raw: object, field: str = "userId") -> UserId:
    return UserId(parse_identifier(raw, field))


def parse_gallery_id(raw: object, field: str = "galleryId") -> GalleryId:
    return GalleryId(parse_identifier(raw, field))
