from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pixhub.db.base import Base
from pixhub.models.common import CreatedAtMixin


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class Gallery(CreatedAtMixin, Base):
    __tablename__ = "galleries"
    __table_args__ = (Index("ix_galleries_owner_created", "owner_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # Checked against the identity store once, at creation. No foreign key.
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)

    media: Mapped[list[GalleryMedia]] = relationship(
        back_populates="gallery",
        order_by="GalleryMedia.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class GalleryMedia(CreatedAtMixin, Base):
    __tablename__ = "gallery_media"
    __table_args__ = (CheckConstraint("type in ('image','video')", name="ck_gallery_media_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    gallery_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("galleries.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(String(1200), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    gallery: Mapped[Gallery] = relationship(back_populates="media")
