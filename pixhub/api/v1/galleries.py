from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status

from pixhub.api.v1.deps import get_app_settings, get_ingestion_pipeline, get_lifecycle_manager
from pixhub.core.config import Settings
from pixhub.core.identifiers import parse_gallery_id, parse_user_id
from pixhub.schemas.gallery import DeleteOut, GalleryCreate, GalleryOut, MediaOut
from pixhub.services.ingestion import DEFAULT_CONTENT_TYPE, IncomingUpload, MediaIngestionPipeline
from pixhub.services.lifecycle import GalleryLifecycleManager

router = APIRouter(prefix="/gallery", tags=["galleries"])


@router.post("", response_model=GalleryOut, status_code=status.HTTP_201_CREATED)
async def create_gallery(
    payload: GalleryCreate,
    lifecycle: GalleryLifecycleManager = Depends(get_lifecycle_manager),
) -> GalleryOut:
    row = await lifecycle.create_gallery(payload.title, payload.description, payload.owner_id)
    return GalleryOut.from_row(row)


@router.get("/user/{owner_id}", response_model=list[GalleryOut])
async def list_owner_galleries(
    owner_id: str,
    lifecycle: GalleryLifecycleManager = Depends(get_lifecycle_manager),
) -> list[GalleryOut]:
    rows = await lifecycle.list_galleries(parse_user_id(owner_id, "ownerId"))
    return [GalleryOut.from_row(row) for row in rows]


@router.delete("/{gallery_id}", response_model=DeleteOut)
async def delete_gallery(
    gallery_id: str,
    lifecycle: GalleryLifecycleManager = Depends(get_lifecycle_manager),
) -> DeleteOut:
    success = await lifecycle.delete_gallery(parse_gallery_id(gallery_id))
    return DeleteOut(success=success)


@router.post("/{gallery_id}/{user_id}/media", response_model=MediaOut, status_code=status.HTTP_201_CREATED)
async def upload_media(
    gallery_id: str,
    user_id: str,
    file: UploadFile | None = File(default=None),
    pipeline: MediaIngestionPipeline = Depends(get_ingestion_pipeline),
    settings: Settings = Depends(get_app_settings),
) -> MediaOut:
    gid = parse_gallery_id(gallery_id)
    uid = parse_user_id(user_id)

    upload: IncomingUpload | None = None
    if file is not None:
        # One byte past the limit is enough to tell the pipeline the file is too large.
        data = await file.read(settings.max_upload_bytes + 1) if settings.max_upload_bytes > 0 else await file.read()
        upload = IncomingUpload(
            filename=str(file.filename or ""),
            content_type=str(file.content_type or DEFAULT_CONTENT_TYPE),
            data=data,
        )

    media = await pipeline.ingest(gid, uid, upload)
    return MediaOut.from_row(media)
