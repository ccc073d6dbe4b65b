from pixhub.models.gallery import Gallery, GalleryMedia, MediaType
from pixhub.models.user import User

__all__ = [
    "Gallery",
    "GalleryMedia",
    "MediaType",
    "User",
]
