from fastapi import APIRouter

from pixhub.api.v1.auth import router as auth_router
from pixhub.api.v1.galleries import router as galleries_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(galleries_router)
