# pagecms/api/router.py
from fastapi import APIRouter

from .endpoints import activity, content, health, pages

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(content.router, prefix="/content", tags=["content"])
api_router.include_router(pages.router, prefix="/pages", tags=["pages"])
api_router.include_router(activity.router, prefix="/activity", tags=["activity"])
