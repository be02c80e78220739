# pagecms/api/endpoints/health.py
from fastapi import APIRouter

from pagecms.core.settings import settings

router = APIRouter()


@router.get("/ping")
def ping():
    return {"success": True, "data": {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}}
