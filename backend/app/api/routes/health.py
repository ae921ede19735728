# app/api/routes/health.py
from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings

router = APIRouter()

@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    # never echo keys, only whether the elevated scope is usable
    return {"ok": True, "backend": settings.BACKEND, "service_role": settings.has_service_role}
