from fastapi import APIRouter

from resume_forge.ai.config import load_ai_config
from resume_forge.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    ai = load_ai_config()
    return {
        "status": "healthy",
        "ai_enabled": ai.enabled,
        "ocr_enabled": settings.ocr_enabled,
        "cache_enabled": settings.cache_enabled,
    }
