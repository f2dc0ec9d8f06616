"""
Health check endpoint
"""

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "env": settings.env}
