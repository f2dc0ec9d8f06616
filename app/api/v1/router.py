"""
API Router configuration
"""

from fastapi import APIRouter

from app.api.v1 import (
    health,
    auth,
    meetings,
    transcriptions,
    action_items,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(meetings.router, prefix="/meetings", tags=["meetings"])
api_router.include_router(transcriptions.router, prefix="/transcriptions", tags=["transcriptions"])
api_router.include_router(action_items.router, prefix="/action-items", tags=["action-items"])
