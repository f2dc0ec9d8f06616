"""
Meeting Processing Job
"""

import asyncio
from typing import Optional

from app.core.logging import get_logger
from app.infra.db import engine
from app.services.meeting_processing_service import MeetingProcessingService

logger = get_logger(__name__)


async def _process_meeting_logic(meeting_id: str, audio_url: str, owner_id: str) -> Optional[str]:
    try:
        status = await MeetingProcessingService().process_meeting(meeting_id, audio_url, owner_id)
    finally:
        # Each RQ job gets a fresh event loop; pooled connections can't outlive it
        await engine.dispose()
    return status.value if status else None


def process_meeting(meeting_id: str, audio_url: str, owner_id: str) -> Optional[str]:
    """
    RQ Job entry point (Sync wrapper)
    """
    logger.info(f"Worker picked up meeting {meeting_id}")
    return asyncio.run(_process_meeting_logic(meeting_id, audio_url, owner_id))
