"""
Stuck Meeting Reconciliation Job

Meetings whose pipeline died with the process (crash, deploy, worker kill)
stay in queued/transcribing/analyzing forever. This sweep flags them failed.
"""

import asyncio
from datetime import timedelta
from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.infra.db import AsyncSessionLocal, SessionFactory, engine
from app.services.meeting_service import MeetingService

logger = get_logger(__name__)


async def reconcile_stuck_meetings(
    session_factory: Optional[SessionFactory] = None,
    timeout_minutes: Optional[int] = None,
) -> int:
    """Flag meetings stuck in progress longer than the configured timeout"""
    minutes = timeout_minutes if timeout_minutes is not None else settings.stuck_meeting_timeout_minutes
    async with (session_factory or AsyncSessionLocal)() as session:
        return await MeetingService(session).fail_stuck_meetings(timedelta(minutes=minutes))


async def run_reconcile_loop(interval_seconds: Optional[int] = None) -> None:
    """Periodic sweep for the API process lifespan"""
    interval = interval_seconds or settings.reconcile_interval_seconds
    while True:
        try:
            await reconcile_stuck_meetings()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Stuck meeting sweep failed: {e}", exc_info=True)
        await asyncio.sleep(interval)


async def _reconcile_once() -> int:
    try:
        return await reconcile_stuck_meetings()
    finally:
        await engine.dispose()


def reconcile_meetings() -> int:
    """
    RQ Job entry point (Sync wrapper)
    """
    return asyncio.run(_reconcile_once())
