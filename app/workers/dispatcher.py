"""
Pipeline Dispatcher

Hands a queued meeting to the processing pipeline without blocking the
HTTP response. Two backends:

- INLINE: asyncio tasks in this process, bounded by a semaphore
- RQ: one Redis Queue job per meeting, keyed by meeting id
"""

import asyncio
from functools import lru_cache
from typing import Callable, Optional, Set

from app.core.config import settings
from app.core.logging import get_logger
from app.infra.queue import QueueFactory
from app.infra.redis import get_sync_redis
from app.services.meeting_processing_service import MeetingProcessingService

logger = get_logger(__name__)

PROCESS_MEETING_JOB = "app.workers.jobs.process_meeting.process_meeting"


def meeting_job_id(meeting_id: str) -> str:
    return f"meeting:{meeting_id}"


class PipelineDispatcher:
    async def dispatch(self, meeting_id: str, audio_url: str, owner_id: str) -> None:
        raise NotImplementedError

    async def shutdown(self) -> None:
        """Release resources; pending work handling is backend specific"""


class InlineDispatcher(PipelineDispatcher):
    def __init__(
        self,
        max_concurrency: Optional[int] = None,
        service_factory: Callable[[], MeetingProcessingService] = MeetingProcessingService,
    ):
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.pipeline_max_concurrency)
        self._service_factory = service_factory
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def dispatch(self, meeting_id: str, audio_url: str, owner_id: str) -> None:
        if meeting_id in self._in_flight:
            logger.warning(f"Meeting {meeting_id} already dispatched, ignoring duplicate")
            return
        self._in_flight.add(meeting_id)
        task = asyncio.create_task(
            self._run(meeting_id, audio_url, owner_id), name=meeting_job_id(meeting_id)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(f"Dispatched meeting {meeting_id} for processing")

    async def _run(self, meeting_id: str, audio_url: str, owner_id: str) -> None:
        try:
            async with self._semaphore:
                await self._service_factory().process_meeting(meeting_id, audio_url, owner_id)
        finally:
            self._in_flight.discard(meeting_id)

    async def wait_idle(self) -> None:
        """Wait for every dispatched run to finish"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        # Runs cut short here are caught by the stuck-meeting sweep later
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class RQDispatcher(PipelineDispatcher):
    def __init__(self, queue_name: Optional[str] = None):
        self.queue_name = queue_name or settings.worker_queues[0]

    def _enqueue(self, meeting_id: str, audio_url: str, owner_id: str) -> None:
        connection = get_sync_redis()
        try:
            queue = QueueFactory.get_queue(connection, self.queue_name)
            job_id = meeting_job_id(meeting_id)
            if queue.get_job(job_id) is not None:
                logger.warning(f"Job {job_id} already exists, ignoring duplicate")
                return
            queue.enqueue(
                PROCESS_MEETING_JOB,
                meeting_id,
                audio_url,
                owner_id,
                job_id=job_id,
                job_timeout=int(
                    settings.transcription_timeout_seconds + 2 * settings.openai_timeout_seconds + 60
                ),
            )
        finally:
            connection.close()

    async def dispatch(self, meeting_id: str, audio_url: str, owner_id: str) -> None:
        # RQ is synchronous; keep the event loop free
        await asyncio.to_thread(self._enqueue, meeting_id, audio_url, owner_id)
        logger.info(f"Enqueued meeting {meeting_id} on '{self.queue_name}'")


@lru_cache()
def get_pipeline_dispatcher() -> PipelineDispatcher:
    """Dependency returning the configured dispatcher singleton"""
    if settings.pipeline_backend == "RQ":
        return RQDispatcher()
    return InlineDispatcher()
