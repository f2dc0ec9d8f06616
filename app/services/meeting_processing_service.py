"""
Meeting Processing Service

Background state machine for one uploaded recording:

    queued -> transcribing -> analyzing -> completed
                   \\              \\
                    -> failed       -> failed

Transcription is load-bearing: any failure there ends the run as failed.
Enrichment (action items, title/summary) is best-effort: each sub-task
fails on its own without affecting the other or the final status.
"""

import asyncio
from typing import Optional

from app.core.errors import RateLimitedError, SummarizationError
from app.core.logging import LogContext, get_logger
from app.infra.db import AsyncSessionLocal, SessionFactory
from app.models.meeting import MeetingStatus
from app.schemas.meeting import MeetingUpdate
from app.schemas.transcription import TranscriptResult
from app.services.action_item_service import ActionItemService
from app.services.meeting_service import MeetingService
from app.services.stt_clients.deepgram_client import DeepgramClient
from app.services.summarization_service import SummarizationService
from app.services.transcription_service import TranscriptionService, round_half_up

logger = get_logger(__name__)


class StatusTransitionError(Exception):
    """A guarded status write did not apply"""

    def __init__(self, meeting_id: str, status: MeetingStatus):
        super().__init__(f"Meeting {meeting_id} could not move to {status.value}")
        self.meeting_id = meeting_id
        self.status = status


class MeetingGoneError(Exception):
    """The meeting was deleted while its pipeline was running"""


class MeetingProcessingService:
    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        transcriber: Optional[DeepgramClient] = None,
        summarizer: Optional[SummarizationService] = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.transcriber = transcriber or DeepgramClient()
        self.summarizer = summarizer or SummarizationService()

    async def process_meeting(
        self, meeting_id: str, audio_url: str, owner_id: str
    ) -> Optional[MeetingStatus]:
        """
        Run one meeting to a terminal state.

        Returns the terminal status reached, or None when the run did not
        start (meeting not queued) or the meeting disappeared mid-run. Never
        raises: errors end the run as failed.
        """
        with LogContext(meeting_id=meeting_id):
            if not await self._claim(meeting_id):
                logger.warning(f"Meeting {meeting_id} is not queued, skipping processing")
                return None

            try:
                transcript = await self._transcribe(meeting_id, audio_url)
                await self._enrich(meeting_id, transcript, owner_id)
                await self._transition(meeting_id, MeetingStatus.COMPLETED, failure_reason=None)
                logger.info(f"Meeting {meeting_id} processing completed")
                return MeetingStatus.COMPLETED
            except MeetingGoneError:
                logger.info(f"Meeting {meeting_id} was deleted during processing, stopping")
                return None
            except Exception as e:
                logger.error(f"Meeting {meeting_id} processing failed: {e}", exc_info=True)
                return await self._mark_failed(meeting_id, e)

    async def _claim(self, meeting_id: str) -> bool:
        """queued -> transcribing, atomically; doubles as the re-invocation guard"""
        async with self.session_factory() as session:
            claimed = await MeetingService(session).set_status(meeting_id, MeetingStatus.TRANSCRIBING)
        if claimed:
            logger.info(f"Meeting {meeting_id} status -> {MeetingStatus.TRANSCRIBING.value}")
        return claimed

    async def _transition(self, meeting_id: str, status: MeetingStatus, **fields) -> None:
        async with self.session_factory() as session:
            service = MeetingService(session)
            if not await service.set_status(meeting_id, status, **fields):
                await self._raise_for_missed_transition(service, meeting_id, status)
        logger.info(f"Meeting {meeting_id} status -> {status.value}")

    async def _raise_for_missed_transition(
        self, service: MeetingService, meeting_id: str, status: MeetingStatus
    ) -> None:
        if await service.get_status(meeting_id) is None:
            raise MeetingGoneError(meeting_id)
        raise StatusTransitionError(meeting_id, status)

    async def _transcribe(self, meeting_id: str, audio_url: str) -> str:
        """
        Call the speech provider, then commit transcript, chat segments,
        duration and the analyzing status in one transaction.
        """
        result: TranscriptResult = await self.transcriber.transcribe(audio_url)

        async with self.session_factory() as session:
            try:
                transcription = await TranscriptionService(session).create_transcription(
                    meeting_id, result, commit=False
                )
                meeting_service = MeetingService(session)
                moved = await meeting_service.set_status(
                    meeting_id,
                    MeetingStatus.ANALYZING,
                    commit=False,
                    duration=round_half_up(result.duration),
                )
                if not moved:
                    await session.rollback()
                    await self._raise_for_missed_transition(
                        meeting_service, meeting_id, MeetingStatus.ANALYZING
                    )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info(
            f"Stored transcription {transcription.id} for meeting {meeting_id}: "
            f"{len(result.utterances)} segments, {round_half_up(result.duration)}s"
        )
        logger.info(f"Meeting {meeting_id} status -> {MeetingStatus.ANALYZING.value}")
        return result.transcript

    async def _enrich(self, meeting_id: str, transcript: str, owner_id: str) -> None:
        """Fan out both enrichment sub-tasks and wait for both, whatever happens"""
        results = await asyncio.gather(
            self._extract_action_items(meeting_id, transcript, owner_id),
            self._generate_summary(meeting_id, transcript),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, MeetingGoneError):
                raise result

    async def _extract_action_items(self, meeting_id: str, transcript: str, owner_id: str) -> int:
        try:
            items = await self.summarizer.extract_action_items(transcript)
            if not items:
                logger.info(f"No action items found for meeting {meeting_id}")
                return 0
            async with self.session_factory() as session:
                saved = await ActionItemService(session).bulk_create_extracted(
                    meeting_id, items, created_by=owner_id
                )
            logger.info(f"Saved {len(saved)} action items for meeting {meeting_id}")
            return len(saved)
        except RateLimitedError:
            logger.warning(f"Skipping action item extraction for meeting {meeting_id} due to rate limit")
        except SummarizationError as e:
            logger.warning(
                f"Action item extraction failed for meeting {meeting_id} "
                f"({e.code}, retryable={e.retryable}): {e}"
            )
        except Exception as e:
            logger.error(f"Action item extraction failed for meeting {meeting_id}: {e}", exc_info=True)
        return 0

    async def _generate_summary(self, meeting_id: str, transcript: str) -> bool:
        try:
            result = await self.summarizer.generate_summary_and_title(transcript)
            if result is None:
                return False
            async with self.session_factory() as session:
                meeting = await MeetingService(session).update_meeting(
                    meeting_id, None, MeetingUpdate(title=result.title, summary=result.summary)
                )
            if meeting is None:
                raise MeetingGoneError(meeting_id)
            logger.info(f"Updated title and summary for meeting {meeting_id}")
            return True
        except MeetingGoneError:
            raise
        except Exception as e:
            logger.error(f"Summary generation failed for meeting {meeting_id}: {e}", exc_info=True)
            return False

    async def _mark_failed(self, meeting_id: str, error: Exception) -> Optional[MeetingStatus]:
        reason = getattr(error, "code", None) or type(error).__name__
        message = f"{reason}: {error}"[:1000]
        try:
            async with self.session_factory() as session:
                service = MeetingService(session)
                marked = await service.set_status(
                    meeting_id, MeetingStatus.FAILED, failure_reason=message
                )
                current = None if marked else await service.get_status(meeting_id)
        except Exception:
            logger.error(f"Could not mark meeting {meeting_id} as failed", exc_info=True)
            return None
        if not marked:
            if current is not None and current.is_terminal:
                logger.info(f"Meeting {meeting_id} already {current.value}, failure not recorded")
            else:
                logger.info(f"Meeting {meeting_id} no longer exists, failure not recorded")
            return None
        logger.info(f"Meeting {meeting_id} status -> {MeetingStatus.FAILED.value}")
        return MeetingStatus.FAILED
