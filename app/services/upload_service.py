"""
Meeting Upload Service

Accepts a finished recording, stores it privately, creates the meeting row
and hands it to the processing pipeline. Returns as soon as the pipeline
has been dispatched; processing runs in the background.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import StorageError, ValidationError
from app.core.logging import get_logger
from app.infra.storage import StorageClient, UploadResult
from app.models.meeting import Meeting, MeetingStatus
from app.schemas.meeting import MeetingCreate
from app.services.meeting_service import MeetingService
from app.workers.dispatcher import PipelineDispatcher

logger = get_logger(__name__)


def placeholder_title(now: Optional[datetime] = None) -> str:
    """Title used until the summarizer proposes one"""
    now = now or datetime.now(timezone.utc)
    return f"Meeting {now.strftime('%Y-%m-%d %H:%M')}"


def normalize_content_type(content_type: Optional[str]) -> str:
    # "audio/webm;codecs=opus" -> "audio/webm"
    return (content_type or "").split(";")[0].strip().lower()


@dataclass
class UploadedMeeting:
    meeting: Meeting
    upload: UploadResult


class MeetingUploadService:
    def __init__(
        self,
        session: AsyncSession,
        storage: StorageClient,
        dispatcher: PipelineDispatcher,
    ):
        self.session = session
        self.storage = storage
        self.dispatcher = dispatcher

    def validate(self, data: bytes, content_type: Optional[str]) -> str:
        """Reject empty, oversized or non-webm recordings. Returns the bare MIME type."""
        mime = normalize_content_type(content_type)
        if mime not in settings.allowed_upload_mime_types:
            raise ValidationError(
                "Only WebM recordings are supported",
                details={"content_type": content_type, "allowed": settings.allowed_upload_mime_types},
            )
        if not data:
            raise ValidationError("Recording file is empty")
        if len(data) > settings.max_upload_size_bytes:
            raise ValidationError(
                f"Recording exceeds the {settings.max_upload_size_mb}MB limit",
                details={"size": len(data), "max_size": settings.max_upload_size_bytes},
            )
        return mime

    async def upload_recording(
        self,
        owner_id: str,
        data: bytes,
        filename: Optional[str],
        content_type: Optional[str],
    ) -> UploadedMeeting:
        mime = self.validate(data, content_type)

        upload = await self.storage.upload(data, owner_id, filename, content_type=mime)
        meetings = MeetingService(self.session)
        try:
            meeting = await meetings.create_meeting(
                MeetingCreate(
                    title=placeholder_title(),
                    file_path=upload.path,
                    file_size=upload.size,
                    user_id=owner_id,
                )
            )
        except Exception:
            await self.session.rollback()
            await self._discard_upload(upload.path)
            raise
        logger.info(f"Created meeting {meeting.id} for user {owner_id} ({upload.size} bytes)")

        try:
            audio_url = await self.storage.sign_url(upload.path)
            await self.dispatcher.dispatch(meeting.id, audio_url, owner_id)
        except Exception as e:
            reason = getattr(e, "code", None) or type(e).__name__
            await meetings.set_status(
                meeting.id, MeetingStatus.FAILED, failure_reason=f"{reason}: {e}"[:1000]
            )
            logger.error(f"Could not start processing for meeting {meeting.id}: {e}")
            raise
        return UploadedMeeting(meeting=meeting, upload=upload)

    async def _discard_upload(self, path: str) -> None:
        try:
            await self.storage.delete(path)
        except StorageError as e:
            logger.error(f"Could not remove orphaned recording {path}: {e}")
