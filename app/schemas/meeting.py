"""
Meeting Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.meeting import MeetingStatus
from app.schemas.action_item import ActionItemResponse
from app.schemas.common import PageMeta
from app.schemas.transcription import TranscriptionResponse


# Meeting ------------------------------------------------------------
class MeetingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    file_path: str
    file_size: Optional[int] = None
    user_id: str


class MeetingUpdate(BaseModel):
    """Fields a user may edit"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    summary: Optional[str] = None


class MeetingResponse(BaseModel):
    id: str
    title: str
    duration: Optional[int] = None
    file_size: Optional[int] = None
    summary: Optional[str] = None
    status: MeetingStatus
    failure_reason: Optional[str] = None
    user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MeetingDetailResponse(MeetingResponse):
    file_url: Optional[str] = None
    transcriptions: List[TranscriptionResponse] = []
    action_items: List[ActionItemResponse] = []


class MeetingListResponse(PageMeta):
    meetings: List[MeetingResponse]


class MeetingUploadResponse(BaseModel):
    meeting_id: str
    status: MeetingStatus
    file_size: int
    message: str = "Recording uploaded successfully. Processing will begin shortly."


class MeetingStats(BaseModel):
    total_meetings: int
    total_duration: int
    average_duration: int
    active_meetings: int
