"""
Transcription Schemas

Provider-neutral transcript result (what the speech gateway returns) and the
API response models for persisted transcriptions and chat segments.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.common import PageMeta


# Speech provider result ---------------------------------------------
class TranscriptUtterance(BaseModel):
    speaker: int = 0
    text: str
    start: float  # seconds
    end: float  # seconds
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class TranscriptResult(BaseModel):
    transcript: str
    words: List[str] = []
    utterances: List[TranscriptUtterance] = []
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    duration: float = 0.0  # seconds
    summary: Optional[str] = None
    language: str = "en"
    topics: List[str] = []
    sentiment: Optional[str] = None


# Persisted ----------------------------------------------------------
class ChatSegmentResponse(BaseModel):
    id: str
    transcription_id: str
    speaker_number: int
    text: str
    start_time: int
    end_time: int
    confidence: Optional[int] = None

    class Config:
        from_attributes = True


class TranscriptionResponse(BaseModel):
    id: str
    meeting_id: str
    status: str
    full_text: str
    summary: Optional[str] = None
    confidence: Optional[int] = None
    language: str
    word_count: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TranscriptionDetailResponse(TranscriptionResponse):
    chat_segments: List[ChatSegmentResponse] = []


class ChatSegmentListResponse(PageMeta):
    chat_segments: List[ChatSegmentResponse]


class SpeakerStats(BaseModel):
    speaker_number: int
    segment_count: int
    talk_time_ms: int


class TranscriptionStats(BaseModel):
    transcription_id: Optional[str] = None
    segment_count: int = 0
    speaker_count: int = 0
    word_count: int = 0
    confidence: Optional[int] = None
    spoken_span_ms: int = 0
    speakers: List[SpeakerStats] = []
