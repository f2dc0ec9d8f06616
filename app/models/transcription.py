"""
Transcription Models

Transcription (full text + metadata) and its diarized ChatSegments.
"""

from typing import List, Optional

from sqlalchemy import String, Integer, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Transcription(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "transcriptions"

    meeting_id: Mapped[str] = mapped_column(
        ForeignKey("meetings.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="completed")
    full_text: Mapped[str] = mapped_column(Text, nullable=False)
    # Provider-generated short summary, not the LLM meeting summary
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    confidence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 0-100
    language: Mapped[str] = mapped_column(String(10), default="en")
    word_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Relationships
    meeting: Mapped["Meeting"] = relationship(back_populates="transcriptions")
    chat_segments: Mapped[List["ChatSegment"]] = relationship(
        back_populates="transcription",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatSegment.start_time",
    )


class ChatSegment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "chat_segments"

    transcription_id: Mapped[str] = mapped_column(
        ForeignKey("transcriptions.id", ondelete="CASCADE"), index=True
    )
    speaker_number: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    # Milliseconds from the start of the recording
    start_time: Mapped[int] = mapped_column(Integer, index=True)
    end_time: Mapped[int] = mapped_column(Integer)
    confidence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    transcription: Mapped["Transcription"] = relationship(back_populates="chat_segments")
