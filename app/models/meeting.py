"""
Meeting Model

One row per uploaded recording, plus the processing status enum.
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Integer, DateTime, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class MeetingStatus(str, enum.Enum):
    QUEUED = "queued"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (MeetingStatus.COMPLETED, MeetingStatus.FAILED)

    def predecessors(self) -> tuple["MeetingStatus", ...]:
        """States a meeting may legally be in right before entering this one"""
        return _PREDECESSORS[self]


_PREDECESSORS = {
    MeetingStatus.QUEUED: (),
    MeetingStatus.TRANSCRIBING: (MeetingStatus.QUEUED,),
    MeetingStatus.ANALYZING: (MeetingStatus.TRANSCRIBING,),
    MeetingStatus.COMPLETED: (MeetingStatus.ANALYZING,),
    MeetingStatus.FAILED: (
        MeetingStatus.QUEUED,
        MeetingStatus.TRANSCRIBING,
        MeetingStatus.ANALYZING,
    ),
}

IN_PROGRESS_STATUSES = (
    MeetingStatus.QUEUED,
    MeetingStatus.TRANSCRIBING,
    MeetingStatus.ANALYZING,
)


class Meeting(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "meetings"
    __table_args__ = (
        Index("ix_meetings_user_status", "user_id", "status"),
        Index("ix_meetings_user_created", "user_id", "created_at"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Storage path, never a public URL
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=MeetingStatus.QUEUED.value, index=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    transcriptions: Mapped[List["Transcription"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Transcription.created_at",
    )
    action_items: Mapped[List["ActionItem"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ActionItem.created_at",
    )
