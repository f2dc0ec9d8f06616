"""
Action Item Model
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import String, ForeignKey, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ActionItemPriority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionItemStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActionItem(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "action_items"

    meeting_id: Mapped[str] = mapped_column(
        ForeignKey("meetings.id", ondelete="CASCADE"), index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    speaker: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    assignee: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    priority: Mapped[str] = mapped_column(
        String(10), default=ActionItemPriority.MEDIUM.value, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=ActionItemStatus.PENDING.value, index=True
    )
    created_by: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    meeting: Mapped["Meeting"] = relationship(back_populates="action_items")
