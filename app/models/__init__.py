from app.models.action_item import ActionItem, ActionItemPriority, ActionItemStatus
from app.models.base import Base
from app.models.meeting import Meeting, MeetingStatus
from app.models.transcription import ChatSegment, Transcription

__all__ = [
    "Base",
    "Meeting",
    "MeetingStatus",
    "Transcription",
    "ChatSegment",
    "ActionItem",
    "ActionItemPriority",
    "ActionItemStatus",
]
