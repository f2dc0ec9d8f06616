"""
Action Item Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.action_item import ActionItemPriority, ActionItemStatus
from app.schemas.common import PageMeta


class ActionItemCreate(BaseModel):
    meeting_id: str
    description: str = Field(..., min_length=1)
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    speaker: Optional[str] = Field(None, max_length=255)
    assignee: Optional[str] = Field(None, max_length=255)
    due_date: Optional[datetime] = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be blank")
        return v.strip()


class ActionItemUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    priority: Optional[ActionItemPriority] = None
    status: Optional[ActionItemStatus] = None
    speaker: Optional[str] = Field(None, max_length=255)
    assignee: Optional[str] = Field(None, max_length=255)
    due_date: Optional[datetime] = None


class ActionItemResponse(BaseModel):
    id: str
    meeting_id: str
    description: str
    speaker: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: ActionItemPriority
    status: ActionItemStatus
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ActionItemListResponse(PageMeta):
    action_items: List[ActionItemResponse]
