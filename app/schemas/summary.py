"""
Summary Schemas

Shapes the LLM is asked to return for enrichment.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.action_item import ActionItemPriority


class ExtractedActionItem(BaseModel):
    description: str = Field(..., min_length=1)
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    speaker: Optional[str] = None
    assignee: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        # Models occasionally answer "High" or "urgent"
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in {p.value for p in ActionItemPriority}:
                return ActionItemPriority.MEDIUM
        return v or ActionItemPriority.MEDIUM

    @field_validator("speaker", "assignee", mode="before")
    @classmethod
    def stringify(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v[:255] or None


class ActionItemsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action_items: List[ExtractedActionItem] = Field(default_factory=list, alias="actionItems")


class SummaryAndTitle(BaseModel):
    title: Optional[str] = None
    summary: Optional[str] = None
