"""
Action item endpoints
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.deps import CurrentUserDep, SessionDep
from app.core.errors import NotFoundError
from app.models.action_item import ActionItemPriority, ActionItemStatus
from app.schemas.action_item import (
    ActionItemCreate,
    ActionItemListResponse,
    ActionItemResponse,
    ActionItemUpdate,
)
from app.schemas.common import PageMeta, PaginationParams, get_pagination
from app.services.action_item_service import ActionItemService
from app.services.meeting_service import MeetingService

router = APIRouter()


@router.get("", response_model=ActionItemListResponse)
async def list_action_items(
    db: SessionDep,
    current_user: CurrentUserDep,
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    meeting_id: Optional[str] = Query(None),
    status_filter: Optional[ActionItemStatus] = Query(None, alias="status"),
    priority: Optional[ActionItemPriority] = Query(None),
    speaker: Optional[str] = Query(None),
):
    items, total = await ActionItemService(db).list_action_items(
        current_user.id,
        meeting_id=meeting_id,
        status=status_filter,
        priority=priority,
        speaker=speaker,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return ActionItemListResponse(
        **PageMeta.build(total, pagination).model_dump(),
        action_items=[ActionItemResponse.model_validate(i) for i in items],
    )


@router.post("", response_model=ActionItemResponse, status_code=status.HTTP_201_CREATED)
async def create_action_item(
    item_in: ActionItemCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    if not await MeetingService(db).get_meeting(item_in.meeting_id, current_user.id):
        raise NotFoundError("Meeting not found")
    return await ActionItemService(db).create_action_item(item_in, created_by=current_user.id)


@router.put("/{action_item_id}", response_model=ActionItemResponse)
async def update_action_item(
    action_item_id: str,
    item_in: ActionItemUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    action_item = await ActionItemService(db).update_action_item(action_item_id, current_user.id, item_in)
    if not action_item:
        raise NotFoundError("Action item not found")
    return action_item


@router.delete("/{action_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_action_item(
    action_item_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    if not await ActionItemService(db).delete_action_item(action_item_id, current_user.id):
        raise NotFoundError("Action item not found")
