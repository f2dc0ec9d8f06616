"""
Meeting endpoints
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.core.deps import CurrentUserDep, DispatcherDep, SessionDep, StorageDep
from app.core.errors import NotFoundError, StorageError
from app.core.logging import get_logger
from app.core.rate_limit import meeting_creation_limit
from app.core.security import AuthenticatedUser
from app.models.meeting import MeetingStatus
from app.schemas.action_item import ActionItemListResponse, ActionItemResponse
from app.schemas.common import PageMeta, PaginationParams, get_pagination
from app.schemas.meeting import (
    MeetingDetailResponse,
    MeetingListResponse,
    MeetingResponse,
    MeetingStats,
    MeetingUpdate,
    MeetingUploadResponse,
)
from app.schemas.transcription import TranscriptionResponse
from app.services.action_item_service import ActionItemService
from app.services.meeting_service import MeetingService
from app.services.transcription_service import TranscriptionService
from app.services.upload_service import MeetingUploadService

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=MeetingUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a meeting recording",
)
async def upload_meeting(
    db: SessionDep,
    storage: StorageDep,
    dispatcher: DispatcherDep,
    current_user: Annotated[AuthenticatedUser, Depends(meeting_creation_limit)],
    recording: UploadFile = File(..., description="WebM audio recording"),
):
    """
    Store the recording and start background processing.

    The meeting is returned in `queued` status; poll `GET /meetings/{id}`
    for progress.
    """
    data = await recording.read()
    uploaded = await MeetingUploadService(db, storage, dispatcher).upload_recording(
        current_user.id, data, recording.filename, recording.content_type
    )
    return MeetingUploadResponse(
        meeting_id=uploaded.meeting.id,
        status=MeetingStatus(uploaded.meeting.status),
        file_size=uploaded.upload.size,
    )


@router.get("", response_model=MeetingListResponse)
async def list_meetings(
    db: SessionDep,
    current_user: CurrentUserDep,
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    status_filter: Optional[MeetingStatus] = Query(None, alias="status"),
):
    meetings, total = await MeetingService(db).list_meetings(
        current_user.id, limit=pagination.limit, offset=pagination.offset, status=status_filter
    )
    return MeetingListResponse(
        **PageMeta.build(total, pagination).model_dump(),
        meetings=[MeetingResponse.model_validate(m) for m in meetings],
    )


@router.get("/stats", response_model=MeetingStats)
async def get_meeting_stats(db: SessionDep, current_user: CurrentUserDep):
    return await MeetingService(db).get_user_meeting_stats(current_user.id)


@router.get("/{meeting_id}", response_model=MeetingDetailResponse)
async def get_meeting(
    meeting_id: str,
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
):
    """Meeting with transcriptions, action items and a freshly signed recording URL"""
    meeting = await MeetingService(db).get_meeting(meeting_id, current_user.id, with_relations=True)
    if not meeting:
        raise NotFoundError("Meeting not found")

    file_url = None
    try:
        file_url = await storage.sign_url(meeting.file_path)
    except StorageError as e:
        # Metadata is still useful without a playable recording
        logger.warning(f"Could not sign recording URL for meeting {meeting_id}: {e}")

    response = MeetingDetailResponse.model_validate(meeting)
    response.file_url = file_url
    return response


@router.get("/{meeting_id}/transcriptions", response_model=list[TranscriptionResponse])
async def list_meeting_transcriptions(
    meeting_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    if not await MeetingService(db).get_meeting(meeting_id, current_user.id):
        raise NotFoundError("Meeting not found")
    return await TranscriptionService(db).list_for_meeting(meeting_id, current_user.id)


@router.get("/{meeting_id}/action-items", response_model=ActionItemListResponse)
async def list_meeting_action_items(
    meeting_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
):
    if not await MeetingService(db).get_meeting(meeting_id, current_user.id):
        raise NotFoundError("Meeting not found")
    items, total = await ActionItemService(db).list_action_items(
        current_user.id, meeting_id=meeting_id, limit=pagination.limit, offset=pagination.offset
    )
    return ActionItemListResponse(
        **PageMeta.build(total, pagination).model_dump(),
        action_items=[ActionItemResponse.model_validate(i) for i in items],
    )


@router.put("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting(
    meeting_id: str,
    meeting_in: MeetingUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    meeting = await MeetingService(db).update_meeting(meeting_id, current_user.id, meeting_in)
    if not meeting:
        raise NotFoundError("Meeting not found")
    return meeting


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meeting(
    meeting_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    if not await MeetingService(db).delete_meeting(meeting_id, current_user.id):
        raise NotFoundError("Meeting not found")
