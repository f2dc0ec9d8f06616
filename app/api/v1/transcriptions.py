"""
Transcription endpoints
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.core.deps import CurrentUserDep, SessionDep
from app.core.errors import NotFoundError
from app.schemas.common import PageMeta, PaginationParams, get_pagination
from app.schemas.transcription import (
    ChatSegmentListResponse,
    ChatSegmentResponse,
    TranscriptionDetailResponse,
    TranscriptionStats,
)
from app.services.meeting_service import MeetingService
from app.services.transcription_service import TranscriptionService

router = APIRouter()


@router.get("/meetings/{meeting_id}", response_model=TranscriptionDetailResponse)
async def get_meeting_transcription(
    meeting_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    """Latest transcription of a meeting, with its chat segments"""
    transcription = await TranscriptionService(db).get_latest_for_meeting(meeting_id, current_user.id)
    if not transcription:
        raise NotFoundError("Transcription not found")
    return transcription


@router.get("/meetings/{meeting_id}/stats", response_model=TranscriptionStats)
async def get_meeting_transcription_stats(
    meeting_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    if not await MeetingService(db).get_meeting(meeting_id, current_user.id):
        raise NotFoundError("Meeting not found")
    return await TranscriptionService(db).get_stats_for_meeting(meeting_id, current_user.id)


@router.get("/{transcription_id}", response_model=TranscriptionDetailResponse)
async def get_transcription(
    transcription_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    transcription = await TranscriptionService(db).get_transcription(transcription_id, current_user.id)
    if not transcription:
        raise NotFoundError("Transcription not found")
    return transcription


@router.get("/{transcription_id}/chat-segments", response_model=ChatSegmentListResponse)
async def list_chat_segments(
    transcription_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
):
    service = TranscriptionService(db)
    if not await service.get_transcription(transcription_id, current_user.id):
        raise NotFoundError("Transcription not found")
    segments, total = await service.get_chat_segments(
        transcription_id, current_user.id, limit=pagination.limit, offset=pagination.offset
    )
    return ChatSegmentListResponse(
        **PageMeta.build(total, pagination).model_dump(),
        chat_segments=[ChatSegmentResponse.model_validate(s) for s in segments],
    )


@router.delete("/{transcription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transcription(
    transcription_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
):
    if not await TranscriptionService(db).delete_transcription(transcription_id, current_user.id):
        raise NotFoundError("Transcription not found")
