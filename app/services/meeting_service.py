"""
Meeting Service

CRUD, guarded status transitions and aggregate statistics over meetings.

Calls made with user_id=None are unscoped; only the background pipeline
and maintenance jobs make them.
"""

from datetime import timedelta
from typing import Any, List, Optional, Tuple

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.logging import get_logger
from app.models.base import utcnow
from app.models.meeting import IN_PROGRESS_STATUSES, Meeting, MeetingStatus
from app.schemas.meeting import MeetingCreate, MeetingStats, MeetingUpdate
from app.services.transcription_service import round_half_up

logger = get_logger(__name__)

PROCESSING_TIMEOUT_REASON = "processing_timeout"


class MeetingService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _scoped(self, stmt, meeting_id: str, user_id: Optional[str]):
        stmt = stmt.where(Meeting.id == meeting_id, Meeting.deleted_at.is_(None))
        if user_id:
            stmt = stmt.where(Meeting.user_id == user_id)
        return stmt

    async def create_meeting(self, meeting_in: MeetingCreate) -> Meeting:
        meeting = Meeting(
            title=meeting_in.title,
            file_path=meeting_in.file_path,
            file_size=meeting_in.file_size,
            user_id=meeting_in.user_id,
            status=MeetingStatus.QUEUED.value,
        )
        self.session.add(meeting)
        await self.session.commit()
        await self.session.refresh(meeting)
        return meeting

    async def get_meeting(
        self, meeting_id: str, user_id: Optional[str] = None, with_relations: bool = False
    ) -> Optional[Meeting]:
        stmt = select(Meeting)
        if with_relations:
            stmt = stmt.options(
                selectinload(Meeting.transcriptions),
                selectinload(Meeting.action_items),
            )
        result = await self.session.execute(self._scoped(stmt, meeting_id, user_id))
        return result.scalars().first()

    async def list_meetings(
        self,
        user_id: str,
        limit: int = 10,
        offset: int = 0,
        status: Optional[MeetingStatus] = None,
    ) -> Tuple[List[Meeting], int]:
        conditions = [Meeting.user_id == user_id, Meeting.deleted_at.is_(None)]
        if status:
            conditions.append(Meeting.status == MeetingStatus(status).value)

        total = (
            await self.session.execute(select(func.count(Meeting.id)).where(*conditions))
        ).scalar_one()
        stmt = (
            select(Meeting)
            .where(*conditions)
            .order_by(Meeting.created_at.desc(), Meeting.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update_meeting(
        self,
        meeting_id: str,
        user_id: Optional[str],
        meeting_in: MeetingUpdate,
    ) -> Optional[Meeting]:
        """Apply a title/summary patch. Returns None when the meeting is not found."""
        values = meeting_in.model_dump(exclude_unset=True)
        if values.get("title", "") is None:
            del values["title"]
        if not values:
            return await self.get_meeting(meeting_id, user_id)

        stmt = self._scoped(update(Meeting), meeting_id, user_id).values(**values)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        await self.session.commit()
        if result.rowcount == 0:
            return None

        meeting = await self.get_meeting(meeting_id, user_id)
        if meeting is not None:
            await self.session.refresh(meeting)
        return meeting

    async def set_status(
        self,
        meeting_id: str,
        status: MeetingStatus,
        *,
        commit: bool = True,
        **fields: Any,
    ) -> bool:
        """
        Move a meeting into status, only from its legal predecessor state(s).

        Extra column values (duration, failure_reason) are written in the same
        statement. Returns False when the meeting is missing, deleted or not in
        a predecessor state; nothing is written in that case.
        """
        predecessors = [s.value for s in status.predecessors()]
        if not predecessors:
            raise ValueError(f"{status.value} is an initial state and cannot be entered")

        stmt = (
            update(Meeting)
            .where(
                Meeting.id == meeting_id,
                Meeting.deleted_at.is_(None),
                Meeting.status.in_(predecessors),
            )
            .values(status=status.value, **fields)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if commit:
            await self.session.commit()
        return result.rowcount == 1

    async def get_status(self, meeting_id: str) -> Optional[MeetingStatus]:
        result = await self.session.execute(
            select(Meeting.status).where(Meeting.id == meeting_id, Meeting.deleted_at.is_(None))
        )
        value = result.scalar_one_or_none()
        return MeetingStatus(value) if value else None

    async def delete_meeting(self, meeting_id: str, user_id: str) -> bool:
        """Soft delete. Deleting an already deleted meeting is a no-op that still succeeds."""
        result = await self.session.execute(
            select(Meeting).where(Meeting.id == meeting_id, Meeting.user_id == user_id)
        )
        meeting = result.scalars().first()
        if not meeting:
            return False
        if meeting.deleted_at is None:
            meeting.deleted_at = utcnow()
            await self.session.commit()
        return True

    async def get_user_meeting_stats(self, user_id: str) -> MeetingStats:
        in_progress = [s.value for s in IN_PROGRESS_STATUSES]
        stmt = select(
            func.count(Meeting.id),
            func.coalesce(func.sum(Meeting.duration), 0),
            func.coalesce(func.sum(case((Meeting.status.in_(in_progress), 1), else_=0)), 0),
        ).where(Meeting.user_id == user_id, Meeting.deleted_at.is_(None))
        total_meetings, total_duration, active_meetings = (await self.session.execute(stmt)).one()

        total_meetings = int(total_meetings or 0)
        total_duration = int(total_duration or 0)
        average = round_half_up(total_duration / total_meetings) if total_meetings else 0
        return MeetingStats(
            total_meetings=total_meetings,
            total_duration=total_duration,
            average_duration=average,
            active_meetings=int(active_meetings or 0),
        )

    async def fail_stuck_meetings(self, older_than: timedelta) -> int:
        """
        Flag meetings that have sat in a non-terminal state longer than
        older_than as failed. Returns how many were flagged.
        """
        cutoff = utcnow() - older_than
        stmt = (
            update(Meeting)
            .where(
                Meeting.deleted_at.is_(None),
                Meeting.status.in_([s.value for s in IN_PROGRESS_STATUSES]),
                Meeting.updated_at < cutoff,
            )
            .values(status=MeetingStatus.FAILED.value, failure_reason=PROCESSING_TIMEOUT_REASON)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount:
            logger.warning(f"Flagged {result.rowcount} stuck meetings as failed")
        return result.rowcount
