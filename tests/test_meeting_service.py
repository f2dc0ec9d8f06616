"""
Meeting Service Tests
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from app.models import Meeting, MeetingStatus
from app.schemas.meeting import MeetingUpdate
from app.services.meeting_service import PROCESSING_TIMEOUT_REASON, MeetingService
from app.workers.jobs.reconcile_meetings import reconcile_stuck_meetings

from conftest import OTHER_USER_ID, USER_ID, create_meeting


async def age_meeting(session_factory, meeting_id: str, hours: int) -> None:
    async with session_factory() as session:
        await session.execute(
            update(Meeting)
            .where(Meeting.id == meeting_id)
            .values(updated_at=datetime.now(timezone.utc) - timedelta(hours=hours))
        )
        await session.commit()


@pytest.mark.asyncio
async def test_status_moves_forward_only(session_factory):
    meeting = await create_meeting(session_factory)

    async with session_factory() as session:
        service = MeetingService(session)
        assert await service.set_status(meeting.id, MeetingStatus.ANALYZING) is False
        assert await service.set_status(meeting.id, MeetingStatus.TRANSCRIBING) is True
        assert await service.set_status(meeting.id, MeetingStatus.TRANSCRIBING) is False
        assert await service.set_status(meeting.id, MeetingStatus.ANALYZING, duration=42) is True
        assert await service.set_status(meeting.id, MeetingStatus.COMPLETED) is True
        assert await service.set_status(meeting.id, MeetingStatus.FAILED) is False
        assert await service.get_status(meeting.id) == MeetingStatus.COMPLETED


@pytest.mark.asyncio
async def test_queued_cannot_be_reentered(session_factory):
    meeting = await create_meeting(session_factory)
    async with session_factory() as session:
        with pytest.raises(ValueError):
            await MeetingService(session).set_status(meeting.id, MeetingStatus.QUEUED)


@pytest.mark.asyncio
async def test_set_status_on_missing_meeting(session_factory):
    async with session_factory() as session:
        assert await MeetingService(session).set_status("missing", MeetingStatus.TRANSCRIBING) is False


@pytest.mark.asyncio
async def test_status_write_keeps_user_title(session_factory):
    meeting = await create_meeting(session_factory, status=MeetingStatus.ANALYZING)

    async with session_factory() as session:
        await MeetingService(session).update_meeting(meeting.id, USER_ID, MeetingUpdate(title="Renamed"))
    async with session_factory() as session:
        await MeetingService(session).set_status(meeting.id, MeetingStatus.COMPLETED)
    async with session_factory() as session:
        stored = await MeetingService(session).get_meeting(meeting.id)

    assert stored.title == "Renamed"
    assert stored.status == MeetingStatus.COMPLETED.value


@pytest.mark.asyncio
async def test_update_meeting_is_owner_scoped(session_factory):
    meeting = await create_meeting(session_factory)
    async with session_factory() as session:
        service = MeetingService(session)
        assert await service.update_meeting(meeting.id, OTHER_USER_ID, MeetingUpdate(title="Hijack")) is None
        updated = await service.update_meeting(meeting.id, USER_ID, MeetingUpdate(summary="Notes"))
    assert updated.summary == "Notes"
    assert updated.title == meeting.title


@pytest.mark.asyncio
async def test_stats_average_rounds_half_up(session_factory):
    await create_meeting(session_factory, status=MeetingStatus.COMPLETED, duration=60)
    await create_meeting(session_factory, status=MeetingStatus.COMPLETED, duration=61)
    await create_meeting(session_factory, status=MeetingStatus.TRANSCRIBING)
    await create_meeting(session_factory, status=MeetingStatus.FAILED)
    await create_meeting(session_factory, user_id=OTHER_USER_ID, status=MeetingStatus.QUEUED, duration=999)

    async with session_factory() as session:
        stats = await MeetingService(session).get_user_meeting_stats(USER_ID)

    assert stats.total_meetings == 4
    assert stats.total_duration == 121
    assert stats.average_duration == 30
    assert stats.active_meetings == 1


@pytest.mark.asyncio
async def test_stats_for_user_without_meetings(session_factory):
    async with session_factory() as session:
        stats = await MeetingService(session).get_user_meeting_stats("nobody")
    assert stats.total_meetings == 0
    assert stats.average_duration == 0


@pytest.mark.asyncio
async def test_soft_delete_hides_meeting_and_is_idempotent(session_factory):
    meeting = await create_meeting(session_factory)
    async with session_factory() as session:
        service = MeetingService(session)
        assert await service.delete_meeting(meeting.id, USER_ID) is True
        assert await service.delete_meeting(meeting.id, USER_ID) is True
        assert await service.get_meeting(meeting.id, USER_ID) is None
        assert await service.delete_meeting(meeting.id, OTHER_USER_ID) is False

        meetings, total = await service.list_meetings(USER_ID)
    assert meetings == []
    assert total == 0


@pytest.mark.asyncio
async def test_list_meetings_filters_and_paginates(session_factory):
    for _ in range(3):
        await create_meeting(session_factory, status=MeetingStatus.COMPLETED)
    await create_meeting(session_factory, status=MeetingStatus.FAILED)

    async with session_factory() as session:
        service = MeetingService(session)
        page, total = await service.list_meetings(USER_ID, limit=2, offset=0)
        assert len(page) == 2
        assert total == 4

        failed, failed_total = await service.list_meetings(USER_ID, status=MeetingStatus.FAILED)
        assert failed_total == 1
        assert failed[0].status == MeetingStatus.FAILED.value


@pytest.mark.asyncio
async def test_stuck_meetings_are_failed(session_factory):
    stuck = await create_meeting(session_factory, status=MeetingStatus.TRANSCRIBING)
    fresh = await create_meeting(session_factory, status=MeetingStatus.ANALYZING)
    done = await create_meeting(session_factory, status=MeetingStatus.COMPLETED)
    await age_meeting(session_factory, stuck.id, hours=3)
    await age_meeting(session_factory, done.id, hours=3)

    flagged = await reconcile_stuck_meetings(session_factory, timeout_minutes=60)

    assert flagged == 1
    async with session_factory() as session:
        service = MeetingService(session)
        stored = await service.get_meeting(stuck.id)
        assert stored.status == MeetingStatus.FAILED.value
        assert stored.failure_reason == PROCESSING_TIMEOUT_REASON
        assert await service.get_status(fresh.id) == MeetingStatus.ANALYZING
        assert await service.get_status(done.id) == MeetingStatus.COMPLETED


def test_timestamps_are_stamped_in_utc_by_the_application():
    updated_at = Meeting.__table__.c.updated_at
    assert updated_at.default.is_callable
    assert updated_at.onupdate.is_callable


@pytest.mark.asyncio
async def test_status_change_refreshes_updated_at(session_factory):
    meeting = await create_meeting(session_factory)
    await age_meeting(session_factory, meeting.id, hours=3)

    async with session_factory() as session:
        assert await MeetingService(session).set_status(meeting.id, MeetingStatus.TRANSCRIBING) is True

    async with session_factory() as session:
        stored = await MeetingService(session).get_meeting(meeting.id)
    stamped = stored.updated_at.replace(tzinfo=stored.updated_at.tzinfo or timezone.utc)
    assert datetime.now(timezone.utc) - stamped < timedelta(minutes=5)


@pytest.mark.asyncio
async def test_recently_claimed_meeting_survives_sweep(session_factory):
    meeting = await create_meeting(session_factory)
    await age_meeting(session_factory, meeting.id, hours=3)
    async with session_factory() as session:
        await MeetingService(session).set_status(meeting.id, MeetingStatus.TRANSCRIBING)

    flagged = await reconcile_stuck_meetings(session_factory, timeout_minutes=60)

    assert flagged == 0
    async with session_factory() as session:
        assert await MeetingService(session).get_status(meeting.id) == MeetingStatus.TRANSCRIBING
