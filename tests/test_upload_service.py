"""
Upload Service Tests
"""

from datetime import datetime

import pytest

from app.core.config import settings
from sqlalchemy import select

from app.core.errors import StorageError, ValidationError
from app.models import Meeting, MeetingStatus
from app.services.meeting_service import MeetingService
from app.services.upload_service import MeetingUploadService, normalize_content_type, placeholder_title

from conftest import USER_ID, FakeStorage


class UnsignableStorage(FakeStorage):
    async def sign_url(self, path, ttl_seconds=None):
        raise StorageError("Could not sign recording URL")


def test_placeholder_title():
    assert placeholder_title(datetime(2026, 10, 19, 9, 5)) == "Meeting 2026-10-19 09:05"


def test_normalize_content_type():
    assert normalize_content_type("audio/webm;codecs=opus") == "audio/webm"
    assert normalize_content_type(None) == ""


@pytest.mark.asyncio
async def test_upload_creates_queued_meeting_and_dispatches(test_session, storage, dispatcher):
    service = MeetingUploadService(test_session, storage, dispatcher)

    uploaded = await service.upload_recording(USER_ID, b"webm-bytes", "standup.webm", "audio/webm;codecs=opus")

    meeting = uploaded.meeting
    assert meeting.status == MeetingStatus.QUEUED.value
    assert meeting.user_id == USER_ID
    assert meeting.title.startswith("Meeting ")
    assert meeting.file_size == len(b"webm-bytes")
    assert meeting.file_path in storage.objects
    assert dispatcher.calls == [(meeting.id, f"https://storage.test/signed/{meeting.file_path}?token=1", USER_ID)]


@pytest.mark.asyncio
async def test_upload_rejects_non_webm(test_session, storage, dispatcher):
    service = MeetingUploadService(test_session, storage, dispatcher)

    with pytest.raises(ValidationError):
        await service.upload_recording(USER_ID, b"mp3-bytes", "call.mp3", "audio/mpeg")

    assert storage.objects == {}
    assert dispatcher.calls == []


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(test_session, storage, dispatcher, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_mb", 1)
    service = MeetingUploadService(test_session, storage, dispatcher)

    with pytest.raises(ValidationError) as exc_info:
        await service.upload_recording(USER_ID, b"x" * (1024 * 1024 + 1), "big.webm", "audio/webm")

    assert exc_info.value.details["max_size"] == 1024 * 1024
    assert dispatcher.calls == []


@pytest.mark.asyncio
async def test_upload_rejects_empty_file(test_session, storage, dispatcher):
    service = MeetingUploadService(test_session, storage, dispatcher)
    with pytest.raises(ValidationError):
        await service.upload_recording(USER_ID, b"", "empty.webm", "audio/webm")


@pytest.mark.asyncio
async def test_upload_fails_meeting_when_dispatch_cannot_start(test_session, session_factory, dispatcher):
    storage = UnsignableStorage()
    service = MeetingUploadService(test_session, storage, dispatcher)

    with pytest.raises(StorageError):
        await service.upload_recording(USER_ID, b"webm-bytes", "standup.webm", "audio/webm")

    async with session_factory() as session:
        meetings = (await session.execute(select(Meeting))).scalars().all()
    assert len(meetings) == 1
    assert meetings[0].status == MeetingStatus.FAILED.value
    assert meetings[0].failure_reason.startswith("STORAGE_ERROR: ")
    assert dispatcher.calls == []


@pytest.mark.asyncio
async def test_upload_removes_recording_when_meeting_row_fails(test_session, session_factory, storage, dispatcher, monkeypatch):
    async def broken_create(self, meeting_in):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(MeetingService, "create_meeting", broken_create)
    service = MeetingUploadService(test_session, storage, dispatcher)

    with pytest.raises(RuntimeError):
        await service.upload_recording(USER_ID, b"webm-bytes", "standup.webm", "audio/webm")

    assert storage.objects == {}
    assert dispatcher.calls == []
    async with session_factory() as session:
        assert (await session.execute(select(Meeting))).scalars().all() == []
