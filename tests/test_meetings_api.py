"""
Meeting Endpoint Tests
"""

import pytest
from httpx import AsyncClient

from app.core.rate_limit import meeting_creation_limit
from app.core.security import AuthenticatedUser
from app.models import MeetingStatus
from app.services.transcription_service import TranscriptionService

from conftest import OTHER_USER_ID, USER_ID, create_meeting, make_transcript_result

RECORDING = {"recording": ("standup.webm", b"webm-bytes", "audio/webm")}


@pytest.mark.asyncio
async def test_upload_recording(client: AsyncClient, dispatcher, storage):
    response = await client.post("/api/v1/meetings", files=RECORDING)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "queued"
    assert data["file_size"] == len(b"webm-bytes")
    assert dispatcher.calls[0][0] == data["meeting_id"]
    assert dispatcher.calls[0][2] == USER_ID
    assert len(storage.objects) == 1


@pytest.mark.asyncio
async def test_upload_rejects_wrong_type(client: AsyncClient, dispatcher):
    response = await client.post(
        "/api/v1/meetings", files={"recording": ("call.mp3", b"mp3", "audio/mpeg")}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert dispatcher.calls == []


@pytest.mark.asyncio
async def test_upload_requires_file(client: AsyncClient):
    response = await client.post("/api/v1/meetings")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_rate_limited(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(meeting_creation_limit, "limit", 2)

    for _ in range(2):
        assert (await client.post("/api/v1/meetings", files=RECORDING)).status_code == 201
    response = await client.post("/api/v1/meetings", files=RECORDING)

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert "Retry-After" in response.headers


@pytest.mark.asyncio
async def test_list_meetings_is_owner_scoped(client: AsyncClient, session_factory):
    await create_meeting(session_factory)
    await create_meeting(session_factory, status=MeetingStatus.COMPLETED)
    await create_meeting(session_factory, user_id=OTHER_USER_ID)

    response = await client.get("/api/v1/meetings", params={"page": 1, "limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["total_pages"] == 2
    assert len(data["meetings"]) == 1
    assert data["meetings"][0]["user_id"] == USER_ID

    completed = await client.get("/api/v1/meetings", params={"status": "completed"})
    assert completed.json()["total"] == 1


@pytest.mark.asyncio
async def test_list_meetings_rejects_bad_pagination(client: AsyncClient):
    assert (await client.get("/api/v1/meetings", params={"page": 0})).status_code == 422
    assert (await client.get("/api/v1/meetings", params={"limit": 101})).status_code == 422


@pytest.mark.asyncio
async def test_get_meeting_detail(client: AsyncClient, session_factory, storage):
    meeting = await create_meeting(session_factory, status=MeetingStatus.COMPLETED, duration=91)
    async with session_factory() as session:
        await TranscriptionService(session).create_transcription(meeting.id, make_transcript_result())

    first = await client.get(f"/api/v1/meetings/{meeting.id}")
    second = await client.get(f"/api/v1/meetings/{meeting.id}")

    assert first.status_code == 200
    data = first.json()
    assert data["status"] == "completed"
    assert data["duration"] == 91
    assert len(data["transcriptions"]) == 1
    assert data["action_items"] == []
    assert data["file_url"].startswith("https://storage.test/signed/")
    assert data["file_url"] != second.json()["file_url"]


@pytest.mark.asyncio
async def test_get_other_users_meeting_is_not_found(client: AsyncClient, session_factory, auth_state):
    meeting = await create_meeting(session_factory)
    auth_state["user"] = AuthenticatedUser(id=OTHER_USER_ID)

    response = await client.get(f"/api/v1/meetings/{meeting.id}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_update_meeting_title(client: AsyncClient, session_factory):
    meeting = await create_meeting(session_factory)

    response = await client.put(f"/api/v1/meetings/{meeting.id}", json={"title": "Design Review"})

    assert response.status_code == 200
    assert response.json()["title"] == "Design Review"
    assert response.json()["status"] == "queued"


@pytest.mark.asyncio
async def test_delete_meeting_is_idempotent(client: AsyncClient, session_factory):
    meeting = await create_meeting(session_factory)

    assert (await client.delete(f"/api/v1/meetings/{meeting.id}")).status_code == 204
    assert (await client.delete(f"/api/v1/meetings/{meeting.id}")).status_code == 204
    assert (await client.get(f"/api/v1/meetings/{meeting.id}")).status_code == 404


@pytest.mark.asyncio
async def test_meeting_stats(client: AsyncClient, session_factory):
    await create_meeting(session_factory, status=MeetingStatus.COMPLETED, duration=30)
    await create_meeting(session_factory, status=MeetingStatus.COMPLETED, duration=31)
    await create_meeting(session_factory, status=MeetingStatus.ANALYZING)

    response = await client.get("/api/v1/meetings/stats")

    assert response.status_code == 200
    assert response.json() == {
        "total_meetings": 3,
        "total_duration": 61,
        "average_duration": 20,
        "active_meetings": 1,
    }


@pytest.mark.asyncio
async def test_meeting_transcriptions_and_action_items(client: AsyncClient, session_factory):
    meeting = await create_meeting(session_factory, status=MeetingStatus.COMPLETED)
    async with session_factory() as session:
        await TranscriptionService(session).create_transcription(meeting.id, make_transcript_result())
    await client.post(
        "/api/v1/action-items",
        json={"meeting_id": meeting.id, "description": "Send the notes", "priority": "high"},
    )

    transcriptions = await client.get(f"/api/v1/meetings/{meeting.id}/transcriptions")
    action_items = await client.get(f"/api/v1/meetings/{meeting.id}/action-items")

    assert transcriptions.status_code == 200
    assert len(transcriptions.json()) == 1
    assert action_items.json()["total"] == 1
    assert action_items.json()["action_items"][0]["created_by"] == USER_ID
