"""
Conftest
"""

import os

# Must be set before app.core.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENV"] = "development"
os.environ["PIPELINE_BACKEND"] = "INLINE"
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-key")

from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.deps import get_current_user
from app.core.security import AuthenticatedUser
from app.infra.db import get_db
from app.infra.redis import get_redis
from app.infra.storage import UploadResult, build_recording_path, get_storage
from app.main import app
from app.models import Base, Meeting, MeetingStatus
from app.schemas.transcription import TranscriptResult, TranscriptUtterance
from app.workers.dispatcher import PipelineDispatcher, get_pipeline_dispatcher

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeStorage:
    """In-memory stand-in for the storage client"""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.signed = 0

    async def upload(self, data, owner_id, original_name=None, content_type="audio/webm"):
        path = build_recording_path(owner_id, original_name)
        self.objects[path] = data
        return UploadResult(path=path, url=f"https://storage.test/{path}", size=len(data), content_type=content_type)

    async def sign_url(self, path, ttl_seconds=None):
        self.signed += 1
        return f"https://storage.test/signed/{path}?token={self.signed}"

    async def delete(self, path):
        self.objects.pop(path, None)
        return True


class FakeDispatcher(PipelineDispatcher):
    def __init__(self):
        self.calls: list[tuple[str, str, str]] = []

    async def dispatch(self, meeting_id, audio_url, owner_id):
        self.calls.append((meeting_id, audio_url, owner_id))


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the rate limiter"""

    def __init__(self):
        self.values: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    async def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def ttl(self, key):
        return self.ttls.get(key, -1)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def auth_state() -> dict:
    """Mutable holder so a test can switch the authenticated user"""
    return {"user": AuthenticatedUser(id=USER_ID, email="owner@example.com")}


@pytest.fixture
async def client(session_factory, storage, dispatcher, fake_redis, auth_state) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_current_user] = lambda: auth_state["user"]
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_pipeline_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


async def create_meeting(
    session_factory,
    user_id: str = USER_ID,
    status: MeetingStatus = MeetingStatus.QUEUED,
    title: str = "Meeting 2026-10-19 10:00",
    duration: Optional[int] = None,
) -> Meeting:
    async with session_factory() as session:
        meeting = Meeting(
            title=title,
            file_path=f"users/{user_id}/meetings/1760868000000_test.webm",
            file_size=1024,
            user_id=user_id,
            status=status.value,
            duration=duration,
        )
        session.add(meeting)
        await session.commit()
        await session.refresh(meeting)
        return meeting


def make_transcript_result(transcript: Optional[str] = None, duration: float = 90.5) -> TranscriptResult:
    text = transcript if transcript is not None else (
        "Alice will send the budget report by Friday. "
        "Bob agreed to book the venue for the offsite next week."
    )
    return TranscriptResult(
        transcript=text,
        words=text.split(),
        utterances=[
            TranscriptUtterance(speaker=1, text="Bob agreed to book the venue.", start=5.0, end=9.25, confidence=0.5),
            TranscriptUtterance(speaker=0, text="Alice will send the report.", start=0.0, end=4.0625, confidence=0.875),
        ],
        confidence=0.875,
        duration=duration,
        summary="Budget and offsite planning.",
        language="en",
    )
