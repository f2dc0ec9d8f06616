"""
Transcription Service

Persists transcript results and their diarized chat segments, and serves
them back scoped to the owning user.
"""

import math
from collections import defaultdict
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.meeting import Meeting
from app.models.transcription import ChatSegment, Transcription
from app.schemas.transcription import SpeakerStats, TranscriptResult, TranscriptionStats


def round_half_up(value: float) -> int:
    """Nearest integer, halves away from zero for positives (1.5 -> 2, 2.5 -> 3)"""
    return int(math.floor(value + 0.5))


def to_percent(confidence: float) -> int:
    """0-1 float confidence -> 0-100 integer"""
    return min(100, max(0, round_half_up(confidence * 100)))


def to_milliseconds(seconds: float) -> int:
    return round_half_up(seconds * 1000)


def build_chat_segments(result: TranscriptResult) -> List[ChatSegment]:
    """Chat segments ordered by start time, each with start <= end"""
    segments = []
    for utterance in sorted(result.utterances, key=lambda u: (u.start, u.end)):
        start = to_milliseconds(utterance.start)
        end = max(start, to_milliseconds(utterance.end))
        segments.append(
            ChatSegment(
                speaker_number=utterance.speaker,
                text=utterance.text,
                start_time=start,
                end_time=end,
                confidence=to_percent(utterance.confidence),
            )
        )
    return segments


class TranscriptionService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_transcription(
        self,
        meeting_id: str,
        result: TranscriptResult,
        commit: bool = True,
    ) -> Transcription:
        """
        Store a transcript and all of its chat segments as one unit.

        With commit=False the caller owns the transaction boundary.
        """
        word_count = len(result.words) if result.words else len(result.transcript.split())
        transcription = Transcription(
            meeting_id=meeting_id,
            status="completed",
            full_text=result.transcript,
            summary=result.summary,
            confidence=to_percent(result.confidence),
            language=result.language,
            word_count=word_count,
        )
        self.session.add(transcription)
        await self.session.flush()

        segments = build_chat_segments(result)
        for segment in segments:
            segment.transcription_id = transcription.id
        self.session.add_all(segments)
        await self.session.flush()

        if commit:
            await self.session.commit()
        return transcription

    def _owned(self, stmt, user_id: Optional[str]):
        stmt = stmt.join(Meeting, Meeting.id == Transcription.meeting_id).where(
            Meeting.deleted_at.is_(None)
        )
        if user_id:
            stmt = stmt.where(Meeting.user_id == user_id)
        return stmt

    async def get_latest_for_meeting(
        self, meeting_id: str, user_id: Optional[str] = None, with_segments: bool = True
    ) -> Optional[Transcription]:
        """Latest transcription wins for display"""
        stmt = select(Transcription).where(Transcription.meeting_id == meeting_id)
        if with_segments:
            stmt = stmt.options(selectinload(Transcription.chat_segments))
        stmt = self._owned(stmt, user_id).order_by(Transcription.created_at.desc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_meeting(self, meeting_id: str, user_id: Optional[str] = None) -> List[Transcription]:
        stmt = self._owned(
            select(Transcription).where(Transcription.meeting_id == meeting_id), user_id
        ).order_by(Transcription.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_transcription(
        self, transcription_id: str, user_id: Optional[str] = None
    ) -> Optional[Transcription]:
        stmt = self._owned(
            select(Transcription)
            .options(selectinload(Transcription.chat_segments))
            .where(Transcription.id == transcription_id),
            user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_chat_segments(
        self,
        transcription_id: str,
        user_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[ChatSegment], int]:
        """Page of chat segments in start-time order, plus the total count"""
        transcription = await self.get_transcription(transcription_id, user_id)
        if not transcription:
            return [], 0

        total = (
            await self.session.execute(
                select(func.count(ChatSegment.id)).select_from(ChatSegment).where(
                    ChatSegment.transcription_id == transcription_id
                )
            )
        ).scalar_one()
        stmt = (
            select(ChatSegment)
            .where(ChatSegment.transcription_id == transcription_id)
            .order_by(ChatSegment.start_time, ChatSegment.end_time)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_stats_for_meeting(
        self, meeting_id: str, user_id: Optional[str] = None
    ) -> TranscriptionStats:
        transcription = await self.get_latest_for_meeting(meeting_id, user_id)
        if not transcription:
            return TranscriptionStats()

        per_speaker: dict[int, list[int]] = defaultdict(lambda: [0, 0])
        span = 0
        for segment in transcription.chat_segments:
            per_speaker[segment.speaker_number][0] += 1
            per_speaker[segment.speaker_number][1] += segment.end_time - segment.start_time
            span = max(span, segment.end_time)

        return TranscriptionStats(
            transcription_id=transcription.id,
            segment_count=len(transcription.chat_segments),
            speaker_count=len(per_speaker),
            word_count=transcription.word_count or 0,
            confidence=transcription.confidence,
            spoken_span_ms=span,
            speakers=[
                SpeakerStats(speaker_number=number, segment_count=count, talk_time_ms=talk)
                for number, (count, talk) in sorted(per_speaker.items())
            ],
        )

    async def delete_transcription(self, transcription_id: str, user_id: Optional[str] = None) -> bool:
        transcription = await self.get_transcription(transcription_id, user_id)
        if not transcription:
            return False

        await self.session.execute(
            delete(ChatSegment).where(ChatSegment.transcription_id == transcription_id)
        )
        await self.session.execute(delete(Transcription).where(Transcription.id == transcription_id))
        await self.session.commit()
        return True
