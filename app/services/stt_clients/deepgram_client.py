"""
Deepgram Client wrapper

Pre-recorded transcription from a URL with diarization, utterances and a
provider summary. Responses are normalised into a TranscriptResult.
"""

from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import ConfigurationError, TranscriptionError
from app.core.logging import get_logger
from app.schemas.transcription import TranscriptResult, TranscriptUtterance

logger = get_logger(__name__)


class DeepgramClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.deepgram_api_key
        self.base_url = base_url or settings.deepgram_api_url
        self.timeout = timeout if timeout is not None else settings.transcription_timeout_seconds
        self._transport = transport

    @staticmethod
    def build_options() -> dict[str, str]:
        """Fixed feature set requested on every call"""
        return {
            "model": settings.deepgram_model,
            "language": settings.deepgram_language,
            "smart_format": "true",
            "punctuate": "true",
            "diarize": "true",
            "utterances": "true",
            "paragraphs": "true",
            "summarize": "v2",
            "detect_topics": "true",
            "sentiment": "true",
        }

    async def transcribe(self, audio_url: str) -> TranscriptResult:
        """
        Transcribe the audio reachable at audio_url.

        Raises:
            TranscriptionError: on any provider, transport or parsing failure
        """
        if not self.api_key:
            raise ConfigurationError("Deepgram API key not provided")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.base_url,
                    params=self.build_options(),
                    json={"url": audio_url},
                    headers={"Authorization": f"Token {self.api_key}"},
                )
        except httpx.TimeoutException as e:
            logger.error(f"Deepgram request timed out after {self.timeout}s")
            raise TranscriptionError("Transcription provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Deepgram API Error: {e}")
            raise TranscriptionError(f"Transcription provider unreachable: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Deepgram returned {response.status_code}: {response.text[:500]}")
            raise TranscriptionError(
                f"Transcription provider returned {response.status_code}",
                details={"body": response.text[:500]},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionError("Transcription provider returned invalid JSON") from e
        return parse_deepgram_response(payload)


def parse_deepgram_response(payload: dict[str, Any]) -> TranscriptResult:
    """Normalise a Deepgram pre-recorded response"""
    try:
        results = payload["results"]
        alternative = results["channels"][0]["alternatives"][0]
    except (KeyError, IndexError, TypeError) as e:
        raise TranscriptionError("Transcription result is empty or malformed") from e

    transcript = alternative.get("transcript")
    if transcript is None:
        raise TranscriptionError("Transcription result has no transcript text")

    words = [
        w.get("punctuated_word") or w.get("word", "")
        for w in alternative.get("words") or []
    ]

    try:
        utterances = [
            TranscriptUtterance(
                speaker=u.get("speaker") or 0,
                text=u.get("transcript", ""),
                start=float(u["start"]),
                end=float(u["end"]),
                confidence=float(u.get("confidence") or 0.0),
            )
            for u in results.get("utterances") or []
        ]
        metadata = payload.get("metadata") or {}
        summary = results.get("summary") or {}
        topics = [
            topic.get("topic")
            for segment in (results.get("topics") or {}).get("segments", [])
            for topic in segment.get("topics", [])
            if topic.get("topic")
        ]
        sentiment = ((results.get("sentiments") or {}).get("average") or {}).get("sentiment")

        return TranscriptResult(
            transcript=transcript,
            words=words,
            utterances=utterances,
            confidence=float(alternative.get("confidence") or 0.0),
            duration=float(metadata.get("duration") or 0.0),
            summary=summary.get("short") if isinstance(summary, dict) else None,
            language=(settings.deepgram_language or "en").split("-")[0],
            topics=topics,
            sentiment=sentiment,
        )
    except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
        raise TranscriptionError(f"Malformed utterance data: {e}") from e
