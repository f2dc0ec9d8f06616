"""
Summarization Service

Two LLM prompts run against a finished transcript: action-item extraction
and title/summary generation. Transcripts below the minimum length are
never sent to the provider.
"""

import json
import re
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import RateLimitedError, ResponseParseError, SummarizationError
from app.core.logging import get_logger
from app.schemas.summary import ActionItemsPayload, ExtractedActionItem, SummaryAndTitle
from app.services.llm_clients.openai_client import OpenAIClient

logger = get_logger(__name__)


ACTION_ITEMS_SYSTEM_PROMPT = (
    "You are an expert at analyzing meeting transcripts and extracting action items. "
    "You are strict: you only report concrete commitments, never generic advice."
)

ACTION_ITEMS_USER_PROMPT = """Analyze the following meeting transcript and extract action items.

Only include an item when it is a specific task that someone committed to or was
asked to do AND it names an owner (assignee) or a deadline. Do NOT include:
- generic intentions ("we should communicate better")
- repeated mentions of the same task (merge them into one item)
- small talk, pleasantries or low value remarks

If the transcript is noise, silence, filler or contains no real commitments,
return an empty list.

For each action item provide:
- description: a clear, actionable sentence including the deadline if one was given
- priority: "high", "medium" or "low" based on urgency and importance
- speaker: the speaker who raised it, if identifiable
- assignee: the person responsible, if mentioned

Transcript:
{transcript}

Respond with JSON only, in exactly this shape:
{{
  "actionItems": [
    {{
      "description": "Clear action item description",
      "priority": "high|medium|low",
      "speaker": "Speaker name or number if mentioned",
      "assignee": "Person assigned if mentioned"
    }}
  ]
}}"""

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert at summarizing meeting content. Be concise and highlight key points."
)

SUMMARY_USER_PROMPT = """Read the following meeting transcript and produce a title and a summary.

- title: at most 10 words, describing what the meeting was about
- summary: at most 200 words, covering key decisions, main topics and outcomes

If the transcript is noise, silence, filler or too short to say anything
meaningful, return null for both fields.

Transcript:
{transcript}

Respond with JSON only, in exactly this shape:
{{"title": "string or null", "summary": "string or null"}}"""

_CODE_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CODE_FENCE_END = re.compile(r"\s*```$")


def strip_code_fences(content: str) -> str:
    """Remove a leading ```json / ``` fence and its closing ``` if present"""
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = _CODE_FENCE_START.sub("", cleaned, count=1)
        cleaned = _CODE_FENCE_END.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_response(content: str) -> dict:
    cleaned = strip_code_fences(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON response: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError("Expected a JSON object")
    return data


class SummarizationService:
    def __init__(self, client: Optional[OpenAIClient] = None, min_chars: Optional[int] = None):
        self.client = client or OpenAIClient()
        self.min_chars = min_chars if min_chars is not None else settings.enrichment_min_transcript_chars

    def is_too_short(self, transcript: Optional[str]) -> bool:
        return len((transcript or "").strip()) < self.min_chars

    async def _complete(self, system: str, user_template: str, transcript: str, max_tokens: int) -> str:
        return await self.client.chat_completion(
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user_template.format(transcript=transcript)},
            ],
            max_tokens=max_tokens,
        )

    async def extract_action_items(self, transcript: str) -> List[ExtractedActionItem]:
        """
        Extract action items from a transcript.

        Returns an empty list without calling the provider when the transcript
        is too short. Provider and parse failures are raised as
        SummarizationError subclasses for the caller to classify.
        """
        if self.is_too_short(transcript):
            logger.warning("Transcript too short for action item extraction, skipping")
            return []

        raw = await self._complete(
            ACTION_ITEMS_SYSTEM_PROMPT,
            ACTION_ITEMS_USER_PROMPT,
            transcript,
            settings.openai_max_tokens,
        )
        data = parse_json_response(raw)
        items = data.get("actionItems")
        if items is None:
            items = data.get("action_items")
        try:
            payload = ActionItemsPayload.model_validate({"actionItems": items or []})
        except PydanticValidationError as e:
            raise ResponseParseError(f"Unexpected action item shape: {e}") from e

        logger.info(f"Extracted {len(payload.action_items)} action items")
        return payload.action_items

    async def generate_summary_and_title(self, transcript: str) -> Optional[SummaryAndTitle]:
        """
        Generate a title and summary. Returns None when the transcript is too
        short, when the model declines (null fields), or on any failure.
        """
        if self.is_too_short(transcript):
            logger.warning("Transcript too short for summary generation, skipping")
            return None

        try:
            raw = await self._complete(
                SUMMARY_SYSTEM_PROMPT,
                SUMMARY_USER_PROMPT,
                transcript,
                settings.openai_summary_max_tokens,
            )
            result = SummaryAndTitle.model_validate(parse_json_response(raw))
        except RateLimitedError:
            logger.warning("Skipping summary generation due to rate limit")
            return None
        except SummarizationError as e:
            logger.error(f"Failed to generate summary: {e}")
            return None
        except PydanticValidationError as e:
            logger.error(f"Unexpected summary shape: {e}")
            return None

        title = (result.title or "").strip()
        summary = (result.summary or "").strip()
        if not title or not summary:
            logger.info("Model returned no title/summary for this transcript")
            return None
        return SummaryAndTitle(title=title[:255], summary=summary)
