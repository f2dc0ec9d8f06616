"""
Summarization Service Tests
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from app.core.errors import (
    ConfigurationError,
    InvalidContentError,
    ProviderUnavailableError,
    RateLimitedError,
    ResponseParseError,
)
from app.models.action_item import ActionItemPriority
from app.services.llm_clients.openai_client import OpenAIClient
from app.services.summarization_service import SummarizationService, strip_code_fences

TRANSCRIPT = (
    "Alice: I will send the budget report to finance by Friday. "
    "Bob: Then I'll book the venue for the offsite once the budget is approved."
)


def service_returning(content: str) -> tuple[SummarizationService, AsyncMock]:
    client = AsyncMock()
    client.chat_completion.return_value = content
    return SummarizationService(client=client, min_chars=50), client


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


@pytest.mark.asyncio
async def test_extract_action_items_from_fenced_json():
    content = "```json\n" + json.dumps(
        {
            "actionItems": [
                {"description": "Send the budget report", "priority": "High", "assignee": "Alice"},
                {"description": "Book the venue", "priority": "someday", "speaker": 2},
            ]
        }
    ) + "\n```"
    service, client = service_returning(content)

    items = await service.extract_action_items(TRANSCRIPT)

    assert [i.description for i in items] == ["Send the budget report", "Book the venue"]
    assert items[0].priority == ActionItemPriority.HIGH
    assert items[1].priority == ActionItemPriority.MEDIUM
    assert items[1].speaker == "2"
    client.chat_completion.assert_awaited_once()


@pytest.mark.asyncio
async def test_extract_action_items_null_list_is_empty():
    service, _ = service_returning('{"actionItems": null}')
    assert await service.extract_action_items(TRANSCRIPT) == []


@pytest.mark.asyncio
async def test_extract_action_items_accepts_snake_case_key():
    service, _ = service_returning('{"action_items": [{"description": "Send the notes", "priority": "high"}]}')

    items = await service.extract_action_items(TRANSCRIPT)

    assert [item.description for item in items] == ["Send the notes"]
    assert items[0].priority == "high"


@pytest.mark.asyncio
async def test_extract_action_items_invalid_json_raises_parse_error():
    service, _ = service_returning("Sure! Here are the action items: none")
    with pytest.raises(ResponseParseError) as exc_info:
        await service.extract_action_items(TRANSCRIPT)
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_extract_action_items_rate_limit_is_retryable():
    client = AsyncMock()
    client.chat_completion.side_effect = RateLimitedError("OpenAI rate limit exceeded")
    service = SummarizationService(client=client, min_chars=50)

    with pytest.raises(RateLimitedError) as exc_info:
        await service.extract_action_items(TRANSCRIPT)
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_short_transcript_makes_no_calls():
    service, client = service_returning("{}")

    assert await service.extract_action_items("ok bye") == []
    assert await service.generate_summary_and_title("   ") is None
    client.chat_completion.assert_not_awaited()


@pytest.mark.asyncio
async def test_generate_summary_and_title():
    service, _ = service_returning('{"title": " Budget Review ", "summary": "Budget and venue agreed."}')

    result = await service.generate_summary_and_title(TRANSCRIPT)

    assert result.title == "Budget Review"
    assert result.summary == "Budget and venue agreed."


@pytest.mark.asyncio
async def test_generate_summary_null_fields_returns_none():
    service, _ = service_returning('{"title": null, "summary": null}')
    assert await service.generate_summary_and_title(TRANSCRIPT) is None


@pytest.mark.asyncio
async def test_generate_summary_swallows_provider_errors():
    client = AsyncMock()
    client.chat_completion.side_effect = ProviderUnavailableError("OpenAI unavailable")
    service = SummarizationService(client=client, min_chars=50)

    assert await service.generate_summary_and_title(TRANSCRIPT) is None


# OpenAI client error mapping -----------------------------------------
def openai_client_raising(exc: Exception) -> OpenAIClient:
    client = OpenAIClient(api_key="sk-test")
    client.client = MagicMock()
    client.client.chat.completions.create = AsyncMock(side_effect=exc)
    return client


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


@pytest.mark.asyncio
async def test_openai_rate_limit_maps_to_rate_limited():
    exc = openai.RateLimitError(
        "Too many requests", response=httpx.Response(429, request=_request()), body=None
    )
    with pytest.raises(RateLimitedError):
        await openai_client_raising(exc).chat_completion([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_openai_timeout_maps_to_unavailable():
    exc = openai.APITimeoutError(request=_request())
    with pytest.raises(ProviderUnavailableError) as exc_info:
        await openai_client_raising(exc).chat_completion([{"role": "user", "content": "hi"}])
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_openai_empty_content_is_invalid():
    client = OpenAIClient(api_key="sk-test")
    client.client = MagicMock()
    client.client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=""))])
    )
    with pytest.raises(InvalidContentError):
        await client.chat_completion([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_openai_without_key_is_configuration_error():
    client = OpenAIClient(api_key="")
    client.api_key = None
    client.client = None
    with pytest.raises(ConfigurationError):
        await client.chat_completion([{"role": "user", "content": "hi"}])
