"""
OpenAI Client wrapper

Handles chat completions against the OpenAI API and translates SDK errors
into the application's summarization error taxonomy.
"""

from typing import List, Optional

import openai
from openai import AsyncOpenAI

from app.core.config import settings
from app.core.errors import (
    ConfigurationError,
    InvalidContentError,
    ProviderUnavailableError,
    RateLimitedError,
    SummarizationError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


class OpenAIClient:
    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key or settings.openai_api_key
        self.timeout = timeout if timeout is not None else settings.openai_timeout_seconds
        self.client = (
            AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
            if self.api_key
            else None
        )

    async def chat_completion(
        self,
        messages: List[dict],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Standard chat completion

        Raises:
            RateLimitedError: provider answered 429
            ProviderUnavailableError: timeout, connection failure or 5xx
            InvalidContentError: provider returned no content
            SummarizationError: any other provider-side rejection
        """
        if not self.client:
            raise ConfigurationError("OpenAI API key not provided")

        kwargs = {
            "model": model or settings.openai_model,
            "messages": messages,
            "temperature": settings.openai_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or settings.openai_max_tokens,
        }
        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.RateLimitError as e:
            logger.warning(f"OpenAI rate limit exceeded: {e}")
            raise RateLimitedError("OpenAI rate limit exceeded") from e
        except (openai.APITimeoutError, openai.APIConnectionError, openai.InternalServerError) as e:
            logger.error(f"OpenAI unavailable: {e}")
            raise ProviderUnavailableError(f"OpenAI unavailable: {e}") from e
        except openai.APIError as e:
            logger.error(f"OpenAI Chat Error: {e}")
            raise SummarizationError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise InvalidContentError("No content in OpenAI response")
        return content
