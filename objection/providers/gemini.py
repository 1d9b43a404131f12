"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from objection.models import ModelResponse
from objection.providers.base import AIProvider, EmptyOrBlockedError, NotConfiguredError, TransportError

logger = logging.getLogger(__name__)


def _block_reason(response: genai_types.GenerateContentResponse) -> str:
    """Describe why Gemini returned no text, for the log line."""
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and feedback.block_reason:
        return f"prompt blocked ({feedback.block_reason})"
    if response.candidates:
        finish = response.candidates[0].finish_reason
        if finish:
            return f"finish reason {finish}"
    return "empty response text"


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise NotConfiguredError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, round_number: int) -> ModelResponse:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=prompt,
                    config=genai_types.GenerateContentConfig(
                        max_output_tokens=self._config.max_tokens,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise TransportError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise TransportError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        text = response.text
        if not text or not text.strip():
            raise EmptyOrBlockedError(self._config.name, _block_reason(response))

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info(
            "Gemini round %d: %.2fs, %s tokens",
            round_number,
            latency,
            token_count,
        )

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=text,
            latency_sec=latency,
            token_count=token_count,
        )
