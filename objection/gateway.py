"""Text generation gateway: one provider call, one softened retry on empty/blocked output."""

import logging

from config.config_loader import AppConfig
from objection.prompts import soften_prompt
from objection.providers.anthropic import AnthropicProvider
from objection.providers.base import (
    AIProvider,
    EmptyOrBlockedError,
    NotConfiguredError,
    ProviderError,
    TransportError,
)
from objection.providers.gemini import GeminiProvider
from objection.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "google-genai": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


class TextGenerationGateway:
    """Wraps a single AIProvider. Holds no state between calls."""

    def __init__(self, provider: AIProvider | None, provider_name: str = "none") -> None:
        self._provider = provider
        self._provider_name = provider.name() if provider is not None else provider_name

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def configured(self) -> bool:
        return self._provider is not None

    async def generate(self, prompt: str, round_number: int = 0) -> str:
        """Return trimmed, non-empty text for the prompt.

        Raises:
            ValueError: If the prompt is blank.
            NotConfiguredError: No provider is available.
            EmptyOrBlockedError: Both the prompt and its softened rewrite produced nothing.
            TransportError: The call failed.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must be non-empty")
        if self._provider is None:
            raise NotConfiguredError(self._provider_name, "No text generation provider configured")

        provider = self._provider
        try:
            return await self._attempt(provider, prompt, round_number)
        except EmptyOrBlockedError as exc:
            logger.warning(
                "Provider %s returned no usable text in round %d (%s), retrying once with softened prompt",
                self._provider_name, round_number, exc,
            )
        return await self._attempt(provider, soften_prompt(prompt), round_number)

    async def _attempt(self, provider: AIProvider, prompt: str, round_number: int) -> str:
        try:
            response = await provider.generate(prompt, round_number)
        except ProviderError:
            raise
        except Exception as exc:
            raise TransportError(self._provider_name, f"Unexpected error: {exc}") from exc

        text = (response.content or "").strip()
        if not text:
            raise EmptyOrBlockedError(self._provider_name, "Empty response text")
        return text


def build_gateway(config: AppConfig, provider_name: str | None = None) -> TextGenerationGateway:
    """Build a gateway for the named (or default) provider.

    A missing API key or unknown SDK yields an unconfigured gateway rather than
    an exception; callers fall back on NotConfiguredError at call time.
    """
    name = provider_name or config.defaults.provider
    model_cfg = config.models.get(name)
    if model_cfg is None:
        logger.warning("Provider '%s' unknown, running without AI", name)
        return TextGenerationGateway(None, name)

    provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
    if provider_cls is None:
        logger.warning("SDK '%s' for provider '%s' unsupported, running without AI", model_cfg.sdk, name)
        return TextGenerationGateway(None, name)

    try:
        provider = provider_cls(model_cfg)
    except NotConfiguredError as exc:
        logger.warning("Provider '%s' not configured: %s", name, exc)
        return TextGenerationGateway(None, name)
    except Exception as exc:
        logger.warning("Failed to instantiate provider '%s': %s", name, exc)
        return TextGenerationGateway(None, name)
    return TextGenerationGateway(provider)
