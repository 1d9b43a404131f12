"""Abstract base and failure taxonomy for text-generation providers."""

from abc import ABC, abstractmethod

from objection.models import ModelResponse


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class NotConfiguredError(ProviderError):
    """No provider is available, e.g. the API key is missing."""


class EmptyOrBlockedError(ProviderError):
    """The provider answered but produced no usable text (empty or safety-blocked)."""


class TransportError(ProviderError):
    """The call itself failed: network, timeout, rate limit, malformed response."""


class AIProvider(ABC):
    """Abstract base for all AI model providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'gemini', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, round_number: int) -> ModelResponse:
        """Generate a response for the given prompt.

        Args:
            prompt: The full prompt text to send.
            round_number: The session round the call belongs to (0 for none).

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            EmptyOrBlockedError: The model returned no text or was blocked.
            TransportError: On API failure, timeout, or invalid response.
        """
        ...
