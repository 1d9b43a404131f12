"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModeConfig, ModelConfig, PromptsConfig
from objection.gateway import TextGenerationGateway
from objection.models import ModelResponse
from objection.providers.base import AIProvider


def make_response(content: str, provider: str = "mock") -> ModelResponse:
    return ModelResponse(
        provider=provider,
        model="mock-model",
        content=content,
        latency_sec=0.1,
        token_count=10,
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        case="Write case for round {round} of {total_rounds} ({mode_label}, {minutes} min). {difficulty}. {mode_rule}",
        judge="You are Judge Gemini.\nCASE: {scenario}\nARGUMENT: {argument}\nFormat EXACTLY as:\nSCORE: [number]",
        case_rapid_rule="CRITICAL: keep it SHORT.",
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        rounds=3,
        provider="gemini",
        output_dir=tmp_path / "output",
        default_score=75,
        tick_sec=0.001,
    )


@pytest.fixture
def sample_app_config(
    sample_defaults_config: DefaultsConfig,
    sample_prompts_config: PromptsConfig,
) -> AppConfig:
    model_cfg = ModelConfig(
        name="gemini",
        sdk="google-genai",
        model="gemini-2.5-flash-lite",
        api_key_env="TEST_GEMINI_KEY",
        timeout_sec=30,
        max_tokens=1024,
    )
    return AppConfig(
        defaults=sample_defaults_config,
        modes={
            "rapid": ModeConfig(name="rapid", label="Rapid Rush", duration_sec=120),
            "normal": ModeConfig(name="normal", label="Normal Pace", duration_sec=240),
        },
        models={"gemini": model_cfg},
        prompts=sample_prompts_config,
        available_providers=set(),
    )


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=make_response(response_content, provider_name)
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: str, round_number: int) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return make_response(self._response_content, self._name)


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def mock_gateway(mock_provider: MockProvider) -> TextGenerationGateway:
    return TextGenerationGateway(mock_provider)


@pytest.fixture
def offline_gateway() -> TextGenerationGateway:
    """Gateway with no provider: every call raises NotConfiguredError."""
    return TextGenerationGateway(None, "gemini")
