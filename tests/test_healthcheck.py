"""Unit tests for objection/healthcheck.py — no real API calls."""

import asyncio
from unittest.mock import AsyncMock

import objection.healthcheck as hc
from objection.gateway import TextGenerationGateway
from objection.healthcheck import run_health_check
from objection.providers.base import TransportError
from tests.conftest import MockProvider, make_response


async def test_provider_passes():
    provider = MockProvider("gemini")
    provider.generate = AsyncMock(return_value=make_response("OK", "gemini"))

    assert await run_health_check(TextGenerationGateway(provider)) == (True, "")


async def test_provider_error_reported():
    """A provider that raises returns ok=False with the error message."""
    provider = MockProvider("gemini")
    provider.generate = AsyncMock(side_effect=TransportError("gemini", "403 Forbidden"))

    ok, err = await run_health_check(TextGenerationGateway(provider))

    assert ok is False
    assert "403" in err


async def test_unconfigured_gateway_fails(offline_gateway):
    ok, err = await run_health_check(offline_gateway)
    assert ok is False
    assert "gemini" in err


async def test_timeout_counts_as_failure(monkeypatch):
    """A provider that hangs past the timeout is marked as failed."""
    provider = MockProvider("slow")

    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    provider.generate = AsyncMock(side_effect=hang)
    monkeypatch.setattr(hc, "_TIMEOUT_SEC", 0.05)

    ok, err = await run_health_check(TextGenerationGateway(provider))

    assert ok is False
    assert err == "TimeoutError"
