"""Gateway health check — ping the configured provider before a session."""

import asyncio
import logging

from objection.gateway import TextGenerationGateway

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


async def run_health_check(gateway: TextGenerationGateway) -> tuple[bool, str]:
    """Ping the gateway's provider.

    Returns:
        (ok, error_message); error_message is "" when ok is True.
    """
    try:
        await asyncio.wait_for(gateway.generate(_PING_PROMPT), timeout=_TIMEOUT_SEC)
        return True, ""
    except Exception as exc:
        logger.debug("Health check for %s failed: %s", gateway.provider_name, exc)
        return False, str(exc) or type(exc).__name__
