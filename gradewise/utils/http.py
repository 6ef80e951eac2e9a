"""HTTP utilities for single-shot provider calls.

Schoology token endpoints have side effects and rate limits, so nothing here
retries; transport failures are translated into the provider error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx

from gradewise.core.errors import ProviderError, ProviderTimeoutError

logger = logging.getLogger(__name__)

_LOGGED_BODY_LIMIT = 200


async def send_once(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    **kwargs,
) -> httpx.Response:
    """Await ``func`` once, mapping timeouts and transport errors."""
    try:
        return await func(*args, **kwargs)
    except httpx.TimeoutException as exc:
        raise ProviderTimeoutError("Schoology did not respond in time.") from exc
    except httpx.TransportError as exc:
        raise ProviderError("Could not reach Schoology.") from exc


def ensure_success(response: httpx.Response, *, action: str) -> httpx.Response:
    """Raise ``ProviderError`` for non-2xx responses, logging a truncated body."""
    if response.is_success:
        return response
    logger.error(
        "Schoology %s failed with HTTP %s: %s",
        action,
        response.status_code,
        response.text[:_LOGGED_BODY_LIMIT],
    )
    raise ProviderError(
        f"Schoology {action} failed with HTTP {response.status_code}.",
        status_code=response.status_code,
    )


__all__ = ["ensure_success", "send_once"]
