"""
LLM Relay - HTTP Transport.

============================================================
PURPOSE
============================================================
Per-executor HTTP sender.

- Accepts the transport envelope (base64 body)
- Returns status, raw body bytes and headers
- Maps network failures to TransportError

Implementations:
- AiohttpTransport: real network calls
- MockTransport (llm_relay.mock): scripted responses for tests

============================================================
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from core import codec
from core.exceptions import TransportError
from .config import TimeoutConfig
from .types import HttpRequestSpec, HttpResponse


logger = logging.getLogger(__name__)


# ============================================================
# ABSTRACT TRANSPORT
# ============================================================

class HttpTransport(ABC):
    """Sends one HTTP request for one executor."""

    @abstractmethod
    async def send(self, request: HttpRequestSpec) -> HttpResponse:
        """
        Send a request.

        Args:
            request: Transport envelope

        Returns:
            HttpResponse (any status code)

        Raises:
            TransportError: If no response was received
        """
        pass


# ============================================================
# AIOHTTP TRANSPORT
# ============================================================

class AiohttpTransport(HttpTransport):
    """
    aiohttp-backed transport.

    Opens a fresh session per request so that executors
    never share connection state.
    """

    def __init__(self, timeout_config: Optional[TimeoutConfig] = None):
        self._timeout_config = timeout_config or TimeoutConfig()

    async def send(self, request: HttpRequestSpec) -> HttpResponse:
        try:
            data = codec.decode(request.body) if request.body else None
        except ValueError as e:
            raise TransportError(f"Invalid request body encoding: {e}", url=request.url, cause=e)

        timeout = aiohttp.ClientTimeout(
            connect=self._timeout_config.connection_timeout_seconds,
            total=self._timeout_config.request_timeout_seconds,
        )

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    data=data,
                ) as response:
                    body = await response.read()
                    return HttpResponse(
                        status_code=response.status,
                        body=body,
                        headers=dict(response.headers),
                    )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Request timed out after {self._timeout_config.request_timeout_seconds}s",
                url=request.url,
                cause=e,
            )
        except aiohttp.ClientError as e:
            raise TransportError(f"Network error: {e}", url=request.url, cause=e)


__all__ = [
    "HttpTransport",
    "AiohttpTransport",
]
