"""
LLM Relay - Mock Transport.

============================================================
PURPOSE
============================================================
Scripted transport for testing the relay without a network.

FEATURES:
- Fixed or per-request responses
- Configurable error injection
- Request recording (decoded bodies available)

============================================================
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from core import codec
from .transport import HttpTransport
from .types import HttpRequestSpec, HttpResponse


ResponseHandler = Callable[[HttpRequestSpec], HttpResponse]


# ============================================================
# MOCK CONFIGURATION
# ============================================================

@dataclass
class MockConfig:
    """Configuration for mock transport."""

    status_code: int = 200
    """Status returned when no handler is set."""

    body: bytes = b""
    """Body returned when no handler is set."""

    headers: Dict[str, str] = field(default_factory=dict)

    error: Optional[Exception] = None
    """Raised instead of responding when set."""


# ============================================================
# MOCK TRANSPORT
# ============================================================

class MockTransport(HttpTransport):
    """
    Mock transport for tests.

    Records every request it receives.
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        handler: Optional[ResponseHandler] = None,
    ):
        self._config = config or MockConfig()
        self._handler = handler
        self.requests: List[HttpRequestSpec] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def send(self, request: HttpRequestSpec) -> HttpResponse:
        self.requests.append(request)

        if self._config.error is not None:
            raise self._config.error

        if self._handler is not None:
            return self._handler(request)

        return HttpResponse(
            status_code=self._config.status_code,
            body=self._config.body,
            headers=dict(self._config.headers),
        )

    def decoded_body(self, index: int = -1) -> Any:
        """JSON value carried by a recorded request."""
        return json.loads(codec.decode(self.requests[index].body).decode("utf-8"))

    # --------------------------------------------------------
    # CONSTRUCTORS
    # --------------------------------------------------------

    @classmethod
    def respond(
        cls,
        status_code: int,
        body: Union[str, bytes] = b"",
        **kwargs,
    ) -> "MockTransport":
        """Transport that always answers with one status and body."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(MockConfig(status_code=status_code, body=body, **kwargs))

    @classmethod
    def respond_json(cls, status_code: int, payload: Any, **kwargs) -> "MockTransport":
        return cls.respond(status_code, json.dumps(payload), **kwargs)

    @classmethod
    def completion(cls, content: Optional[str], **kwargs) -> "MockTransport":
        """Transport answering with an OpenRouter-shaped 200 response."""
        return cls.respond_json(
            200,
            {
                "id": "gen-mock",
                "object": "chat.completion",
                "choices": [
                    {"index": 0, "message": {"role": "assistant", "content": content}},
                ],
            },
            **kwargs,
        )

    @classmethod
    def failing(cls, error: Exception) -> "MockTransport":
        return cls(MockConfig(error=error))


__all__ = [
    "MockConfig",
    "MockTransport",
]
