"""
LLM Relay - Callback Forwarder.

============================================================
PURPOSE
============================================================
Delivers the interpreted result to a downstream endpoint.

- Same identical-result consensus as the model gateway
- 2xx -> {success: true, response: <body>}
- anything else -> {success: false, error: <message>}
- Never raises, never retries

============================================================
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from core import codec
from core.exceptions import classify_exception, error_message
from .config import ForwarderConfig
from .consensus import ConsensusHttpClient, SendRequester, create_consensus_client
from .types import ForwardResult, HttpRequestSpec


logger = logging.getLogger(__name__)


JSON_CONTENT_TYPE = "application/json"


def merge_headers(*header_sets: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Merge header maps left to right, then pin the JSON content type.

    A caller-supplied Content-Type (any casing) is dropped so the
    body is always announced as JSON.
    """
    merged: Dict[str, str] = {}
    for headers in header_sets:
        for key, value in (headers or {}).items():
            if key.lower() == "content-type":
                continue
            merged[key] = value
    merged["Content-Type"] = JSON_CONTENT_TYPE
    return merged


class CallbackForwarder:
    """Posts JSON payloads to a callback URL and reports the outcome."""

    def __init__(
        self,
        config: Optional[ForwarderConfig] = None,
        client: Optional[ConsensusHttpClient] = None,
    ):
        self._config = config or ForwarderConfig()
        self._client = client or create_consensus_client(self._config.consensus)

    async def send_to_server(
        self,
        server_url: str,
        data: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> ForwardResult:
        """
        Send data to a custom server endpoint.

        Args:
            server_url: Destination URL
            data: JSON-serializable payload
            headers: Extra headers (cannot replace the content type)

        Returns:
            ForwardResult
        """

        async def fetch_and_parse(requester: SendRequester) -> str:
            try:
                spec = HttpRequestSpec(
                    url=server_url,
                    method="POST",
                    headers=merge_headers(self._config.default_headers, headers),
                    body=codec.encode_json(data),
                )
                response = await requester.send_request(spec)

                if 200 <= response.status_code < 300:
                    return json.dumps(ForwardResult.ok(response.text()).to_dict())

                return json.dumps(
                    ForwardResult.failed(f"HTTP {response.status_code}: {response.text()}").to_dict()
                )
            except Exception as e:
                return json.dumps(ForwardResult.failed(error_message(e)).to_dict())

        try:
            result = await self._client.execute_with_consensus(fetch_and_parse, "callback")
            return ForwardResult.from_dict(json.loads(result))
        except Exception as e:
            logger.error(
                f"sendToServer error: {error_message(e)} | classification={classify_exception(e).value}"
            )
            return ForwardResult.failed(error_message(e))


__all__ = [
    "JSON_CONTENT_TYPE",
    "merge_headers",
    "CallbackForwarder",
]
