"""
LLM Relay - Model Gateway.

============================================================
PURPOSE
============================================================
One logical chat-completion call to the model provider.

FLOW (per executor):
1. Serialize the ModelRequest, base64 it into the envelope
2. POST with bearer credential and JSON content type
3. Reduce the response to text:
   - non-200          -> {"error": "HTTP <code>: <body>"}
   - 200 + content    -> choices[0].message.content
   - 200, no content  -> {"error": "No content in response", "raw": ...}
   - any exception    -> {"error": "<message>"}

Then, after identical-result consensus, an agreed text that is
a JSON object with an "error" key is treated as a failed call.

KNOWN SHARP EDGE:
A legitimate completion whose JSON body happens to carry a
top-level "error" field is also classified as a failure.

============================================================
"""

import json
import logging
from typing import Any, Optional

from core import codec
from core.exceptions import classify_exception, error_message
from .config import GatewayConfig
from .consensus import ConsensusHttpClient, SendRequester, create_consensus_client
from .interpreter import parse_trading_decisions
from .types import HttpRequestSpec, ModelRequest, TradingDecisionResponse


logger = logging.getLogger(__name__)


class ModelGateway:
    """
    Chat-completion client for OpenRouter-compatible providers.

    Returns the completion text or None; never raises.
    """

    def __init__(
        self,
        config: GatewayConfig,
        client: Optional[ConsensusHttpClient] = None,
    ):
        """
        Initialize gateway.

        Args:
            config: Gateway configuration (credential, route)
            client: Consensus client (built from config when omitted)
        """
        self._config = config
        self._client = client or create_consensus_client(config.consensus)

    async def send_request(self, request: ModelRequest) -> Optional[str]:
        """
        Send the request and return the completion text.

        Returns:
            Completion text, or None on any failure
        """
        body = codec.encode_json(request.to_dict())
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        spec = HttpRequestSpec(
            url=self._config.base_url,
            method="POST",
            headers=headers,
            body=body,
        )

        async def fetch_and_parse(requester: SendRequester) -> str:
            try:
                response = await requester.send_request(spec)

                if response.status_code != 200:
                    return json.dumps({"error": f"HTTP {response.status_code}: {response.text()}"})

                data = json.loads(response.text())
                content = _extract_content(data)
                if content:
                    return content

                return json.dumps({"error": "No content in response", "raw": data})
            except Exception as e:
                return json.dumps({"error": error_message(e)})

        try:
            result = await self._client.execute_with_consensus(fetch_and_parse, "llm")
        except Exception as e:
            logger.error(
                f"sendRequest error: {error_message(e)} | classification={classify_exception(e).value}"
            )
            return None

        error = _error_envelope(result)
        if error is not None:
            logger.error(f"LLM error: {error}")
            return None

        return result

    async def get_trading_decisions(
        self,
        request: ModelRequest,
    ) -> Optional[TradingDecisionResponse]:
        """Send the request and strictly parse the decision payload."""
        response = await self.send_request(request)
        if not response:
            return None
        return parse_trading_decisions(response)


# ============================================================
# RESPONSE HELPERS
# ============================================================

def _extract_content(data: Any) -> Optional[str]:
    """choices[0].message.content, or None when any step is missing."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _error_envelope(text: str) -> Optional[Any]:
    """The "error" value if text is a JSON object carrying one."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    if isinstance(parsed, dict) and parsed.get("error"):
        return parsed["error"]
    return None


__all__ = [
    "ModelGateway",
]
