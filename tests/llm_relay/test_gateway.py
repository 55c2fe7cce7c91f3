"""
Model Gateway Tests.

============================================================
PURPOSE
============================================================
Tests for the chat-completion call, its error envelope and
consensus behaviour.

TEST CATEGORIES:
- Request shape: URL, headers, body envelope
- Response reduction: 200 / non-200 / missing content
- Consensus: identical vs divergent executors
- Error-key heuristic

============================================================
"""

import json

import pytest

from core.exceptions import TransportError
from llm_relay import (
    ConsensusHttpClient,
    GatewayConfig,
    Message,
    MockTransport,
    ModelGateway,
    ModelRequest,
    TradeAction,
)


API_KEY = "sk-or-test-key"


def _request() -> ModelRequest:
    return ModelRequest(model="m", messages=(Message(role="user", content="hi"),))


def _gateway(*transports: MockTransport) -> ModelGateway:
    config = GatewayConfig(api_key=API_KEY, base_url="https://llm.test/v1/chat/completions")
    return ModelGateway(config, client=ConsensusHttpClient(list(transports)))


# ============================================================
# REQUEST SHAPE
# ============================================================

class TestRequestShape:
    """Tests for the outbound request."""

    @pytest.mark.asyncio
    async def test_post_with_bearer_and_json(self):
        """Test method, URL and headers."""
        transport = MockTransport.completion("X")

        await _gateway(transport).send_request(_request())

        sent = transport.requests[0]
        assert sent.method == "POST"
        assert sent.url == "https://llm.test/v1/chat/completions"
        assert sent.headers["Authorization"] == f"Bearer {API_KEY}"
        assert sent.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_body_is_serialized_request(self):
        """Test that the base64 body carries the request as JSON."""
        transport = MockTransport.completion("X")
        request = ModelRequest.from_dict({
            "model": "m",
            "messages": [{"role": "user", "content": "hi"}],
            "temperature": 0.2,
            "provider": {"order": ["a"]},
        })

        await _gateway(transport).send_request(request)

        assert transport.decoded_body() == {
            "model": "m",
            "messages": [{"role": "user", "content": "hi"}],
            "temperature": 0.2,
            "provider": {"order": ["a"]},
        }

    @pytest.mark.asyncio
    async def test_tool_conversation_is_sent_unchanged(self):
        """Test that message and tool keys beyond role/content survive."""
        transport = MockTransport.completion("X")
        payload = {
            "model": "m",
            "messages": [
                {"role": "user", "content": "price of BTC?"},
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [{
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "quote", "arguments": "{\"asset\": \"BTC\"}"},
                    }],
                },
                {"role": "tool", "tool_call_id": "call_1", "name": "quote", "content": "42"},
            ],
            "tools": [{
                "type": "function",
                "function": {"name": "quote", "parameters": {"type": "object"}},
                "cache_control": {"type": "ephemeral"},
            }],
            "tool_choice": "auto",
        }

        await _gateway(transport).send_request(ModelRequest.from_dict(payload))

        assert transport.decoded_body() == payload

    @pytest.mark.asyncio
    async def test_non_object_entries_are_sent_unchanged(self):
        """Test that odd message and tool entries are forwarded as received."""
        transport = MockTransport.completion("X")
        payload = {
            "model": "m",
            "messages": [{"role": "user", "content": "hi"}, "loose text"],
            "tools": ["quote", {"type": "function", "function": {"name": "x"}}],
        }

        await _gateway(transport).send_request(ModelRequest.from_dict(payload))

        assert transport.decoded_body() == payload

    @pytest.mark.asyncio
    async def test_string_tools_are_sent_unchanged(self):
        """Test that a scalar tools value is forwarded as received."""
        transport = MockTransport.completion("X")
        payload = {"model": "m", "messages": [{"role": "user", "content": "hi"}], "tools": "quote"}

        result = await _gateway(transport).send_request(ModelRequest.from_dict(payload))

        assert result == "X"
        assert transport.decoded_body() == payload


# ============================================================
# RESPONSE REDUCTION
# ============================================================

class TestResponses:
    """Tests for response handling."""

    @pytest.mark.asyncio
    async def test_returns_content(self):
        """Test that choices[0].message.content is returned."""
        result = await _gateway(MockTransport.completion("X")).send_request(_request())
        assert result == "X"

    @pytest.mark.asyncio
    async def test_404_returns_none(self, caplog):
        """Test that a non-200 status is a failure."""
        transport = MockTransport.respond(404, "not found")

        result = await _gateway(transport).send_request(_request())

        assert result is None
        assert "LLM error: HTTP 404: not found" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_content_returns_none(self, caplog):
        """Test that a 200 without content is a failure."""
        transport = MockTransport.respond_json(200, {"choices": []})

        result = await _gateway(transport).send_request(_request())

        assert result is None
        assert "No content in response" in caplog.text

    @pytest.mark.asyncio
    async def test_null_content_returns_none(self):
        """Test that null content is a failure."""
        result = await _gateway(MockTransport.completion(None)).send_request(_request())
        assert result is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self):
        """Test that a non-JSON 200 body is a failure."""
        result = await _gateway(MockTransport.respond(200, "<html>")).send_request(_request())
        assert result is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self):
        """Test that transport exceptions are reduced to a failure."""
        transport = MockTransport.failing(TransportError("timed out"))

        result = await _gateway(transport).send_request(_request())

        assert result is None

    @pytest.mark.asyncio
    async def test_error_key_in_completion_is_a_failure(self):
        """Test the error-key heuristic on legitimate completions."""
        completion = json.dumps({"error": "model refused"})

        result = await _gateway(MockTransport.completion(completion)).send_request(_request())

        assert result is None

    @pytest.mark.asyncio
    async def test_falsy_error_key_passes_through(self):
        """Test that an empty error value is not treated as a failure."""
        completion = json.dumps({"error": "", "reasoning": "ok"})

        result = await _gateway(MockTransport.completion(completion)).send_request(_request())

        assert result == completion


# ============================================================
# CONSENSUS
# ============================================================

class TestGatewayConsensus:
    """Tests for redundant execution through the gateway."""

    @pytest.mark.asyncio
    async def test_identical_executors_succeed(self):
        """Test two identical 200 responses."""
        gateway = _gateway(MockTransport.completion("X"), MockTransport.completion("X"))

        assert await gateway.send_request(_request()) == "X"

    @pytest.mark.asyncio
    async def test_divergent_executors_fail(self, caplog):
        """Test two 200 responses with differing bodies."""
        gateway = _gateway(MockTransport.completion("X"), MockTransport.completion("Y"))

        assert await gateway.send_request(_request()) is None
        assert "sendRequest error:" in caplog.text
        assert "classification=transient" in caplog.text


# ============================================================
# TRADING DECISIONS
# ============================================================

class TestTradingDecisions:
    """Tests for get_trading_decisions."""

    @pytest.mark.asyncio
    async def test_parses_decisions(self):
        """Test strict parsing of a well-formed completion."""
        completion = json.dumps({
            "reasoning": "ok",
            "trade_decisions": [{
                "asset": "BTC", "action": "buy", "allocation_usd": 100,
                "tp_price": None, "sl_price": 90.5,
                "exit_plan": "x", "rationale": "y",
            }],
        })

        parsed = await _gateway(MockTransport.completion(completion)).get_trading_decisions(_request())

        assert parsed.reasoning == "ok"
        assert parsed.trade_decisions[0].action == TradeAction.BUY
        assert parsed.trade_decisions[0].sl_price == 90.5

    @pytest.mark.asyncio
    async def test_unparseable_completion_returns_none(self):
        """Test that free text yields None."""
        result = await _gateway(MockTransport.completion("hold everything")).get_trading_decisions(_request())
        assert result is None

    @pytest.mark.asyncio
    async def test_failed_call_returns_none(self):
        """Test that a failed call yields None."""
        result = await _gateway(MockTransport.respond(500, "")).get_trading_decisions(_request())
        assert result is None
