"""
Callback Forwarder Tests.
"""

import pytest

from core.exceptions import TransportError
from llm_relay import (
    CallbackForwarder,
    ConsensusHttpClient,
    ForwarderConfig,
    ForwardResult,
    MockTransport,
    merge_headers,
)


URL = "https://callback.test/hook"


def _forwarder(*transports: MockTransport, **config) -> CallbackForwarder:
    return CallbackForwarder(
        ForwarderConfig(**config),
        client=ConsensusHttpClient(list(transports)),
    )


class TestMergeHeaders:
    """Tests for header merging."""

    def test_content_type_is_pinned(self):
        """Test that callers cannot replace the content type."""
        merged = merge_headers({"content-type": "text/plain", "X-Trace": "1"})

        assert merged == {"X-Trace": "1", "Content-Type": "application/json"}

    def test_later_sets_win(self):
        """Test left-to-right precedence."""
        merged = merge_headers({"X-A": "1"}, {"X-A": "2"}, None)

        assert merged["X-A"] == "2"
        assert merged["Content-Type"] == "application/json"


class TestSendToServer:
    """Tests for send_to_server."""

    @pytest.mark.asyncio
    async def test_201_is_success(self):
        """Test that any 2xx is a success carrying the body."""
        transport = MockTransport.respond(201, "created")

        result = await _forwarder(transport).send_to_server(URL, {"a": 1})

        assert result == ForwardResult(success=True, response="created")
        assert result.to_dict() == {"success": True, "response": "created"}

    @pytest.mark.asyncio
    async def test_500_is_failure(self):
        """Test that non-2xx yields an HTTP error message."""
        transport = MockTransport.respond(500, "boom")

        result = await _forwarder(transport).send_to_server(URL, {"a": 1})

        assert result.to_dict() == {"success": False, "error": "HTTP 500: boom"}

    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Test URL, method, headers and JSON body."""
        transport = MockTransport.respond(200, "ok")
        forwarder = _forwarder(transport, default_headers={"X-Source": "relay"})

        await forwarder.send_to_server(URL, {"llm_response": {"x": 1}}, {"Content-Type": "text/xml"})

        sent = transport.requests[0]
        assert sent.url == URL
        assert sent.method == "POST"
        assert sent.headers == {"X-Source": "relay", "Content-Type": "application/json"}
        assert transport.decoded_body() == {"llm_response": {"x": 1}}

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self):
        """Test that transport exceptions become in-band failures."""
        transport = MockTransport.failing(TransportError("connection refused"))

        result = await _forwarder(transport).send_to_server(URL, {})

        assert result.success is False
        assert result.error == "connection refused"

    @pytest.mark.asyncio
    async def test_divergent_executors_fail(self, caplog):
        """Test that disagreeing executors fail the delivery."""
        forwarder = _forwarder(MockTransport.respond(200, "a"), MockTransport.respond(200, "b"))

        result = await forwarder.send_to_server(URL, {})

        assert result.success is False
        assert "Consensus failed" in result.error
        assert "sendToServer error:" in caplog.text
        assert "classification=transient" in caplog.text

    @pytest.mark.asyncio
    async def test_identical_executors_succeed(self):
        """Test agreeing executors."""
        forwarder = _forwarder(MockTransport.respond(202, "ack"), MockTransport.respond(202, "ack"))

        result = await forwarder.send_to_server(URL, {})

        assert result == ForwardResult.ok("ack")
