"""
Trigger Server Tests.

Exercises the aiohttp routes with aiohttp's test client.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from llm_relay import ForwardResult
from orchestrator import WorkflowConfig, WorkflowOrchestrator, create_trigger_app


def _orchestrator(completion, callback_url=""):
    gateway = MagicMock()
    gateway.send_request = AsyncMock(return_value=completion)
    forwarder = MagicMock()
    forwarder.send_to_server = AsyncMock(return_value=ForwardResult.ok("ack"))
    return WorkflowOrchestrator(
        WorkflowConfig(openrouter_api_key="k", callback_url=callback_url),
        gateway_factory=lambda c: gateway,
        forwarder_factory=lambda c: forwarder,
    )


PAYLOAD = {"model": "m", "messages": [{"role": "user", "content": "hi"}]}


class TestTriggerRoutes:
    """Tests for the trigger server routes."""

    @pytest.mark.asyncio
    async def test_trigger_returns_raw_completion_as_text(self):
        """Test that non-JSON output is served as text/plain."""
        app = create_trigger_app(_orchestrator("plain words"))

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/trigger", json=PAYLOAD)

            assert resp.status == 200
            assert resp.content_type == "text/plain"
            assert await resp.text() == "plain words"

    @pytest.mark.asyncio
    async def test_trigger_returns_json_output(self):
        """Test combined output with a callback configured."""
        completion = json.dumps({"reasoning": "ok", "trade_decisions": []})
        app = create_trigger_app(_orchestrator(completion, callback_url="https://cb.test/"))

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/trigger", json=PAYLOAD)

            assert resp.content_type == "application/json"
            assert json.loads(await resp.text()) == {
                "llm_response": {"reasoning": "ok", "trade_decisions": []},
                "server_callback": {"success": True, "response": "ack"},
            }

    @pytest.mark.asyncio
    async def test_trigger_invalid_payload(self):
        """Test that validation errors are in-band with status 200."""
        app = create_trigger_app(_orchestrator("X"))

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/trigger", data=b"{}")

            assert resp.status == 200
            assert json.loads(await resp.text()) == {
                "error": "Missing required data: model and messages are required"
            }

    @pytest.mark.asyncio
    async def test_cron(self):
        """Test the scheduled trigger route."""
        app = create_trigger_app(_orchestrator("X"))

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/cron")

            assert resp.status == 200
            assert await resp.text() == "Hello world!"

    @pytest.mark.asyncio
    async def test_health(self):
        """Test the health route."""
        orchestrator = _orchestrator("X")
        app = create_trigger_app(orchestrator)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/health")
            data = await resp.json()

        assert data["status"] == "ok"
        assert data["schedule"] == orchestrator.config.schedule
        assert len(app) == 0

    @pytest.mark.asyncio
    async def test_trigger_rejects_get(self):
        """Test that only POST fires the request path."""
        app = create_trigger_app(_orchestrator("X"))

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/trigger")

            assert resp.status == 405
