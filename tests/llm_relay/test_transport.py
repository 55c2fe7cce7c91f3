"""
aiohttp Transport Tests.

Runs AiohttpTransport against a local aiohttp test server.
"""

import json

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from core import codec
from core.exceptions import TransportError
from llm_relay import AiohttpTransport, HttpRequestSpec, TimeoutConfig


async def _echo(request: web.Request) -> web.Response:
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "content_type": request.headers.get("Content-Type"),
            "authorization": request.headers.get("Authorization"),
            "body": body.decode("utf-8"),
        },
        status=201,
    )


@pytest_asyncio.fixture
async def echo_server():
    app = web.Application()
    app.router.add_post("/echo", _echo)
    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


class TestAiohttpTransport:
    """Tests for AiohttpTransport."""

    @pytest.mark.asyncio
    async def test_sends_decoded_body(self, echo_server):
        """Test that the base64 envelope is decoded before sending."""
        transport = AiohttpTransport(TimeoutConfig(connection_timeout_seconds=5, request_timeout_seconds=5))
        spec = HttpRequestSpec(
            url=str(echo_server.make_url("/echo")),
            headers={"Content-Type": "application/json", "Authorization": "Bearer k"},
            body=codec.encode_json({"model": "m"}),
        )

        response = await transport.send(spec)

        assert response.status_code == 201
        echoed = json.loads(response.text())
        assert echoed["method"] == "POST"
        assert echoed["authorization"] == "Bearer k"
        assert json.loads(echoed["body"]) == {"model": "m"}

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        """Test that connection errors surface as TransportError."""
        transport = AiohttpTransport(TimeoutConfig(connection_timeout_seconds=1, request_timeout_seconds=2))
        spec = HttpRequestSpec(url="http://127.0.0.1:9/unreachable", body="")

        with pytest.raises(TransportError):
            await transport.send(spec)
