"""
Orchestrator - Trigger Server.

============================================================
PURPOSE
============================================================
Local HTTP surface for firing workflow triggers.

ENDPOINTS:
- POST /trigger  inbound-request trigger (body = ModelRequest JSON)
- POST /cron     scheduled trigger, fired by an external scheduler
- GET  /health   status and configured schedule

Caller authentication is enforced by the deployment in front of
this server; requests reaching it are treated as authorized.

============================================================
"""

import json
import logging
from typing import Any

from aiohttp import web

from .core import WorkflowOrchestrator


logger = logging.getLogger(__name__)


def json_response(data: Any, status: int = 200) -> web.Response:
    """Create JSON response."""
    return web.Response(
        text=json.dumps(data, indent=2),
        status=status,
        content_type="application/json",
    )


def output_response(output: str) -> web.Response:
    """Workflow output as JSON when it parses, plain text otherwise."""
    try:
        json.loads(output)
    except ValueError:
        return web.Response(text=output, content_type="text/plain")
    return web.Response(text=output, content_type="application/json")


# ============================================================
# API HANDLERS
# ============================================================

class TriggerAPI:
    """HTTP handlers delegating to one orchestrator."""

    def __init__(self, orchestrator: WorkflowOrchestrator):
        self._orchestrator = orchestrator

    async def trigger(self, request: web.Request) -> web.Response:
        """
        POST /trigger

        Runs the request path with the raw body. Workflow errors
        are in-band, so the status is always 200.
        """
        body = await request.read()
        logger.debug(f"Trigger received | bytes={len(body)}")
        output = await self._orchestrator.handle_http(body)
        return output_response(output)

    async def cron(self, request: web.Request) -> web.Response:
        """POST /cron"""
        return output_response(self._orchestrator.handle_cron())

    async def health(self, request: web.Request) -> web.Response:
        """GET /health"""
        return json_response(self._orchestrator.get_status())


# ============================================================
# APPLICATION FACTORY
# ============================================================

def create_trigger_app(orchestrator: WorkflowOrchestrator) -> web.Application:
    """
    Create trigger server application.

    Returns an aiohttp Application with all routes configured.
    """
    api = TriggerAPI(orchestrator)

    app = web.Application()
    app.router.add_post("/trigger", api.trigger)
    app.router.add_post("/cron", api.cron)
    app.router.add_get("/health", api.health)

    return app


async def serve(orchestrator: WorkflowOrchestrator) -> web.AppRunner:
    """Start the trigger server on the configured host and port."""
    config = orchestrator.config
    runner = web.AppRunner(create_trigger_app(orchestrator))
    await runner.setup()

    site = web.TCPSite(runner, config.host, config.port)
    await site.start()

    logger.info(f"Trigger server listening on http://{config.host}:{config.port}")
    return runner


__all__ = [
    "json_response",
    "output_response",
    "TriggerAPI",
    "create_trigger_app",
    "serve",
]
