"""
Orchestrator Package - Workflow Coordination Layer.

============================================================
PACKAGE OVERVIEW
============================================================
This package wires the two workflow triggers to the relay
components in llm_relay.

============================================================
CORE PRINCIPLES
============================================================
1. The orchestrator has NO model logic
2. It does NOT retry failed calls
3. Every failure is reported in-band, never raised
4. It ONLY coordinates execution

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                WorkflowOrchestrator                 |
    |-----------------------------------------------------|
    |  TriggerType    |  cron tick, inbound request       |
    |  WorkflowStage  |  6 stages in strict order         |
    |  TriggerAPI     |  aiohttp trigger server           |
    |  CLI            |  Command-line interface           |
    +-----------------------------------------------------+

============================================================
WORKFLOW STAGES (request path)
============================================================
 0. IDLE          - Waiting for a trigger
 1. VALIDATING    - Validate inbound payload
 2. DISPATCHING   - Send request to the model provider
 3. INTERPRETING  - Interpret the completion
 4. FORWARDING    - Forward result to the callback server
 5. DONE          - Invocation finished

============================================================
QUICK START
============================================================
Command line usage::

    # Serve POST /trigger, POST /cron, GET /health
    python app.py --mode serve

    # One heartbeat
    python app.py --mode cron --single-cycle

    # Run the request path once
    python app.py --mode request --payload-file request.json

Programmatic usage::

    import asyncio
    from orchestrator import WorkflowConfig, create_orchestrator

    async def main():
        orchestrator = create_orchestrator(WorkflowConfig.from_env())
        print(await orchestrator.handle_http(b'{"model": "m", "messages": [...]}'))

    asyncio.run(main())

============================================================
"""

# ============================================================
# Models
# ============================================================
from orchestrator.models import (
    TriggerType,
    WorkflowStage,
    STAGE_TRANSITIONS,
    WorkflowConfig,
    WorkflowRuntime,
    TriggerOutcome,
)

# ============================================================
# Core
# ============================================================
from orchestrator.core import (
    HEARTBEAT_MESSAGE,
    LLM_FAILURE_ERROR,
    WorkflowOrchestrator,
    create_orchestrator,
    setup_logging,
)

# ============================================================
# Trigger server
# ============================================================
from orchestrator.api import (
    TriggerAPI,
    create_trigger_app,
    serve,
)

# ============================================================
# CLI
# ============================================================
from orchestrator.cli import (
    create_parser,
    validate_args,
    build_config,
    main,
)


__all__ = [
    # Models
    "TriggerType",
    "WorkflowStage",
    "STAGE_TRANSITIONS",
    "WorkflowConfig",
    "WorkflowRuntime",
    "TriggerOutcome",
    # Core
    "HEARTBEAT_MESSAGE",
    "LLM_FAILURE_ERROR",
    "WorkflowOrchestrator",
    "create_orchestrator",
    "setup_logging",
    # Trigger server
    "TriggerAPI",
    "create_trigger_app",
    "serve",
    # CLI
    "create_parser",
    "validate_args",
    "build_config",
    "main",
]
