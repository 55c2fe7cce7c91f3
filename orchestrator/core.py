"""
Orchestrator - Core.

============================================================
RESPONSIBILITY
============================================================
Workflow orchestrator - wires triggers to the relay components.

- Scheduled tick: heartbeat only
- Inbound request: validate -> dispatch -> interpret -> forward
- Builds components per invocation from an immutable config
- Never raises past its boundary

============================================================
ARCHITECTURAL POSITION
============================================================
- This orchestrator has NO model logic
- It does NOT retry
- It does NOT inspect decisions beyond logging them
- It ONLY coordinates execution

============================================================
"""

import asyncio
import json
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Union

from core.clock import ClockProtocol, SystemClock
from core.exceptions import PayloadDecodeError, error_message
from llm_relay.forwarder import CallbackForwarder
from llm_relay.gateway import ModelGateway
from llm_relay.interpreter import interpret_response, summarize_decisions
from llm_relay.types import ModelRequest
from llm_relay.validation import RequestValidator
from .models import (
    STAGE_TRANSITIONS,
    TriggerOutcome,
    TriggerType,
    WorkflowConfig,
    WorkflowRuntime,
    WorkflowStage,
)


HEARTBEAT_MESSAGE = "Hello world!"
LLM_FAILURE_ERROR = "Failed to get response from LLM"

GatewayFactory = Callable[[WorkflowConfig], ModelGateway]
ForwarderFactory = Callable[[WorkflowConfig], CallbackForwarder]


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
) -> logging.Logger:
    """
    Set up process-wide logging.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Workflow logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("workflow")


def _decode_payload(payload: Union[bytes, str, Dict[str, Any]]) -> Any:
    """Inbound trigger input as a decoded JSON value."""
    if isinstance(payload, dict):
        return payload
    try:
        text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        return json.loads(text)
    except (UnicodeDecodeError, TypeError, ValueError) as e:
        raise PayloadDecodeError(f"Cannot decode trigger payload: {e}", cause=e)


def _error_output(message: str) -> str:
    return json.dumps({"error": message})


# ============================================================
# INVOCATION TRACKING
# ============================================================

class _StageTracker:
    """Records stage entries for one invocation, enforcing transitions."""

    def __init__(self):
        self.current = WorkflowStage.IDLE
        self.entered: List[WorkflowStage] = []

    def enter(self, stage: WorkflowStage) -> None:
        if stage not in STAGE_TRANSITIONS[self.current]:
            raise RuntimeError(
                f"Illegal stage transition {self.current.value} -> {stage.value}"
            )
        self.current = stage
        self.entered.append(stage)


# ============================================================
# ORCHESTRATOR
# ============================================================

class WorkflowOrchestrator:
    """
    Handles scheduled and inbound-request triggers.

    Each call builds fresh components; nothing is shared
    between invocations apart from the configuration.
    """

    def __init__(
        self,
        config: WorkflowConfig,
        clock: Optional[ClockProtocol] = None,
        gateway_factory: Optional[GatewayFactory] = None,
        forwarder_factory: Optional[ForwarderFactory] = None,
        validator: Optional[RequestValidator] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Workflow configuration
            clock: Time source for callback timestamps
            gateway_factory: Builds the model gateway per invocation
            forwarder_factory: Builds the callback forwarder per invocation
            validator: Inbound payload validator
        """
        self._config = config
        self._clock = clock or SystemClock()
        self._gateway_factory = gateway_factory or (lambda c: ModelGateway(c.gateway_config()))
        self._forwarder_factory = forwarder_factory or (
            lambda c: CallbackForwarder(c.forwarder_config())
        )
        self._validator = validator or RequestValidator()
        self._logger = logging.getLogger("orchestrator")

        self._last_outcome: Optional[TriggerOutcome] = None
        self._cycle_count = 0
        self._shutdown_requested = False

    # --------------------------------------------------------
    # Properties
    # --------------------------------------------------------

    @property
    def config(self) -> WorkflowConfig:
        return self._config

    @property
    def last_outcome(self) -> Optional[TriggerOutcome]:
        return self._last_outcome

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    def _runtime(self) -> WorkflowRuntime:
        return WorkflowRuntime(
            config=self._config,
            clock=self._clock,
            logger=logging.getLogger("workflow"),
        )

    # --------------------------------------------------------
    # Scheduled trigger
    # --------------------------------------------------------

    def handle_cron(self) -> str:
        """Heartbeat for the scheduled trigger."""
        runtime = self._runtime()
        started_at = runtime.now()

        runtime.log(f"{HEARTBEAT_MESSAGE} Workflow triggered.")

        self._record(TriggerOutcome(
            trigger=TriggerType.CRON,
            output=HEARTBEAT_MESSAGE,
            final_stage=WorkflowStage.DONE,
            started_at=started_at,
            completed_at=runtime.now(),
            stages=[WorkflowStage.DONE],
        ))
        return HEARTBEAT_MESSAGE

    # --------------------------------------------------------
    # Inbound-request trigger
    # --------------------------------------------------------

    async def handle_http(self, payload: Union[bytes, str, Dict[str, Any]]) -> str:
        """
        Run the request path for one inbound payload.

        Args:
            payload: Raw trigger body or an already decoded object

        Returns:
            Output text: an error object, the raw completion, or
            the combined completion/callback object
        """
        runtime = self._runtime()
        tracker = _StageTracker()
        started_at = runtime.now()

        try:
            output = await self._run_request_path(runtime, tracker, payload)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._logger.error(f"Request path failed: {error_message(e)}", exc_info=True)
            output = _error_output(LLM_FAILURE_ERROR)

        final_stage = tracker.current
        tracker.current = WorkflowStage.DONE
        tracker.entered.append(WorkflowStage.DONE)

        self._record(TriggerOutcome(
            trigger=TriggerType.HTTP,
            output=output,
            final_stage=final_stage,
            started_at=started_at,
            completed_at=runtime.now(),
            stages=tracker.entered,
        ))
        return output

    async def _run_request_path(
        self,
        runtime: WorkflowRuntime,
        tracker: _StageTracker,
        payload: Union[bytes, str, Dict[str, Any]],
    ) -> str:
        tracker.enter(WorkflowStage.VALIDATING)
        try:
            decoded = _decode_payload(payload)
        except PayloadDecodeError as e:
            self._logger.warning(e.to_log_format())
            decoded = None

        validation = self._validator.validate(decoded)
        if not validation.is_valid:
            return json.dumps(validation.to_error_dict())

        request = ModelRequest.from_dict(decoded)

        tracker.enter(WorkflowStage.DISPATCHING)
        gateway = self._gateway_factory(self._config)
        response = await gateway.send_request(request)
        if not response:
            return _error_output(LLM_FAILURE_ERROR)

        tracker.enter(WorkflowStage.INTERPRETING)
        parsed = interpret_response(response)
        for line in summarize_decisions(parsed):
            runtime.log(line)

        callback_url = self._config.callback_url
        if not callback_url:
            return response

        tracker.enter(WorkflowStage.FORWARDING)
        forwarder = self._forwarder_factory(self._config)
        server_result = await forwarder.send_to_server(
            callback_url,
            {
                "llm_response": parsed,
                "timestamp": runtime.clock.format_iso(),
            },
        )
        if not server_result.success:
            self._logger.warning(f"Callback delivery failed: {server_result.error}")

        return json.dumps({
            "llm_response": parsed,
            "server_callback": server_result.to_dict(),
        })

    def _record(self, outcome: TriggerOutcome) -> None:
        self._last_outcome = outcome
        self._logger.debug(f"Trigger handled: {outcome.to_dict()}")

    # --------------------------------------------------------
    # Heartbeat loop
    # --------------------------------------------------------

    async def run_forever(self) -> None:
        """
        Fire the scheduled trigger every tick until stopped.

        The deployment scheduler owns the cron expression; this
        loop is the local stand-in for it.
        """
        self._shutdown_requested = False
        self._logger.info(
            f"Starting heartbeat loop | schedule={self._config.schedule} "
            f"interval={self._config.tick_interval_seconds}s"
        )

        while not self._shutdown_requested:
            try:
                await self.run_single_cycle()

                if not self._shutdown_requested:
                    await self._wait_for_next_tick()
            except asyncio.CancelledError:
                self._logger.info("Heartbeat loop cancelled")
                break

    async def run_single_cycle(self) -> TriggerOutcome:
        """Fire the scheduled trigger once."""
        self.handle_cron()
        self._cycle_count += 1
        return self._last_outcome

    def stop(self) -> None:
        """Request the heartbeat loop to exit after the current tick."""
        self._shutdown_requested = True

    async def _wait_for_next_tick(self) -> None:
        wait_seconds = float(self._config.tick_interval_seconds)
        self._logger.debug(f"Waiting {wait_seconds:.1f}s until next tick")
        await asyncio.sleep(wait_seconds)

    # --------------------------------------------------------
    # Status
    # --------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        """Status summary for the health route."""
        last = self._last_outcome
        return {
            "status": "ok",
            "schedule": self._config.schedule,
            "callback_configured": bool(self._config.callback_url),
            "consensus_executors": self._config.consensus_executors,
            "cycle_count": self._cycle_count,
            "last_trigger": last.to_dict() if last else None,
            "checked_at": self._clock.format_iso(),
        }


# ============================================================
# ORCHESTRATOR FACTORY
# ============================================================

def create_orchestrator(
    config: Optional[WorkflowConfig] = None,
    clock: Optional[ClockProtocol] = None,
) -> WorkflowOrchestrator:
    """
    Factory function to create an orchestrator.

    Args:
        config: Configuration (or load from environment)
        clock: Time source (system clock by default)

    Returns:
        Configured WorkflowOrchestrator instance
    """
    if config is None:
        config = WorkflowConfig.from_env()

    return WorkflowOrchestrator(config=config, clock=clock)


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "HEARTBEAT_MESSAGE",
    "LLM_FAILURE_ERROR",
    "WorkflowOrchestrator",
    "create_orchestrator",
    "setup_logging",
]
