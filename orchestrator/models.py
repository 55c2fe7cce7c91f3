"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Defines data models for the workflow orchestrator.

- Trigger types (scheduled tick, inbound request)
- Workflow stages with strict ordering
- Workflow configuration (file + environment)
- Per-invocation runtime handle and outcome

============================================================
"""

from enum import Enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union
import json
import logging
import os

from dotenv import load_dotenv

from core.clock import ClockProtocol, SystemClock
from core.exceptions import ConfigurationError
from llm_relay.config import (
    OPENROUTER_CHAT_COMPLETIONS_URL,
    ConsensusConfig,
    ForwarderConfig,
    GatewayConfig,
    TimeoutConfig,
)


# ============================================================
# TRIGGER TYPES
# ============================================================

class TriggerType(Enum):
    """External events that start one invocation."""

    CRON = "cron"
    """Scheduled tick. No payload."""

    HTTP = "http"
    """Inbound request carrying a ModelRequest payload."""


# ============================================================
# WORKFLOW STAGES
# ============================================================

class WorkflowStage(Enum):
    """
    Stages of the request path in strict order.

    Validation or dispatch failure short-circuits to DONE.
    """

    IDLE = "idle"
    VALIDATING = "validating"
    DISPATCHING = "dispatching"
    INTERPRETING = "interpreting"
    FORWARDING = "forwarding"
    DONE = "done"


# Allowed transitions of the request path
STAGE_TRANSITIONS: Dict[WorkflowStage, List[WorkflowStage]] = {
    WorkflowStage.IDLE: [WorkflowStage.VALIDATING, WorkflowStage.DONE],
    WorkflowStage.VALIDATING: [WorkflowStage.DISPATCHING, WorkflowStage.DONE],
    WorkflowStage.DISPATCHING: [WorkflowStage.INTERPRETING, WorkflowStage.DONE],
    WorkflowStage.INTERPRETING: [WorkflowStage.FORWARDING, WorkflowStage.DONE],
    WorkflowStage.FORWARDING: [WorkflowStage.DONE],
    WorkflowStage.DONE: [],
}


# ============================================================
# CONFIGURATION
# ============================================================

# camelCase keys of the workflow config file and their field types
_FILE_KEYS = {
    "schedule": ("schedule", str),
    "authorizedEVMAddress": ("authorized_evm_address", str),
    "callbackUrl": ("callback_url", str),
    "openRouterApiKey": ("openrouter_api_key", str),
    "openRouterBaseUrl": ("openrouter_base_url", str),
    "tickIntervalSeconds": ("tick_interval_seconds", int),
    "consensusExecutors": ("consensus_executors", int),
}


def _file_value(key: str, kind: type, value: Any) -> Any:
    """Coerce one config file value to its field type."""
    if kind is str:
        if isinstance(value, str):
            return value
        raise ConfigurationError(f"{key} must be a string, got {value!r}", config_key=key)

    # integers may be written as JSON numbers or numeric strings
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", config_key=key)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", config_key=key, cause=e)


def _env_number(name: str, default: str, kind: type) -> Any:
    raw = os.getenv(name, default)
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", config_key=name, cause=e)


@dataclass(frozen=True)
class WorkflowConfig:
    """Configuration for one workflow deployment."""

    # Trigger settings
    schedule: str = "0 */5 * * * *"
    """Cron expression handed to the external scheduler."""

    tick_interval_seconds: int = 300
    """Interval of the local heartbeat loop."""

    authorized_evm_address: str = ""
    """Public key allowed to fire the HTTP trigger (verified upstream)."""

    # Outbound settings
    callback_url: str = ""
    """Downstream endpoint. Empty disables forwarding."""

    openrouter_api_key: str = ""
    """Model provider credential."""

    openrouter_base_url: str = OPENROUTER_CHAT_COMPLETIONS_URL
    """Chat-completion route."""

    consensus_executors: int = 1
    """Redundant executors per outbound call."""

    connect_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 120.0

    # Local trigger server
    host: str = "127.0.0.1"
    port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "WorkflowConfig":
        """
        Load configuration from environment variables (and .env).

        Raises:
            ConfigurationError: If a numeric variable does not parse
        """
        load_dotenv()
        return cls(
            schedule=os.getenv("SCHEDULE", cls.schedule),
            tick_interval_seconds=_env_number("TICK_INTERVAL_SECONDS", "300", int),
            authorized_evm_address=os.getenv("AUTHORIZED_EVM_ADDRESS", ""),
            callback_url=os.getenv("CALLBACK_URL", ""),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", OPENROUTER_CHAT_COMPLETIONS_URL),
            consensus_executors=_env_number("CONSENSUS_EXECUTORS", "1", int),
            connect_timeout_seconds=_env_number("HTTP_CONNECT_TIMEOUT_SECONDS", "10", float),
            request_timeout_seconds=_env_number("HTTP_REQUEST_TIMEOUT_SECONDS", "120", float),
            host=os.getenv("TRIGGER_HOST", "127.0.0.1"),
            port=_env_number("TRIGGER_PORT", "8080", int),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "WorkflowConfig":
        """
        Load the workflow config file.

        Keys present in the file win; everything else comes
        from the environment.

        Raises:
            ConfigurationError: If the file cannot be read or parsed,
                or a value has the wrong type
        """
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot load config file {path}: {e}", cause=e)

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")

        overrides: Dict[str, Any] = {}
        for file_key, (attr, kind) in _FILE_KEYS.items():
            if file_key in raw and raw[file_key] is not None:
                overrides[attr] = _file_value(file_key, kind, raw[file_key])

        unknown = sorted(set(raw) - set(_FILE_KEYS))
        if unknown:
            logging.getLogger(__name__).warning(f"Ignoring unknown config keys: {unknown}")

        return replace(cls.from_env(), **overrides)

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.tick_interval_seconds < 1:
            errors.append("tick_interval_seconds must be at least 1")

        if self.consensus_executors < 1:
            errors.append("consensus_executors must be at least 1")

        if self.connect_timeout_seconds <= 0 or self.request_timeout_seconds <= 0:
            errors.append("HTTP timeouts must be positive")

        if not self.openrouter_api_key:
            errors.append("openrouter_api_key is required")

        if self.callback_url and not self.callback_url.startswith(("http://", "https://")):
            errors.append("callback_url must be an http(s) URL")

        if not 0 < self.port < 65536:
            errors.append("port must be between 1 and 65535")

        return errors

    # --------------------------------------------------------
    # Component slices
    # --------------------------------------------------------

    def consensus_config(self) -> ConsensusConfig:
        return ConsensusConfig(
            executor_count=self.consensus_executors,
            timeouts=TimeoutConfig(
                connection_timeout_seconds=self.connect_timeout_seconds,
                request_timeout_seconds=self.request_timeout_seconds,
            ),
        )

    def gateway_config(self) -> GatewayConfig:
        return GatewayConfig(
            api_key=self.openrouter_api_key,
            base_url=self.openrouter_base_url,
            consensus=self.consensus_config(),
        )

    def forwarder_config(self) -> ForwarderConfig:
        return ForwarderConfig(consensus=self.consensus_config())

    def to_log_dict(self) -> Dict[str, Any]:
        """Configuration summary safe for logs."""
        return {
            "schedule": self.schedule,
            "tick_interval_seconds": self.tick_interval_seconds,
            "callback_url": self.callback_url or None,
            "openrouter_base_url": self.openrouter_base_url,
            "openrouter_api_key_set": bool(self.openrouter_api_key),
            "consensus_executors": self.consensus_executors,
        }


# ============================================================
# RUNTIME HANDLE
# ============================================================

@dataclass(frozen=True)
class WorkflowRuntime:
    """
    Per-invocation handle: configuration, time and logging.
    """

    config: WorkflowConfig
    clock: ClockProtocol = field(default_factory=SystemClock)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("workflow"))

    def log(self, message: str) -> None:
        self.logger.info(message)

    def now(self) -> datetime:
        return self.clock.now()


# ============================================================
# TRIGGER OUTCOME
# ============================================================

@dataclass(frozen=True)
class TriggerOutcome:
    """Result of handling one trigger."""

    trigger: TriggerType
    output: str
    """Text returned to the trigger source."""

    final_stage: WorkflowStage
    """Last stage entered before DONE (DONE for the cron path)."""

    started_at: datetime
    completed_at: datetime
    stages: List[WorkflowStage] = field(default_factory=list)
    """Stages entered, in order."""

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.trigger.value,
            "final_stage": self.final_stage.value,
            "stages": [s.value for s in self.stages],
            "duration_seconds": self.duration_seconds,
        }


__all__ = [
    "TriggerType",
    "WorkflowStage",
    "STAGE_TRANSITIONS",
    "WorkflowConfig",
    "WorkflowRuntime",
    "TriggerOutcome",
]
