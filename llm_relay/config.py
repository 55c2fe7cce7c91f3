"""
LLM Relay - Configuration.

============================================================
PURPOSE
============================================================
Configuration slices handed to each relay component.

CRITICAL CONSTRAINTS:
- No retries at this layer
- No global lookups inside components
- One logical call per invocation

============================================================
"""

from dataclasses import dataclass, field
from typing import Dict


OPENROUTER_CHAT_COMPLETIONS_URL = "https://openrouter.ai/api/v1/chat/completions"


# ============================================================
# TIMEOUT CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Timeout configuration for a single executor.
    """

    connection_timeout_seconds: float = 10.0
    """Connection timeout."""

    request_timeout_seconds: float = 120.0
    """Total timeout for one request/response exchange."""


# ============================================================
# CONSENSUS CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class ConsensusConfig:
    """
    Redundant-execution configuration.

    Every executor issues the same call; all results must be
    byte-identical for the call to succeed.
    """

    executor_count: int = 1
    """Number of independent executors per outbound call."""

    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)


# ============================================================
# COMPONENT CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class GatewayConfig:
    """Model gateway configuration."""

    api_key: str = ""
    """Bearer credential for the model provider."""

    base_url: str = OPENROUTER_CHAT_COMPLETIONS_URL
    """Chat-completion route."""

    consensus: ConsensusConfig = field(default_factory=ConsensusConfig)


@dataclass(frozen=True)
class ForwarderConfig:
    """Callback forwarder configuration."""

    default_headers: Dict[str, str] = field(default_factory=dict)
    """Extra headers sent with every callback."""

    consensus: ConsensusConfig = field(default_factory=ConsensusConfig)


__all__ = [
    "OPENROUTER_CHAT_COMPLETIONS_URL",
    "TimeoutConfig",
    "ConsensusConfig",
    "GatewayConfig",
    "ForwarderConfig",
]
