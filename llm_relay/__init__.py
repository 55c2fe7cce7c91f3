"""
LLM Relay Package.

============================================================
PURPOSE
============================================================
Outbound side of the decision workflow.

COMPONENTS:
- RequestValidator: minimal inbound schema check
- ModelGateway: chat-completion call with consensus
- interpret_response: best-effort decision parsing
- CallbackForwarder: downstream delivery with consensus

INFRASTRUCTURE:
- ConsensusHttpClient: redundant-execution dispatch
- AiohttpTransport / MockTransport: per-executor senders

============================================================
"""

# Types
from .types import (
    MessageRole,
    TradeAction,
    Message,
    Tool,
    ModelRequest,
    TradeDecision,
    TradingDecisionResponse,
    ForwardResult,
    HttpRequestSpec,
    HttpResponse,
)

# Configuration
from .config import (
    OPENROUTER_CHAT_COMPLETIONS_URL,
    TimeoutConfig,
    ConsensusConfig,
    GatewayConfig,
    ForwarderConfig,
)

# Transports
from .transport import HttpTransport, AiohttpTransport
from .mock import MockTransport, MockConfig

# Consensus
from .consensus import (
    SendRequester,
    AggregationPolicy,
    IdenticalAggregation,
    ConsensusHttpClient,
    create_consensus_client,
)

# Components
from .validation import MISSING_DATA_ERROR, ValidationResult, RequestValidator
from .gateway import ModelGateway
from .interpreter import interpret_response, parse_trading_decisions, summarize_decisions
from .forwarder import CallbackForwarder, merge_headers

# Logging
from .logging_utils import mask_value, mask_headers


__all__ = [
    # Types
    "MessageRole",
    "TradeAction",
    "Message",
    "Tool",
    "ModelRequest",
    "TradeDecision",
    "TradingDecisionResponse",
    "ForwardResult",
    "HttpRequestSpec",
    "HttpResponse",
    # Configuration
    "OPENROUTER_CHAT_COMPLETIONS_URL",
    "TimeoutConfig",
    "ConsensusConfig",
    "GatewayConfig",
    "ForwarderConfig",
    # Transports
    "HttpTransport",
    "AiohttpTransport",
    "MockTransport",
    "MockConfig",
    # Consensus
    "SendRequester",
    "AggregationPolicy",
    "IdenticalAggregation",
    "ConsensusHttpClient",
    "create_consensus_client",
    # Components
    "MISSING_DATA_ERROR",
    "ValidationResult",
    "RequestValidator",
    "ModelGateway",
    "interpret_response",
    "parse_trading_decisions",
    "summarize_decisions",
    "CallbackForwarder",
    "merge_headers",
    # Logging
    "mask_value",
    "mask_headers",
]
