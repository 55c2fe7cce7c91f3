"""
LLM Relay - Types.

============================================================
PURPOSE
============================================================
Value objects exchanged between the relay components.

- Chat-completion request (OpenRouter format)
- Trading decision payload (best-effort model output shape)
- Forward result reported by the callback forwarder
- HTTP envelope handed to redundant executors

All types are immutable and live for one trigger invocation.

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


# ============================================================
# ENUMS
# ============================================================

class MessageRole(Enum):
    """Chat message author."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TradeAction(Enum):
    """Action of a single trade decision."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


# ============================================================
# MODEL REQUEST
# ============================================================

@dataclass(frozen=True)
class Message:
    """
    One chat message. Order within a conversation is chronological.

    Keys other than role and content (tool_calls, tool_call_id,
    name, ...) are kept in `extra` and sent back unchanged.
    """

    role: str
    content: Any
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        return cls(
            role=data.get("role", ""),
            content=data.get("content"),
            extra={k: v for k, v in data.items() if k not in ("role", "content")},
        )

    def to_dict(self) -> Dict[str, Any]:
        body = dict(self.extra)
        body["role"] = self.role
        body["content"] = self.content
        return body


@dataclass(frozen=True)
class Tool:
    """
    Function tool definition.

    Passed through to the provider unchanged; only presence
    of the fields is assumed.
    """

    function: Any
    type: str = "function"
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tool":
        return cls(
            function=data.get("function"),
            type=data.get("type", "function"),
            extra={k: v for k, v in data.items() if k not in ("type", "function")},
        )

    def to_dict(self) -> Dict[str, Any]:
        body = dict(self.extra)
        body["type"] = self.type
        if self.function is not None:
            body["function"] = self.function
        return body


def _wrap(entry: Any, factory) -> Any:
    # entries that are not objects travel as received
    return factory(entry) if isinstance(entry, Mapping) else entry


def _unwrap(entry: Any) -> Any:
    return entry.to_dict() if isinstance(entry, (Message, Tool)) else entry


@dataclass(frozen=True)
class ModelRequest:
    """
    Chat-completion request payload.

    Keys the relay does not model are kept in `extra` and sent
    to the provider as received. Message and tool entries that
    are not JSON objects, or a `tools` value that is not a list,
    are kept as they came in.
    """

    model: str
    messages: Tuple[Any, ...]
    response_format: Optional[Dict[str, Any]] = None
    tools: Optional[Any] = None
    tool_choice: Optional[Any] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = (
        "model",
        "messages",
        "response_format",
        "tools",
        "tool_choice",
        "temperature",
        "max_tokens",
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelRequest":
        """Build from a decoded inbound payload."""
        tools = data.get("tools")
        if isinstance(tools, (list, tuple)):
            tools = tuple(_wrap(t, Tool.from_dict) for t in tools)
        return cls(
            model=data.get("model") or "",
            messages=tuple(
                _wrap(m, Message.from_dict) for m in (data.get("messages") or [])
            ),
            response_format=data.get("response_format"),
            tools=tools,
            tool_choice=data.get("tool_choice"),
            temperature=data.get("temperature"),
            max_tokens=data.get("max_tokens"),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the provider, omitting absent optional fields."""
        body: Dict[str, Any] = dict(self.extra)
        body["model"] = self.model
        body["messages"] = [_unwrap(m) for m in self.messages]
        if self.response_format is not None:
            body["response_format"] = self.response_format
        if isinstance(self.tools, tuple):
            body["tools"] = [_unwrap(t) for t in self.tools]
        elif self.tools is not None:
            body["tools"] = self.tools
        if self.tool_choice is not None:
            body["tool_choice"] = self.tool_choice
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.max_tokens is not None:
            body["max_tokens"] = self.max_tokens
        return body


# ============================================================
# TRADING DECISIONS
# ============================================================

@dataclass(frozen=True)
class TradeDecision:
    """A single per-asset decision."""

    asset: str
    action: TradeAction
    allocation_usd: float
    tp_price: Optional[float]
    sl_price: Optional[float]
    exit_plan: str
    rationale: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TradeDecision":
        """
        Strict parse.

        Raises:
            KeyError, ValueError, TypeError: If the shape does not match
        """
        tp_price = data["tp_price"]
        sl_price = data["sl_price"]
        return cls(
            asset=str(data["asset"]),
            action=TradeAction(data["action"]),
            allocation_usd=float(data["allocation_usd"]),
            tp_price=float(tp_price) if tp_price is not None else None,
            sl_price=float(sl_price) if sl_price is not None else None,
            exit_plan=str(data["exit_plan"]),
            rationale=str(data["rationale"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "action": self.action.value,
            "allocation_usd": self.allocation_usd,
            "tp_price": self.tp_price,
            "sl_price": self.sl_price,
            "exit_plan": self.exit_plan,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class TradingDecisionResponse:
    """Hoped-for shape of the model's textual output."""

    reasoning: str
    trade_decisions: Tuple[TradeDecision, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TradingDecisionResponse":
        """
        Strict parse.

        Raises:
            KeyError, ValueError, TypeError: If the shape does not match
        """
        decisions = data["trade_decisions"]
        if not isinstance(decisions, list):
            raise TypeError("trade_decisions must be a list")
        return cls(
            reasoning=str(data["reasoning"]),
            trade_decisions=tuple(TradeDecision.from_dict(d) for d in decisions),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reasoning": self.reasoning,
            "trade_decisions": [d.to_dict() for d in self.trade_decisions],
        }


# ============================================================
# FORWARD RESULT
# ============================================================

@dataclass(frozen=True)
class ForwardResult:
    """Outcome of one callback delivery."""

    success: bool
    response: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, response: str) -> "ForwardResult":
        return cls(success=True, response=response)

    @classmethod
    def failed(cls, error: str) -> "ForwardResult":
        return cls(success=False, error=error)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ForwardResult":
        return cls(
            success=bool(data.get("success")),
            response=data.get("response"),
            error=data.get("error"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting absent fields."""
        out: Dict[str, Any] = {"success": self.success}
        if self.response is not None:
            out["response"] = self.response
        if self.error is not None:
            out["error"] = self.error
        return out


# ============================================================
# HTTP ENVELOPE
# ============================================================

@dataclass(frozen=True)
class HttpRequestSpec:
    """
    Outbound request as handed to an executor.

    The body is base64 text (see core.codec).
    """

    url: str
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


@dataclass(frozen=True)
class HttpResponse:
    """Raw response observed by one executor."""

    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


__all__ = [
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
]
