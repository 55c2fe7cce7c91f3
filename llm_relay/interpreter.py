"""
LLM Relay - Response Interpreter.

============================================================
PURPOSE
============================================================
Turns the model's completion text into a structured value.

The parsed shape is advisory only: consumers must accept both
a decision object and the {"raw_response": text} fallback.
Nothing here raises and the text is never dropped.

============================================================
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .types import TradingDecisionResponse


logger = logging.getLogger(__name__)


def interpret_response(text: str) -> Dict[str, Any]:
    """
    Parse completion text, falling back to a raw wrapper.

    Args:
        text: Completion text from the gateway

    Returns:
        The parsed JSON object, or {"raw_response": text}
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return {"raw_response": text}

    if not isinstance(parsed, dict):
        return {"raw_response": text}

    return parsed


def parse_trading_decisions(text: str) -> Optional[TradingDecisionResponse]:
    """Strict parse into TradingDecisionResponse, None on any mismatch."""
    try:
        parsed = json.loads(text)
        if not isinstance(parsed, dict):
            raise TypeError(f"expected an object, got {type(parsed).__name__}")
        return TradingDecisionResponse.from_dict(parsed)
    except (KeyError, TypeError, ValueError) as e:
        logger.info(f"Failed to parse trading decisions: {e}")
        return None


def summarize_decisions(parsed: Dict[str, Any]) -> List[str]:
    """
    Log lines for the decisions in an interpreted response.

    Tolerates any shape; entries that are not objects are skipped.
    """
    decisions = parsed.get("trade_decisions")
    if not isinstance(decisions, list):
        return []

    lines = [f"Received {len(decisions)} trading decisions"]
    for decision in decisions:
        if not isinstance(decision, dict):
            continue
        lines.append(
            f"{decision.get('asset')}: {decision.get('action')} - "
            f"${decision.get('allocation_usd')}"
        )
    return lines


__all__ = [
    "interpret_response",
    "parse_trading_decisions",
    "summarize_decisions",
]
