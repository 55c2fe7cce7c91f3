"""
LLM Relay - Request Validation.

Checks an inbound payload before any external call is made.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .types import MessageRole


logger = logging.getLogger(__name__)


MISSING_DATA_ERROR = "Missing required data: model and messages are required"

_KNOWN_ROLES = {role.value for role in MessageRole}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of payload validation."""

    is_valid: bool
    error: Optional[str] = None

    def to_error_dict(self) -> Dict[str, str]:
        return {"error": self.error or MISSING_DATA_ERROR}


VALID = ValidationResult(is_valid=True)


class RequestValidator:
    """
    Minimal schema check for ModelRequest payloads.

    Only presence is enforced: a non-empty `model` string and a
    non-empty `messages` sequence. Everything else is passed
    through to the provider.
    """

    def validate(self, payload: Any) -> ValidationResult:
        if not isinstance(payload, dict):
            logger.info("Received LLM request with a non-object payload")
            return self._missing()

        model = payload.get("model")
        logger.info(f"Received LLM request for model: {model}")

        messages = payload.get("messages")
        if not isinstance(model, str) or not model:
            return self._missing()
        if not _is_non_empty_sequence(messages):
            return self._missing()

        unknown = sorted({
            str(m.get("role")) for m in messages
            if isinstance(m, dict) and m.get("role") not in _KNOWN_ROLES
        })
        if unknown:
            logger.warning(f"Messages carry unrecognised roles: {unknown}")

        return VALID

    def _missing(self) -> ValidationResult:
        logger.info("Missing required data: model or messages")
        return ValidationResult(is_valid=False, error=MISSING_DATA_ERROR)


def _is_non_empty_sequence(value: Any) -> bool:
    return (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes))
        and len(value) > 0
    )


__all__ = [
    "MISSING_DATA_ERROR",
    "ValidationResult",
    "RequestValidator",
]
