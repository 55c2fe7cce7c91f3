"""
LLM Relay - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Keeps credentials out of log lines for outbound calls.

SECURITY REQUIREMENTS:
1. NEVER log raw API keys
2. Mask sensitive headers (Authorization, X-API-KEY, etc.)
3. Never log request bodies (they carry user prompts)

============================================================
"""

import logging
from typing import Dict, Optional

from .types import HttpRequestSpec


logger = logging.getLogger(__name__)


# Header names that should be masked
SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "x-api-key",
    "api-key",
    "cookie",
    "x-signature",
}


def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """
    Mask sensitive headers.

    "Bearer <key>" keeps its scheme so the log still shows
    which auth style was used.
    """
    if not headers:
        return {}

    masked = {}
    for key, value in headers.items():
        if key.lower() not in SENSITIVE_HEADERS:
            masked[key] = value
            continue
        scheme, _, credential = str(value).partition(" ")
        if credential:
            masked[key] = f"{scheme} {mask_value(credential)}"
        else:
            masked[key] = mask_value(str(value))
    return masked


def log_outbound_request(
    request: HttpRequestSpec,
    operation: str,
    executor_index: int,
) -> None:
    """Debug-log an outbound request without its body or credentials."""
    logger.debug(
        f"[{operation}] executor={executor_index} {request.method} {request.url} "
        f"headers={mask_headers(request.headers)} body_len={len(request.body)}"
    )


__all__ = [
    "SENSITIVE_HEADERS",
    "mask_value",
    "mask_headers",
    "log_outbound_request",
]
