"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the custom exceptions for the decision relay.

- Provides a small, explicit exception hierarchy
- Carries context for log lines
- Supports error classification (transient vs permanent)

None of these escape the orchestrator: every component
catches them at its boundary and converts them to values.

============================================================
EXCEPTION HIERARCHY
============================================================
WorkflowException (base)
├── ConfigurationError
├── PayloadDecodeError
├── TransportError
└── ConsensusError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    TRANSIENT = "transient"
    """Temporary error, a later trigger may succeed."""

    PERMANENT = "permanent"
    """Will fail again until an operator intervenes."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class WorkflowException(Exception):
    """
    Base exception for all relay errors.

    All exceptions carry:
    - severity: for log level selection
    - context: for debugging
    - classification: transient or permanent
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.TRANSIENT

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for a single log line."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        return f"{line} | {ctx_str}" if ctx_str else line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(WorkflowException):
    """Error in configuration."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.PERMANENT

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key

        super().__init__(message, context=context, **kwargs)


# ============================================================
# PAYLOAD ERRORS
# ============================================================

class PayloadDecodeError(WorkflowException):
    """Inbound trigger payload could not be decoded as JSON."""

    default_severity = Severity.LOW
    default_classification = ErrorClassification.PERMANENT


# ============================================================
# OUTBOUND CALL ERRORS
# ============================================================

class TransportError(WorkflowException):
    """A single executor failed to complete its HTTP exchange."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if url:
            context["url"] = url

        super().__init__(message, context=context, **kwargs)


class ConsensusError(WorkflowException):
    """Redundant executions did not converge on one result."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        executor_count: Optional[int] = None,
        distinct_results: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if executor_count is not None:
            context["executor_count"] = executor_count
        if distinct_results is not None:
            context["distinct_results"] = distinct_results

        super().__init__(message, context=context, **kwargs)


# ============================================================
# EXCEPTION UTILITIES
# ============================================================

def classify_exception(exc: Exception) -> ErrorClassification:
    """Classify an exception for error handling."""
    if isinstance(exc, WorkflowException):
        return exc.classification

    if isinstance(exc, (ConnectionError, TimeoutError, OSError)):
        return ErrorClassification.TRANSIENT

    return ErrorClassification.PERMANENT


def error_message(exc: BaseException) -> str:
    """Message text of an exception, falling back to its type name."""
    if isinstance(exc, WorkflowException):
        return exc.message
    return str(exc) or type(exc).__name__


__all__ = [
    "Severity",
    "ErrorClassification",
    "WorkflowException",
    "ConfigurationError",
    "PayloadDecodeError",
    "TransportError",
    "ConsensusError",
    "classify_exception",
    "error_message",
]
