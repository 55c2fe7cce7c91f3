"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- codec: Base64 envelope for outbound bodies
- exceptions: Custom exception hierarchy
"""

from .clock import ClockProtocol, SystemClock, MockClock, to_iso8601
from .exceptions import (
    Severity,
    ErrorClassification,
    WorkflowException,
    ConfigurationError,
    PayloadDecodeError,
    TransportError,
    ConsensusError,
)
