"""
LLM Relay - Redundant-Execution Consensus.

============================================================
PURPOSE
============================================================
Every outbound call may be executed by several independent
executors. The call succeeds only if the executors agree.

FLOW:
1. Each executor runs the caller's fetch-and-parse function
   against its own transport (concurrently).
2. The client waits for all executors.
3. The aggregation policy reduces the results to one value
   or raises ConsensusError.

No retries: a failed round ends the call.

============================================================
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Sequence

from core.exceptions import ConsensusError, classify_exception, error_message
from .config import ConsensusConfig
from .logging_utils import log_outbound_request
from .transport import AiohttpTransport, HttpTransport
from .types import HttpRequestSpec, HttpResponse


logger = logging.getLogger(__name__)


# ============================================================
# SEND REQUESTER
# ============================================================

class SendRequester:
    """Handle given to fetch-and-parse functions, bound to one executor."""

    def __init__(self, transport: HttpTransport, executor_index: int, operation: str):
        self._transport = transport
        self.executor_index = executor_index
        self.operation = operation

    async def send_request(self, request: HttpRequestSpec) -> HttpResponse:
        log_outbound_request(request, self.operation, self.executor_index)
        return await self._transport.send(request)


FetchAndParse = Callable[[SendRequester], Awaitable[str]]


# ============================================================
# AGGREGATION POLICIES
# ============================================================

class AggregationPolicy(ABC):
    """Reduces the results of all executors to one accepted result."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def aggregate(self, results: Sequence[str]) -> str:
        """
        Reduce executor results.

        Raises:
            ConsensusError: If no result can be accepted
        """
        pass


class IdenticalAggregation(AggregationPolicy):
    """Accept only when every executor produced the same bytes."""

    @property
    def name(self) -> str:
        return "identical"

    def aggregate(self, results: Sequence[str]) -> str:
        if not results:
            raise ConsensusError("No executor results to aggregate", executor_count=0)

        distinct = len(set(results))
        if distinct != 1:
            raise ConsensusError(
                f"Consensus failed: {distinct} distinct results from {len(results)} executions",
                executor_count=len(results),
                distinct_results=distinct,
            )

        return results[0]


# ============================================================
# CONSENSUS CLIENT
# ============================================================

class ConsensusHttpClient:
    """
    Runs one logical outbound call on every configured executor.

    With a single executor this degrades to a plain call while
    keeping the fail-on-disagreement contract.
    """

    def __init__(
        self,
        transports: Sequence[HttpTransport],
        aggregation: Optional[AggregationPolicy] = None,
    ):
        if not transports:
            raise ValueError("At least one transport is required")

        self._transports: List[HttpTransport] = list(transports)
        self._aggregation = aggregation or IdenticalAggregation()

    @property
    def executor_count(self) -> int:
        return len(self._transports)

    @property
    def aggregation(self) -> AggregationPolicy:
        return self._aggregation

    async def execute_with_consensus(
        self,
        fetch_and_parse: FetchAndParse,
        operation: str = "request",
    ) -> str:
        """
        Execute fetch_and_parse on every executor and aggregate.

        Args:
            fetch_and_parse: Builds the request, sends it and reduces
                the response to text
            operation: Label used in log lines

        Returns:
            The agreed result

        Raises:
            ConsensusError: If an executor failed or results diverged
        """
        requesters = [
            SendRequester(transport, index, operation)
            for index, transport in enumerate(self._transports)
        ]

        outcomes = await asyncio.gather(
            *(fetch_and_parse(requester) for requester in requesters),
            return_exceptions=True,
        )

        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                raise ConsensusError(
                    f"Executor {index} failed: {error_message(outcome)}",
                    executor_count=len(outcomes),
                    classification=classify_exception(outcome) if isinstance(outcome, Exception) else None,
                    cause=outcome if isinstance(outcome, Exception) else None,
                )

        result = self._aggregation.aggregate(outcomes)

        logger.debug(
            f"[{operation}] consensus reached | policy={self._aggregation.name} "
            f"executors={len(outcomes)}"
        )

        return result


# ============================================================
# FACTORY
# ============================================================

def create_consensus_client(
    config: Optional[ConsensusConfig] = None,
    aggregation: Optional[AggregationPolicy] = None,
) -> ConsensusHttpClient:
    """Consensus client backed by one aiohttp transport per executor."""
    config = config or ConsensusConfig()
    transports = [
        AiohttpTransport(config.timeouts)
        for _ in range(max(1, config.executor_count))
    ]
    return ConsensusHttpClient(transports, aggregation)


__all__ = [
    "SendRequester",
    "FetchAndParse",
    "AggregationPolicy",
    "IdenticalAggregation",
    "ConsensusHttpClient",
    "create_consensus_client",
]
