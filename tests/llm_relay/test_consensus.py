"""
Consensus Client Tests.

============================================================
PURPOSE
============================================================
Tests for redundant-execution dispatch and identical-result
aggregation.

============================================================
"""

import pytest

from core.exceptions import ConsensusError, ErrorClassification, TransportError
from llm_relay import (
    ConsensusConfig,
    ConsensusHttpClient,
    HttpRequestSpec,
    IdenticalAggregation,
    MockTransport,
    create_consensus_client,
)
from llm_relay.transport import AiohttpTransport


def _spec() -> HttpRequestSpec:
    return HttpRequestSpec(url="http://example.test/", headers={"Authorization": "Bearer secret"})


async def _body_text(requester):
    response = await requester.send_request(_spec())
    return response.text()


# ============================================================
# AGGREGATION TESTS
# ============================================================

class TestIdenticalAggregation:
    """Tests for IdenticalAggregation."""

    def test_single_result_accepted(self):
        """Test that one result is accepted as is."""
        assert IdenticalAggregation().aggregate(["x"]) == "x"

    def test_identical_results_accepted(self):
        """Test that agreeing results are accepted."""
        assert IdenticalAggregation().aggregate(["x", "x", "x"]) == "x"

    def test_divergent_results_rejected(self):
        """Test that any disagreement fails the round."""
        with pytest.raises(ConsensusError, match="2 distinct results from 3"):
            IdenticalAggregation().aggregate(["x", "y", "x"])

    def test_no_results_rejected(self):
        """Test that an empty round fails."""
        with pytest.raises(ConsensusError):
            IdenticalAggregation().aggregate([])

    def test_comparison_is_exact(self):
        """Test that whitespace differences count as divergence."""
        with pytest.raises(ConsensusError):
            IdenticalAggregation().aggregate(['{"a": 1}', '{"a":1}'])


# ============================================================
# CLIENT TESTS
# ============================================================

class TestConsensusHttpClient:
    """Tests for ConsensusHttpClient."""

    def test_requires_a_transport(self):
        """Test that an empty executor set is refused."""
        with pytest.raises(ValueError):
            ConsensusHttpClient([])

    @pytest.mark.asyncio
    async def test_every_executor_is_called(self):
        """Test that each executor sends the request once."""
        transports = [MockTransport.respond(200, "same") for _ in range(3)]
        client = ConsensusHttpClient(transports)

        result = await client.execute_with_consensus(_body_text)

        assert result == "same"
        assert client.executor_count == 3
        assert [t.call_count for t in transports] == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_divergent_executors_fail(self):
        """Test that differing bodies fail the call."""
        client = ConsensusHttpClient([
            MockTransport.respond(200, "one"),
            MockTransport.respond(200, "two"),
        ])

        with pytest.raises(ConsensusError):
            await client.execute_with_consensus(_body_text)

    @pytest.mark.asyncio
    async def test_executor_exception_fails_round(self):
        """Test that an exception escaping fetch-and-parse fails the call."""
        client = ConsensusHttpClient([
            MockTransport.respond(200, "ok"),
            MockTransport.failing(TransportError("connection refused")),
        ])

        with pytest.raises(ConsensusError, match="Executor 1 failed: connection refused") as info:
            await client.execute_with_consensus(_body_text)

        assert info.value.classification == ErrorClassification.TRANSIENT

    @pytest.mark.asyncio
    async def test_parse_bug_is_permanent(self):
        """Test that a failure keeps the classification of its cause."""
        client = ConsensusHttpClient([MockTransport.respond(200, "ok")])

        async def broken(requester):
            raise KeyError("choices")

        with pytest.raises(ConsensusError) as info:
            await client.execute_with_consensus(broken)

        assert info.value.classification == ErrorClassification.PERMANENT

    @pytest.mark.asyncio
    async def test_executor_index_is_exposed(self):
        """Test that requesters are bound to their executor index."""
        client = ConsensusHttpClient([MockTransport(), MockTransport()])
        seen = []

        async def record(requester):
            seen.append((requester.executor_index, requester.operation))
            return "r"

        await client.execute_with_consensus(record, "quote")

        assert sorted(seen) == [(0, "quote"), (1, "quote")]


class TestCreateConsensusClient:
    """Tests for the client factory."""

    def test_one_transport_per_executor(self):
        """Test executor count from config."""
        client = create_consensus_client(ConsensusConfig(executor_count=3))

        assert client.executor_count == 3
        assert client.aggregation.name == "identical"

    def test_default_is_single_executor(self):
        """Test default configuration."""
        client = create_consensus_client()

        assert client.executor_count == 1
        assert isinstance(client._transports[0], AiohttpTransport)
