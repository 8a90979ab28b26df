"""
Contract tests for ChatOrchestrationService.process_user_message.

Verifies the dispatch coordinator's guarantees: it never raises, results
follow enabled-agent order, counts are consistent and empty or failed
lookups degrade to a zero-agent result.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, Mock

from roundtable.lib.logging_config import AuditLogger
from roundtable.lib.metrics import DispatchMetricsCollector
from roundtable.models.agent import ConversationAgent
from roundtable.models.processing_result import AgentProcessingResult, ProcessingResult
from roundtable.services.agent_task_runner import AgentTaskRunner
from roundtable.services.chat_orchestrator import ChatOrchestrationService
from roundtable.services.errors import ConversationNotFoundError
from roundtable.services.interfaces import IConversationAgentsRepository


pytestmark = pytest.mark.contract

CONVERSATION_ID = "conv-1"
USER_MESSAGE_ID = "msg-user"


def participant(index):
    return ConversationAgent(
        id=f"ca-{index}",
        conversation_id=CONVERSATION_ID,
        agent_id=f"agent-{index}",
        display_order=index
    )


def succeeded(agent_id):
    return AgentProcessingResult(
        agent_id=agent_id, success=True, response=f"reply from {agent_id}", message_id=f"m-{agent_id}"
    )


@pytest.fixture
def conversation_agents_repository():
    mock = AsyncMock(spec=IConversationAgentsRepository)
    mock.get_enabled_by_conversation_id.return_value = [participant(0), participant(1), participant(2)]
    return mock


@pytest.fixture
def agent_task_runner():
    mock = AsyncMock(spec=AgentTaskRunner)

    async def run(conversation_id, user_message_id, agent_id, conversation_agent_id, event_callback=None):
        return succeeded(agent_id)

    mock.run.side_effect = run
    return mock


@pytest.fixture
def audit_logger():
    return Mock(spec=AuditLogger)


@pytest.fixture
def metrics_collector():
    return Mock(spec=DispatchMetricsCollector)


@pytest.fixture
def orchestrator(conversation_agents_repository, agent_task_runner, audit_logger, metrics_collector):
    return ChatOrchestrationService(
        conversation_agents_repository=conversation_agents_repository,
        agent_task_runner=agent_task_runner,
        audit_logger=audit_logger,
        metrics_collector=metrics_collector
    )


class TestProcessUserMessageContract:
    """Contract tests for process_user_message."""

    @pytest.mark.asyncio
    async def test_returns_processing_result(self, orchestrator):
        """Test the result type and user message id."""
        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        assert isinstance(result, ProcessingResult)
        assert result.user_message_id == USER_MESSAGE_ID
        assert result.total_agents == 3
        assert result.successful_agents == 3
        assert result.total_duration >= 0

    @pytest.mark.asyncio
    async def test_runs_every_enabled_agent(self, orchestrator, agent_task_runner):
        """Test each enabled participant is dispatched with its association id and the sink."""
        sink = Mock()

        await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID, sink)

        assert agent_task_runner.run.await_count == 3
        agent_task_runner.run.assert_any_await(CONVERSATION_ID, USER_MESSAGE_ID, "agent-1", "ca-1", sink)

    @pytest.mark.asyncio
    async def test_zero_enabled_agents(self, orchestrator, conversation_agents_repository, agent_task_runner):
        """Test an empty participant list yields an all-zero result without dispatching."""
        conversation_agents_repository.get_enabled_by_conversation_id.return_value = []

        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        assert (result.total_agents, result.successful_agents, result.failed_agents) == (0, 0, 0)
        assert result.agent_results == []
        agent_task_runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_failure_degrades_to_empty_result(
        self, orchestrator, conversation_agents_repository, agent_task_runner
    ):
        """Test a failing participant lookup does not propagate."""
        conversation_agents_repository.get_enabled_by_conversation_id.side_effect = (
            ConversationNotFoundError(CONVERSATION_ID)
        )

        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        assert result.total_agents == 0
        assert result.agent_results == []
        agent_task_runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_results_follow_enabled_order_not_completion_order(self, orchestrator, agent_task_runner):
        """Test the first agent finishing last still reports first."""
        delays = {"agent-0": 0.05, "agent-1": 0.02, "agent-2": 0.0}
        completed = []

        async def run(conversation_id, user_message_id, agent_id, conversation_agent_id, event_callback=None):
            await asyncio.sleep(delays[agent_id])
            completed.append(agent_id)
            return succeeded(agent_id)

        agent_task_runner.run.side_effect = run

        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        assert completed == ["agent-2", "agent-1", "agent-0"]
        assert [r.agent_id for r in result.agent_results] == ["agent-0", "agent-1", "agent-2"]

    @pytest.mark.asyncio
    async def test_counts_are_consistent_with_mixed_outcomes(self, orchestrator, agent_task_runner):
        """Test successful + failed == total == len(agent_results)."""
        async def run(conversation_id, user_message_id, agent_id, conversation_agent_id, event_callback=None):
            if agent_id == "agent-1":
                return AgentProcessingResult.failed(agent_id, "Agent B: Request timed out. Please try again.")
            return succeeded(agent_id)

        agent_task_runner.run.side_effect = run

        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        assert result.successful_agents == 2
        assert result.failed_agents == 1
        assert result.successful_agents + result.failed_agents == result.total_agents
        assert len(result.agent_results) == result.total_agents
        for agent_result in result.agent_results:
            assert (agent_result.response is None) != (agent_result.error is None)

    @pytest.mark.asyncio
    async def test_unexpected_runner_exception_is_isolated(self, orchestrator, agent_task_runner):
        """Test a raising branch becomes a failed, user-safe result while siblings complete."""
        async def run(conversation_id, user_message_id, agent_id, conversation_agent_id, event_callback=None):
            if agent_id == "agent-0":
                raise RuntimeError("kaboom: token=abc123")
            return succeeded(agent_id)

        agent_task_runner.run.side_effect = run

        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        first = result.agent_results[0]
        assert first.agent_id == "agent-0"
        assert first.success is False
        assert first.error == "Agent agent-0: An unexpected error occurred. Please try again."
        assert "abc123" not in first.error
        assert result.successful_agents == 2

    @pytest.mark.asyncio
    async def test_all_agents_failing(self, orchestrator, agent_task_runner):
        """Test a round where every agent fails still returns normally."""
        async def run(conversation_id, user_message_id, agent_id, conversation_agent_id, event_callback=None):
            return AgentProcessingResult.failed(agent_id, f"Agent {agent_id}: Request timed out. Please try again.")

        agent_task_runner.run.side_effect = run

        result = await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        assert result.failed_agents == result.total_agents == 3
        assert result.successful_agents == 0

    @pytest.mark.asyncio
    async def test_round_is_audited_and_measured(self, orchestrator, audit_logger, metrics_collector):
        """Test the completed round is recorded."""
        await orchestrator.process_user_message(CONVERSATION_ID, USER_MESSAGE_ID)

        audit_logger.log_dispatch_event.assert_called_once()
        args = audit_logger.log_dispatch_event.call_args.args
        assert args[:6] == ("dispatch_completed", CONVERSATION_ID, USER_MESSAGE_ID, 3, 3, 0)
        metrics_collector.record_dispatch.assert_called_once()
