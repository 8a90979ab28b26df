"""
Integration tests for complete dispatch rounds.

Runs the wired services against the in-memory store and the scripted
generation bridge: partial failure, ordering, persisted messages, events
and context assembly across rounds.
"""

import pytest

from roundtable.lib.config import DispatchConfig
from roundtable.models.agent import ConversationAgent, PersistedAgent
from roundtable.models.agent_context import ContextRole
from roundtable.models.agent_event import AgentEventErrorType, AgentStatus
from roundtable.models.message import MessageRole, NewMessage
from roundtable.services.container import create_chat_orchestration_service
from roundtable.services.scripted_bridge import ScriptedLlmBridge, ScriptedReply


pytestmark = pytest.mark.integration

CONVERSATION_ID = "conv-1"


def build_service(store, bridge, **dispatch_settings):
    return create_chat_orchestration_service(
        llm_bridge=bridge,
        message_repository=store,
        conversation_agents_repository=store,
        agent_resolver=store,
        dispatch_config=DispatchConfig(**dispatch_settings)
    )


class TestPartialFailure:
    """Test one agent failing while another succeeds."""

    @pytest.mark.asyncio
    async def test_one_success_one_network_failure(self, store, user_message):
        """Test counts, order and persisted messages for a mixed round."""
        bridge = ScriptedLlmBridge({
            "cfg-alpha": ScriptedReply(response="Alpha says ship the API.", delay_seconds=0.05),
            "cfg-beta": ScriptedReply(error="connect ECONNREFUSED 10.0.0.3:443", provider="anthropic"),
        })
        service = build_service(store, bridge)

        result = await service.process_user_message(CONVERSATION_ID, user_message.id)

        assert result.total_agents == 2
        assert result.successful_agents == 1
        assert result.failed_agents == 1
        assert [r.agent_id for r in result.agent_results] == ["agent-alpha", "agent-beta"]
        assert result.agent_results[0].response == "Alpha says ship the API."
        assert result.agent_results[1].error == (
            "Agent Beta: Unable to connect to AI service. Please check your connection and try again."
        )

        history = store.messages(CONVERSATION_ID)
        assert [message.role for message in history] == [
            MessageRole.USER, MessageRole.SYSTEM, MessageRole.AGENT
        ]
        assert history[1].content == result.agent_results[1].error
        assert history[2].conversation_agent_id == "ca-alpha"
        assert history[2].id == result.agent_results[0].message_id

    @pytest.mark.asyncio
    async def test_error_event_for_failed_agent(self, store, user_message):
        """Test the failing agent emits thinking then error with its tag."""
        bridge = ScriptedLlmBridge({
            "cfg-alpha": ScriptedReply(response="ok"),
            "cfg-beta": ScriptedReply(error="429 Too Many Requests", provider="anthropic"),
        })
        service = build_service(store, bridge)
        events = []

        await service.process_user_message(CONVERSATION_ID, user_message.id, events.append)

        beta_events = [event for event in events if event.conversation_agent_id == "ca-beta"]
        assert [event.status for event in beta_events] == [AgentStatus.THINKING, AgentStatus.ERROR]
        assert beta_events[1].error_type == AgentEventErrorType.RATE_LIMIT
        assert beta_events[1].retryable is True
        assert beta_events[1].agent_name == "Beta"

    @pytest.mark.asyncio
    async def test_slow_agent_times_out_without_blocking_sibling(self, store, user_message):
        """Test the per-agent budget fails only the slow agent."""
        bridge = ScriptedLlmBridge({
            "cfg-alpha": ScriptedReply(response="late", delay_seconds=2),
            "cfg-beta": ScriptedReply(response="on time"),
        })
        service = build_service(store, bridge, agent_timeout_seconds=0.1)

        result = await service.process_user_message(CONVERSATION_ID, user_message.id)

        assert result.agent_results[0].error == "Agent Alpha: Request timed out. Please try again."
        assert result.agent_results[1].response == "on time"


class TestSingleAgentRound:
    """Test event sequence and context for a single enabled agent."""

    @pytest.fixture
    def solo_store(self, store):
        store.set_participant_enabled(CONVERSATION_ID, "ca-beta", False)
        return store

    @pytest.mark.asyncio
    async def test_emits_thinking_then_complete(self, solo_store, user_message):
        """Test exactly two events in order, the last with the new message id."""
        bridge = ScriptedLlmBridge({"cfg-alpha": ScriptedReply(response="Hello!")})
        service = build_service(solo_store, bridge)
        events = []

        result = await service.process_user_message(CONVERSATION_ID, user_message.id, events.append)

        assert [event.status for event in events] == [AgentStatus.THINKING, AgentStatus.COMPLETE]
        assert events[1].message_id == result.agent_results[0].message_id
        assert result.total_agents == 1

    @pytest.mark.asyncio
    async def test_disabled_agent_not_dispatched(self, solo_store, user_message):
        """Test only enabled participants receive the message."""
        bridge = ScriptedLlmBridge({"cfg-alpha": ScriptedReply(response="Hello!")})
        service = build_service(solo_store, bridge)

        await service.process_user_message(CONVERSATION_ID, user_message.id)

        assert [call.llm_config_id for call in bridge.calls] == ["cfg-alpha"]


class TestFollowUpRounds:
    """Test context assembly across consecutive rounds."""

    @pytest.mark.asyncio
    async def test_second_round_sees_first_round_replies(self, store, user_message):
        """Test each agent sees its own reply as assistant and the peer's as labelled user."""
        bridge = ScriptedLlmBridge({
            "cfg-alpha": ScriptedReply(response="Alpha round one"),
            "cfg-beta": ScriptedReply(response="Beta round one"),
        })
        service = build_service(store, bridge)
        await service.process_user_message(CONVERSATION_ID, user_message.id)

        follow_up = await store.create(NewMessage(
            conversation_id=CONVERSATION_ID, role=MessageRole.USER, content="And next?"
        ))
        context = await service.agent_task_runner.context_builder.build_agent_context(
            CONVERSATION_ID, "agent-alpha", "ca-alpha"
        )

        contents = [(turn.role, turn.content) for turn in context.messages]
        assert (ContextRole.ASSISTANT, "Alpha round one") in contents
        assert (ContextRole.USER, "Beta: Beta round one") in contents
        assert contents[-1] == (ContextRole.USER, follow_up.content)
        assert "Beta" in context.system_prompt

    @pytest.mark.asyncio
    async def test_failure_notices_stay_out_of_context(self, store, user_message):
        """Test system error notices never reach later contexts."""
        bridge = ScriptedLlmBridge({
            "cfg-alpha": ScriptedReply(response="fine"),
            "cfg-beta": ScriptedReply(error="Unauthorized", provider="anthropic"),
        })
        service = build_service(store, bridge)
        await service.process_user_message(CONVERSATION_ID, user_message.id)

        context = await service.agent_task_runner.context_builder.build_agent_context(
            CONVERSATION_ID, "agent-alpha", "ca-alpha"
        )

        assert all("Authentication failed" not in turn.content for turn in context.messages)
        assert context.messages[-1].role == ContextRole.USER


class TestEmptyConversation:
    """Test conversations without enabled participants."""

    @pytest.mark.asyncio
    async def test_no_participants(self, store, user_message):
        """Test a round with every participant disabled."""
        store.set_participant_enabled(CONVERSATION_ID, "ca-alpha", False)
        store.set_participant_enabled(CONVERSATION_ID, "ca-beta", False)
        bridge = ScriptedLlmBridge({})
        service = build_service(store, bridge)

        result = await service.process_user_message(CONVERSATION_ID, user_message.id)

        assert result.total_agents == 0
        assert bridge.calls == []

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, store):
        """Test an unknown conversation degrades to a zero-agent result."""
        service = build_service(store, ScriptedLlmBridge({}))

        result = await service.process_user_message("conv-missing", "msg-x")

        assert result.total_agents == 0
        assert result.agent_results == []

    @pytest.mark.asyncio
    async def test_late_joiner_is_ordered_by_display_order(self, store, user_message):
        """Test a new participant with a lower display order reports first."""
        store.add_agent(PersistedAgent(id="agent-gamma", name="Gamma", model="m", llm_config_id="cfg-gamma"))
        store.add_participant(ConversationAgent(
            id="ca-gamma", conversation_id=CONVERSATION_ID, agent_id="agent-gamma", display_order=0
        ))
        bridge = ScriptedLlmBridge({
            "cfg-alpha": ScriptedReply(response="a"),
            "cfg-beta": ScriptedReply(response="b"),
            "cfg-gamma": ScriptedReply(response="g"),
        })
        service = build_service(store, bridge)

        result = await service.process_user_message(CONVERSATION_ID, user_message.id)

        assert [r.agent_id for r in result.agent_results] == ["agent-alpha", "agent-gamma", "agent-beta"]
