"""Shared fixtures for the Roundtable test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from roundtable.models.agent import ConversationAgent, PersistedAgent
from roundtable.models.message import Message, MessageRole
from roundtable.services.in_memory_store import InMemoryConversationStore


CONVERSATION_ID = "conv-1"


@pytest.fixture
def alpha_agent():
    return PersistedAgent(id="agent-alpha", name="Alpha", model="gpt-4o", llm_config_id="cfg-alpha")


@pytest.fixture
def beta_agent():
    return PersistedAgent(
        id="agent-beta",
        name="Beta",
        model="claude-3-5-sonnet",
        llm_config_id="cfg-beta",
        role="Reviewer",
        personality="Blunt"
    )


@pytest.fixture
def store(alpha_agent, beta_agent):
    """Store with one conversation and two enabled participants (Alpha, then Beta)."""
    store = InMemoryConversationStore()
    store.add_agent(alpha_agent)
    store.add_agent(beta_agent)
    store.add_conversation(CONVERSATION_ID)

    joined = datetime(2024, 1, 1, tzinfo=timezone.utc)
    store.add_participant(ConversationAgent(
        id="ca-alpha",
        conversation_id=CONVERSATION_ID,
        agent_id=alpha_agent.id,
        display_order=0,
        added_at=joined
    ))
    store.add_participant(ConversationAgent(
        id="ca-beta",
        conversation_id=CONVERSATION_ID,
        agent_id=beta_agent.id,
        display_order=1,
        added_at=joined + timedelta(minutes=1)
    ))
    return store


@pytest.fixture
def user_message(store):
    """A user message already persisted in the conversation."""
    return store.add_message(Message(
        conversation_id=CONVERSATION_ID,
        role=MessageRole.USER,
        content="What should we ship first?"
    ))
