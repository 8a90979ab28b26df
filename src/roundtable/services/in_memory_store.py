"""In-memory conversation store used by the CLI scenario runner and tests."""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from roundtable.models.agent import ConversationAgent, PersistedAgent
from roundtable.models.message import Message, NewMessage
from roundtable.services.errors import AgentNotFoundError, ConversationNotFoundError
from roundtable.services.interfaces import (
    IAgentResolver,
    IConversationAgentsRepository,
    IMessageRepository,
)


logger = logging.getLogger(__name__)


class InMemoryConversationStore(IMessageRepository, IConversationAgentsRepository, IAgentResolver):
    """Dictionary-backed implementation of the dispatch collaborators.

    Conversations must be registered before they can be read or written.
    Writes are serialised with a lock so concurrent agents append safely.
    """

    def __init__(self):
        self._agents: Dict[str, PersistedAgent] = {}
        self._participants: Dict[str, List[ConversationAgent]] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._lock = asyncio.Lock()

    def add_agent(self, agent: PersistedAgent) -> PersistedAgent:
        self._agents[agent.id] = agent
        return agent

    def add_conversation(self, conversation_id: str) -> None:
        self._participants.setdefault(conversation_id, [])
        self._messages.setdefault(conversation_id, [])

    def add_participant(self, participant: ConversationAgent) -> ConversationAgent:
        if participant.agent_id not in self._agents:
            raise AgentNotFoundError(participant.agent_id)
        self.add_conversation(participant.conversation_id)
        self._participants[participant.conversation_id].append(participant)
        return participant

    def set_participant_enabled(self, conversation_id: str, conversation_agent_id: str, enabled: bool) -> ConversationAgent:
        """Toggle whether a participant takes part in new dispatch rounds."""
        participants = self._require_participants(conversation_id)
        for index, participant in enumerate(participants):
            if participant.id == conversation_agent_id:
                participants[index] = participant.model_copy(update={"enabled": enabled})
                return participants[index]
        raise LookupError(f"Participant not found: {conversation_agent_id}")

    def add_message(self, message: Message) -> Message:
        """Insert an existing message record as-is (history seeding)."""
        self.add_conversation(message.conversation_id)
        self._messages[message.conversation_id].append(message)
        return message

    def messages(self, conversation_id: str) -> List[Message]:
        return list(self._messages.get(conversation_id, []))

    async def resolve(self, agent_id: str) -> PersistedAgent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def get_by_conversation(self, conversation_id: str) -> List[Message]:
        return list(self._require_messages(conversation_id))

    async def create(self, message: NewMessage) -> Message:
        async with self._lock:
            history = self._require_messages(message.conversation_id)
            persisted = Message(**message.model_dump())
            history.append(persisted)

        logger.debug(
            "Message persisted",
            extra={
                "conversation_id": persisted.conversation_id,
                "message_id": persisted.id,
                "role": persisted.role.value,
            }
        )
        return persisted

    async def find_by_conversation_id(self, conversation_id: str) -> List[ConversationAgent]:
        return self._ordered(self._require_participants(conversation_id))

    async def get_enabled_by_conversation_id(self, conversation_id: str) -> List[ConversationAgent]:
        participants = self._require_participants(conversation_id)
        return self._ordered(participant for participant in participants if participant.enabled)

    def _require_messages(self, conversation_id: str) -> List[Message]:
        history: Optional[List[Message]] = self._messages.get(conversation_id)
        if history is None:
            raise ConversationNotFoundError(conversation_id)
        return history

    def _require_participants(self, conversation_id: str) -> List[ConversationAgent]:
        participants = self._participants.get(conversation_id)
        if participants is None:
            raise ConversationNotFoundError(conversation_id)
        return participants

    @staticmethod
    def _ordered(participants: Iterable[ConversationAgent]) -> List[ConversationAgent]:
        return sorted(participants, key=lambda participant: (participant.display_order, participant.added_at))
