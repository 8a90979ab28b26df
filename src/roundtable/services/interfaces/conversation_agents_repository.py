"""Abstract interface for conversation participant lookups."""

from abc import ABC, abstractmethod
from typing import List

from roundtable.models.agent import ConversationAgent


class IConversationAgentsRepository(ABC):
    """Read access to conversation-agent associations."""

    @abstractmethod
    async def get_enabled_by_conversation_id(self, conversation_id: str) -> List[ConversationAgent]:
        """Enabled associations ordered by display order, then join time."""
        pass

    @abstractmethod
    async def find_by_conversation_id(self, conversation_id: str) -> List[ConversationAgent]:
        """All associations ordered by display order, then join time."""
        pass
