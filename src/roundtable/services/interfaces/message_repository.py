"""Abstract interface for message persistence."""

from abc import ABC, abstractmethod
from typing import List

from roundtable.models.message import Message, NewMessage


class IMessageRepository(ABC):
    """Append-only message storage."""

    @abstractmethod
    async def get_by_conversation(self, conversation_id: str) -> List[Message]:
        """Return the conversation's messages in creation order."""
        pass

    @abstractmethod
    async def create(self, message: NewMessage) -> Message:
        """Append a message and return the persisted record."""
        pass
