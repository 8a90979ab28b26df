"""Abstract interface for system prompt rendering."""

from abc import ABC, abstractmethod
from typing import List

from roundtable.models.agent import PersistedAgent


class ISystemPromptRenderer(ABC):
    """Renders the instructions given to one agent."""

    @abstractmethod
    async def create_system_prompt(
        self,
        agent: PersistedAgent,
        participants: List[PersistedAgent]
    ) -> str:
        """Render a prompt for ``agent``; ``participants`` never includes it."""
        pass
