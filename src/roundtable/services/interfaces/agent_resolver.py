"""Abstract interface for agent configuration resolution."""

from abc import ABC, abstractmethod

from roundtable.models.agent import PersistedAgent


class IAgentResolver(ABC):
    """Resolves agent ids to their configuration."""

    @abstractmethod
    async def resolve(self, agent_id: str) -> PersistedAgent:
        """Return the agent configuration.

        Raises:
            AgentNotFoundError: if the agent is unknown
        """
        pass
