"""Abstract interface for the generation bridge.

The bridge owns provider selection, credentials, retries and transport. It is
the only network call made while dispatching a message.
"""

from abc import ABC, abstractmethod

from roundtable.models.agent import AgentRuntimeConfig
from roundtable.models.agent_context import AgentContext


class ILlmBridge(ABC):
    """Sends an assembled context to a language-model provider."""

    @abstractmethod
    async def send_to_provider(
        self,
        agent_config: AgentRuntimeConfig,
        context: AgentContext
    ) -> str:
        """Return the generated reply text.

        Raises:
            LlmProviderError: for provider failures carrying a provider name
            Exception: for any other transport or client failure
        """
        pass
