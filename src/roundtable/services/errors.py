"""Exceptions raised by collaborators and the dispatch pipeline."""

from typing import Optional


class LlmProviderError(Exception):
    """Structured failure raised by a generation bridge."""

    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code


class AgentNotFoundError(LookupError):
    """Raised when an agent configuration cannot be resolved."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent not found: {agent_id}")
        self.agent_id = agent_id


class ConversationNotFoundError(LookupError):
    """Raised when a conversation is unknown to a repository."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class AgentResponseTimeoutError(TimeoutError):
    """Raised when an agent's generation call exceeds its time budget."""

    def __init__(self, agent_id: str, timeout_seconds: float):
        super().__init__(f"Agent response timed out after {timeout_seconds:g} seconds")
        self.agent_id = agent_id
        self.timeout_seconds = timeout_seconds
