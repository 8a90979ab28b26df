"""Collaborator contracts consumed by the dispatch pipeline."""

from .agent_resolver import IAgentResolver
from .conversation_agents_repository import IConversationAgentsRepository
from .llm_bridge import ILlmBridge
from .message_repository import IMessageRepository
from .system_prompt_renderer import ISystemPromptRenderer

__all__ = [
    "IAgentResolver",
    "IConversationAgentsRepository",
    "ILlmBridge",
    "IMessageRepository",
    "ISystemPromptRenderer",
]
