"""Roundtable services.

Context assembly, error classification, per-agent processing and the
dispatch coordinator, plus in-process reference collaborators.
"""

from .errors import (
    AgentNotFoundError,
    AgentResponseTimeoutError,
    ConversationNotFoundError,
    LlmProviderError,
)
from .error_mapper import ErrorMapper
from .message_formatter import MessageFormatterService
from .agent_context_builder import AgentContextBuilder
from .agent_task_runner import AgentTaskRunner
from .chat_orchestrator import ChatOrchestrationService
from .container import create_chat_orchestration_service
from .in_memory_store import InMemoryConversationStore
from .scripted_bridge import ScriptedLlmBridge, ScriptedReply
from .system_prompt import TemplateSystemPromptRenderer

__all__ = [
    "AgentNotFoundError",
    "AgentResponseTimeoutError",
    "ConversationNotFoundError",
    "LlmProviderError",
    "ErrorMapper",
    "MessageFormatterService",
    "AgentContextBuilder",
    "AgentTaskRunner",
    "ChatOrchestrationService",
    "create_chat_orchestration_service",
    "InMemoryConversationStore",
    "ScriptedLlmBridge",
    "ScriptedReply",
    "TemplateSystemPromptRenderer",
]
