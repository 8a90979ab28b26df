"""Roundtable data models.

Messages, agents and their conversation associations, per-agent contexts,
classified errors, status events and dispatch results.
"""

from .message import Message, MessageRole, NewMessage
from .agent import AgentRuntimeConfig, ConversationAgent, PersistedAgent
from .agent_context import AgentContext, ContextRole, FormattedMessage
from .chat_error import ChatError, ChatErrorType
from .agent_event import (
    AgentEvent,
    AgentEventCallback,
    AgentEventErrorType,
    AgentStatus,
    to_event_error_type,
)
from .processing_result import AgentProcessingResult, ProcessingResult

__all__ = [
    # Message
    "Message",
    "MessageRole",
    "NewMessage",
    # Agent
    "AgentRuntimeConfig",
    "ConversationAgent",
    "PersistedAgent",
    # AgentContext
    "AgentContext",
    "ContextRole",
    "FormattedMessage",
    # ChatError
    "ChatError",
    "ChatErrorType",
    # AgentEvent
    "AgentEvent",
    "AgentEventCallback",
    "AgentEventErrorType",
    "AgentStatus",
    "to_event_error_type",
    # ProcessingResult
    "AgentProcessingResult",
    "ProcessingResult",
]
