"""Status events emitted while agents process a dispatch round."""

from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from pydantic import BaseModel, Field

from roundtable.models.chat_error import ChatErrorType


class AgentStatus(str, Enum):
    """Per-agent lifecycle status: thinking, then complete or error."""

    THINKING = "thinking"
    COMPLETE = "complete"
    ERROR = "error"


class AgentEventErrorType(str, Enum):
    """Simplified error tag carried on error events."""

    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    PROVIDER = "provider"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_EVENT_ERROR_TYPES = {
    ChatErrorType.NETWORK_ERROR: AgentEventErrorType.NETWORK,
    ChatErrorType.AUTH_ERROR: AgentEventErrorType.AUTH,
    ChatErrorType.RATE_LIMIT_ERROR: AgentEventErrorType.RATE_LIMIT,
    ChatErrorType.VALIDATION_ERROR: AgentEventErrorType.VALIDATION,
    ChatErrorType.PROVIDER_ERROR: AgentEventErrorType.PROVIDER,
    ChatErrorType.TIMEOUT_ERROR: AgentEventErrorType.TIMEOUT,
    ChatErrorType.UNKNOWN_ERROR: AgentEventErrorType.UNKNOWN,
}


def to_event_error_type(error_type: ChatErrorType) -> AgentEventErrorType:
    """Map a classifier type onto its event tag."""
    return _EVENT_ERROR_TYPES[ChatErrorType(error_type)]


class AgentEvent(BaseModel):
    """Status update for one conversation participant."""

    conversation_agent_id: str
    status: AgentStatus
    agent_name: str
    message_id: Optional[str] = Field(None, description="Persisted reply id, complete events only")
    error: Optional[str] = Field(None, description="User-safe error text, error events only")
    error_type: Optional[AgentEventErrorType] = None
    retryable: Optional[bool] = None


AgentEventCallback = Callable[[AgentEvent], Union[None, Awaitable[None]]]
