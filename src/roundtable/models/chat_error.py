"""Chat error taxonomy and the structured error record."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class ChatErrorType(str, Enum):
    """Closed set of per-agent failure classes."""

    NETWORK_ERROR = "network_error"
    AUTH_ERROR = "auth_error"
    RATE_LIMIT_ERROR = "rate_limit_error"
    VALIDATION_ERROR = "validation_error"
    PROVIDER_ERROR = "provider_error"
    TIMEOUT_ERROR = "timeout_error"
    UNKNOWN_ERROR = "unknown_error"

    @property
    def code(self) -> str:
        """Deterministic machine code, e.g. ``CHAT_RATE_LIMIT_001``."""
        return f"CHAT_{self.value[:-len('_error')].upper()}_001"

    @property
    def retryable(self) -> bool:
        """Whether this failure class is generally transient."""
        return self in _RETRYABLE_TYPES


_RETRYABLE_TYPES = frozenset({
    ChatErrorType.NETWORK_ERROR,
    ChatErrorType.RATE_LIMIT_ERROR,
    ChatErrorType.PROVIDER_ERROR,
    ChatErrorType.TIMEOUT_ERROR,
})


class ChatError(BaseModel):
    """
    Classified per-agent failure.

    ``user_message`` is safe to display: it is derived only from the error type
    and the agent's label. ``technical_details`` keeps the raw message for logs.
    """

    type: ChatErrorType = Field(..., description="Failure classification")
    code: str = Field(..., description="Machine-readable error code")
    user_message: str = Field(..., description="Sanitised message for display")
    technical_details: str = Field(default="", description="Raw error text, logs only")
    conversation_id: str
    agent_id: str
    provider: str = Field(default="unknown")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    retryable: bool = False

    def to_log_context(self) -> dict:
        """Fields suitable for structured logging ``extra``."""
        return {
            "conversation_id": self.conversation_id,
            "agent_id": self.agent_id,
            "error_type": self.type.value,
            "error_code": self.code,
            "provider": self.provider,
            "retryable": self.retryable,
            "error_timestamp": self.timestamp.isoformat(),
        }
