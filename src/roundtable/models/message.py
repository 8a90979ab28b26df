"""Conversation message models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class MessageRole(str, Enum):
    """Author role of a persisted message."""

    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"


class Message(BaseModel):
    """
    A single append-only message in a conversation.

    Agent-authored messages reference the conversation-agent association that
    produced them; user and system messages carry no association.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique message identifier")
    conversation_id: str = Field(..., min_length=1, description="Owning conversation")
    conversation_agent_id: Optional[str] = Field(None, description="Authoring conversation-agent association, if any")
    role: MessageRole = Field(..., description="Author role (user, agent, system)")
    content: str = Field(..., description="Message text")
    included: bool = Field(default=True, description="Whether the message enters future context assembly")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Creation timestamp")

    @field_validator('conversation_agent_id')
    @classmethod
    def validate_conversation_agent_id(cls, v):
        """Normalise blank association ids to None."""
        if v is not None and not v.strip():
            return None
        return v


class NewMessage(BaseModel):
    """Input for appending a message to a conversation."""

    conversation_id: str = Field(..., min_length=1)
    conversation_agent_id: Optional[str] = None
    role: MessageRole
    content: str
    included: bool = True
