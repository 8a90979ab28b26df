"""Per-agent context handed to the generation bridge."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, model_validator


class ContextRole(str, Enum):
    """Roles understood by the generation call."""

    USER = "user"
    ASSISTANT = "assistant"


class FormattedMessage(BaseModel):
    """A role-labelled turn in an outbound context."""

    role: ContextRole
    content: str


class AgentContext(BaseModel):
    """System prompt plus ordered turn history for exactly one agent's call."""

    system_prompt: str
    messages: List[FormattedMessage] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_final_turn(self):
        """The final turn of a non-empty history must be user-authored."""
        if self.messages and self.messages[-1].role != ContextRole.USER:
            raise ValueError("Final context turn must have the user role")
        return self
