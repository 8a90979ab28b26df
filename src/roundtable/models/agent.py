"""Agent and conversation participant models."""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class PersistedAgent(BaseModel):
    """Configured LLM-backed agent, independent of any conversation."""

    id: str = Field(..., min_length=1, description="Agent identifier")
    name: str = Field(..., description="Display name shown to participants")
    model: str = Field(..., min_length=1, description="Model identifier passed to the provider")
    llm_config_id: str = Field(..., min_length=1, description="Provider configuration reference")
    role: Optional[str] = Field(None, description="Role description used in system prompts")
    personality: Optional[str] = Field(None, description="Personality description used in system prompts")

    def runtime_config(self) -> "AgentRuntimeConfig":
        """Provider reference handed to the generation bridge."""
        return AgentRuntimeConfig(llm_config_id=self.llm_config_id, model=self.model)


class AgentRuntimeConfig(BaseModel):
    """Resolved provider reference for a single generation call."""

    llm_config_id: str
    model: str


class ConversationAgent(BaseModel):
    """Association between a conversation and a participating agent."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Association identifier")
    conversation_id: str = Field(..., min_length=1)
    agent_id: str = Field(..., min_length=1)
    enabled: bool = Field(default=True, description="Participates in new dispatch rounds")
    display_order: int = Field(default=0, ge=0)
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
