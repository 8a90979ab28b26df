"""Generation bridge that replays configured replies.

Used by the ``roundtable dispatch`` scenario runner and by tests to exercise
dispatch rounds without a live provider.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from roundtable.models.agent import AgentRuntimeConfig
from roundtable.models.agent_context import AgentContext
from roundtable.services.errors import LlmProviderError
from roundtable.services.interfaces import ILlmBridge


logger = logging.getLogger(__name__)


class ScriptedReply(BaseModel):
    """Reply (or failure) for one provider configuration."""

    response: Optional[str] = None
    error: Optional[str] = None
    provider: Optional[str] = None
    delay_seconds: float = Field(default=0.0, ge=0.0)

    @model_validator(mode='after')
    def validate_outcome(self):
        if (self.response is None) == (self.error is None):
            raise ValueError("A scripted reply needs exactly one of response or error")
        return self


class ScriptedLlmBridge(ILlmBridge):
    """Answers each call from a reply table keyed by ``llm_config_id``."""

    def __init__(self, replies: Dict[str, ScriptedReply]):
        self.replies = replies
        self.calls: List[AgentRuntimeConfig] = []

    async def send_to_provider(self, agent_config: AgentRuntimeConfig, context: AgentContext) -> str:
        self.calls.append(agent_config)
        reply = self.replies.get(agent_config.llm_config_id)
        if reply is None:
            raise LlmProviderError(f"No scripted reply for {agent_config.llm_config_id}", provider="scripted")

        if reply.delay_seconds:
            await asyncio.sleep(reply.delay_seconds)

        logger.debug(
            "Scripted reply served",
            extra={"llm_config_id": agent_config.llm_config_id, "turns": len(context.messages)}
        )

        if reply.error is not None:
            raise LlmProviderError(reply.error, provider=reply.provider or "scripted")
        return reply.response
