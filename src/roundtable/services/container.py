"""Wiring of the dispatch services from configuration."""

import logging
from typing import Optional

from roundtable.lib.config import DispatchConfig
from roundtable.services.agent_context_builder import AgentContextBuilder
from roundtable.services.agent_task_runner import AgentTaskRunner
from roundtable.services.chat_orchestrator import ChatOrchestrationService
from roundtable.services.interfaces import (
    IAgentResolver,
    IConversationAgentsRepository,
    ILlmBridge,
    IMessageRepository,
    ISystemPromptRenderer,
)
from roundtable.services.system_prompt import TemplateSystemPromptRenderer


def create_chat_orchestration_service(
    llm_bridge: ILlmBridge,
    message_repository: IMessageRepository,
    conversation_agents_repository: IConversationAgentsRepository,
    agent_resolver: IAgentResolver,
    system_prompt_renderer: Optional[ISystemPromptRenderer] = None,
    dispatch_config: Optional[DispatchConfig] = None
) -> ChatOrchestrationService:
    """Build a ChatOrchestrationService with its runner and context builder.

    Each component gets its own logger under ``roundtable.services``.
    """
    dispatch_config = dispatch_config or DispatchConfig()

    context_builder = AgentContextBuilder(
        message_repository=message_repository,
        conversation_agents_repository=conversation_agents_repository,
        agent_resolver=agent_resolver,
        system_prompt_renderer=system_prompt_renderer or TemplateSystemPromptRenderer(),
        continuation_prompt=dispatch_config.continuation_prompt,
        logger=logging.getLogger("roundtable.services.context")
    )

    agent_task_runner = AgentTaskRunner(
        llm_bridge=llm_bridge,
        message_repository=message_repository,
        agent_resolver=agent_resolver,
        context_builder=context_builder,
        agent_timeout_seconds=dispatch_config.effective_timeout,
        logger=logging.getLogger("roundtable.services.agent_runner")
    )

    return ChatOrchestrationService(
        conversation_agents_repository=conversation_agents_repository,
        agent_task_runner=agent_task_runner,
        logger=logging.getLogger("roundtable.services.orchestrator")
    )
