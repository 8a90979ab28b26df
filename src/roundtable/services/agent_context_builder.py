"""Per-agent context assembly."""

import logging
from typing import Dict, List, Optional

from roundtable.lib.config import DEFAULT_CONTINUATION_PROMPT
from roundtable.models.agent import ConversationAgent, PersistedAgent
from roundtable.models.agent_context import AgentContext, ContextRole, FormattedMessage
from roundtable.services.interfaces import (
    IAgentResolver,
    IConversationAgentsRepository,
    IMessageRepository,
    ISystemPromptRenderer,
)
from roundtable.services.message_formatter import MessageFormatterService


class AgentContextBuilder:
    """Builds the system prompt and turn history for one target agent.

    Collaborator failures (unknown agent, unknown conversation) are logged and
    re-raised; the caller decides how to report them.
    """

    def __init__(
        self,
        message_repository: IMessageRepository,
        conversation_agents_repository: IConversationAgentsRepository,
        agent_resolver: IAgentResolver,
        system_prompt_renderer: ISystemPromptRenderer,
        message_formatter: Optional[MessageFormatterService] = None,
        continuation_prompt: str = DEFAULT_CONTINUATION_PROMPT,
        logger: Optional[logging.Logger] = None
    ):
        self.message_repository = message_repository
        self.conversation_agents_repository = conversation_agents_repository
        self.agent_resolver = agent_resolver
        self.system_prompt_renderer = system_prompt_renderer
        self.message_formatter = message_formatter or MessageFormatterService()
        self.continuation_prompt = continuation_prompt
        self.logger = logger or logging.getLogger(__name__)

    async def build_agent_context(
        self,
        conversation_id: str,
        agent_id: str,
        conversation_agent_id: Optional[str] = None
    ) -> AgentContext:
        """Assemble the context for ``agent_id`` in ``conversation_id``.

        Args:
            conversation_id: Conversation to read history from
            agent_id: Target agent
            conversation_agent_id: Target's association id; looked up when omitted

        Returns:
            AgentContext whose final turn, if any, is user-authored
        """
        self.logger.debug(
            "Building agent context",
            extra={"conversation_id": conversation_id, "agent_id": agent_id}
        )

        try:
            messages = await self.message_repository.get_by_conversation(conversation_id)
            included_messages = [message for message in messages if message.included]

            agent = await self.agent_resolver.resolve(agent_id)
            participants = await self.conversation_agents_repository.get_enabled_by_conversation_id(
                conversation_id
            )
            participant_agents = await self._resolve_participants(participants)

            other_agents = [
                participant_agents[participant.id]
                for participant in participants
                if participant.agent_id != agent_id
            ]
            system_prompt = await self.system_prompt_renderer.create_system_prompt(agent, other_agents)

            agent_names = {
                association_id: resolved.name
                for association_id, resolved in participant_agents.items()
            }
            if conversation_agent_id is None:
                conversation_agent_id = next(
                    (participant.id for participant in participants if participant.agent_id == agent_id),
                    ""
                )

            formatted = self.message_formatter.format_messages(
                included_messages, conversation_agent_id, agent_names
            )
        except Exception:
            self.logger.exception(
                "Error building agent context",
                extra={"conversation_id": conversation_id, "agent_id": agent_id}
            )
            raise

        context = AgentContext(
            system_prompt=system_prompt,
            messages=self.append_continuation(formatted)
        )

        self.logger.debug(
            "Agent context built successfully",
            extra={
                "conversation_id": conversation_id,
                "agent_id": agent_id,
                "message_count": len(formatted),
            }
        )
        return context

    def append_continuation(self, messages: List[FormattedMessage]) -> List[FormattedMessage]:
        """Append a synthetic user turn when history ends on the agent's voice.

        The turn is only ever sent with the outbound call, never persisted.
        """
        if messages and messages[-1].role == ContextRole.ASSISTANT:
            return [*messages, FormattedMessage(role=ContextRole.USER, content=self.continuation_prompt)]
        return list(messages)

    async def _resolve_participants(
        self,
        participants: List[ConversationAgent]
    ) -> Dict[str, PersistedAgent]:
        resolved: Dict[str, PersistedAgent] = {}
        for participant in participants:
            resolved[participant.id] = await self.agent_resolver.resolve(participant.agent_id)
        return resolved
