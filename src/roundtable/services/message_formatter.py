"""Conversion of stored messages into two-role context turns."""

from typing import Dict, List, Optional

from roundtable.models.agent_context import ContextRole, FormattedMessage
from roundtable.models.message import Message, MessageRole


UNKNOWN_AGENT_LABEL = "Unknown Agent"


class MessageFormatterService:
    """Formats a conversation history from one target agent's point of view.

    The generation call only knows ``user`` and ``assistant``. The target's own
    messages become ``assistant`` turns; everyone else speaks as ``user``, with
    other agents' messages prefixed by their display name so the model can tell
    the parties apart.
    """

    def format_messages(
        self,
        messages: List[Message],
        target_conversation_agent_id: str,
        agent_names: Dict[str, str]
    ) -> List[FormattedMessage]:
        """Format included, non-system messages in order."""
        formatted = []
        for message in messages:
            if not message.included or message.role == MessageRole.SYSTEM:
                continue
            formatted.append(
                self.format_message(message, target_conversation_agent_id, agent_names)
            )
        return formatted

    def format_message(
        self,
        message: Message,
        target_conversation_agent_id: str,
        agent_names: Dict[str, str]
    ) -> FormattedMessage:
        if message.role == MessageRole.USER:
            return FormattedMessage(role=ContextRole.USER, content=message.content)

        if (
            message.conversation_agent_id is not None
            and message.conversation_agent_id == target_conversation_agent_id
        ):
            return FormattedMessage(role=ContextRole.ASSISTANT, content=message.content)

        label = self._agent_label(message.conversation_agent_id, agent_names)
        return FormattedMessage(role=ContextRole.USER, content=f"{label}: {message.content}")

    @staticmethod
    def _agent_label(conversation_agent_id: Optional[str], agent_names: Dict[str, str]) -> str:
        if not conversation_agent_id:
            return UNKNOWN_AGENT_LABEL
        return agent_names.get(conversation_agent_id) or UNKNOWN_AGENT_LABEL
