"""
Scenario files for the ``roundtable dispatch`` command.

A scenario describes one conversation (agents, participants and prior
history), the user message to dispatch and the scripted reply for each
provider configuration.
"""

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from roundtable.models.agent import ConversationAgent, PersistedAgent
from roundtable.models.message import Message, MessageRole
from roundtable.services.in_memory_store import InMemoryConversationStore
from roundtable.services.scripted_bridge import ScriptedLlmBridge, ScriptedReply


class ScenarioError(Exception):
    """Raised when a scenario file cannot be loaded."""
    pass


class ScenarioParticipant(BaseModel):
    agent_id: str = Field(..., min_length=1)
    id: Optional[str] = Field(None, description="Association id; generated when omitted")
    enabled: bool = True
    display_order: Optional[int] = Field(None, ge=0)


class ScenarioMessage(BaseModel):
    role: MessageRole
    content: str
    agent_id: Optional[str] = Field(None, description="Authoring agent for agent messages")
    included: bool = True

    @model_validator(mode='after')
    def validate_author(self):
        if self.role == MessageRole.AGENT and not self.agent_id:
            raise ValueError("Agent messages need an agent_id")
        if self.role != MessageRole.AGENT and self.agent_id:
            raise ValueError(f"{self.role.value} messages cannot name an agent_id")
        return self


class Scenario(BaseModel):
    """One dispatch round, ready to be loaded into in-memory collaborators."""

    conversation_id: str = Field(default="scenario", min_length=1)
    agents: List[PersistedAgent] = Field(default_factory=list)
    participants: List[ScenarioParticipant] = Field(default_factory=list)
    history: List[ScenarioMessage] = Field(default_factory=list)
    user_message: str = Field(..., min_length=1)
    replies: Dict[str, ScriptedReply] = Field(default_factory=dict)

    @model_validator(mode='after')
    def validate_references(self):
        agent_ids = {agent.id for agent in self.agents}
        for participant in self.participants:
            if participant.agent_id not in agent_ids:
                raise ValueError(f"Participant references unknown agent: {participant.agent_id}")

        participant_agents = {participant.agent_id for participant in self.participants}
        for message in self.history:
            if message.agent_id and message.agent_id not in participant_agents:
                raise ValueError(f"History message references non-participant agent: {message.agent_id}")
        return self

    def build_store(self) -> InMemoryConversationStore:
        """Load agents, participants and history into a fresh store."""
        store = InMemoryConversationStore()
        store.add_conversation(self.conversation_id)

        for agent in self.agents:
            store.add_agent(agent)

        association_ids: Dict[str, str] = {}
        for position, participant in enumerate(self.participants):
            fields = {
                "conversation_id": self.conversation_id,
                "agent_id": participant.agent_id,
                "enabled": participant.enabled,
                "display_order": position if participant.display_order is None else participant.display_order,
            }
            if participant.id:
                fields["id"] = participant.id
            association = store.add_participant(ConversationAgent(**fields))
            association_ids.setdefault(participant.agent_id, association.id)

        for entry in self.history:
            store.add_message(Message(
                conversation_id=self.conversation_id,
                conversation_agent_id=association_ids.get(entry.agent_id) if entry.agent_id else None,
                role=entry.role,
                content=entry.content,
                included=entry.included
            ))

        return store

    def build_bridge(self) -> ScriptedLlmBridge:
        return ScriptedLlmBridge(dict(self.replies))


def load_scenario(path: str) -> Scenario:
    """Read and validate a scenario YAML file."""
    scenario_file = Path(path).expanduser()

    try:
        with open(scenario_file, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ScenarioError(f"Invalid YAML in scenario file {scenario_file}: {e}") from e
    except OSError as e:
        raise ScenarioError(f"Error reading scenario file: {e}") from e

    if not isinstance(data, dict):
        raise ScenarioError(f"Scenario root must be a mapping in {scenario_file}")

    try:
        return Scenario(**data)
    except ValidationError as e:
        raise ScenarioError(f"Scenario validation failed: {e}") from e
