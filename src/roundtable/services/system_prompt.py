"""Default system prompt rendering."""

from typing import List

from roundtable.models.agent import PersistedAgent
from roundtable.services.interfaces import ISystemPromptRenderer


class TemplateSystemPromptRenderer(ISystemPromptRenderer):
    """Renders a plain-text prompt introducing the agent and its peers."""

    def __init__(
        self,
        template: str = (
            "You are {name}, taking part in a group conversation with a human user{peers}.\n"
            "{profile}"
            "Reply only as {name}. Do not prefix your reply with your name."
        )
    ):
        self.template = template

    async def create_system_prompt(self, agent: PersistedAgent, participants: List[PersistedAgent]) -> str:
        peers = ""
        if participants:
            peers = " and the following other agents: " + ", ".join(p.name for p in participants)

        profile_lines = []
        if agent.role:
            profile_lines.append(f"Your role: {agent.role}\n")
        if agent.personality:
            profile_lines.append(f"Your personality: {agent.personality}\n")

        return self.template.format(name=agent.name, peers=peers, profile="".join(profile_lines))
