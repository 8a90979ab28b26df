"""Results of a dispatch round."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class AgentProcessingResult(BaseModel):
    """Outcome for one agent; exactly one of response or error is set."""

    agent_id: str
    success: bool
    response: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None
    duration: int = Field(default=0, ge=0, description="Elapsed time in milliseconds")

    @model_validator(mode='after')
    def validate_outcome(self):
        """Enforce the response/error exclusivity."""
        if (self.response is None) == (self.error is None):
            raise ValueError("Exactly one of response or error must be set")
        if self.success and (self.response is None or self.message_id is None):
            raise ValueError("Successful results require a response and message_id")
        if not self.success and self.error is None:
            raise ValueError("Failed results require an error")
        return self

    @classmethod
    def failed(cls, agent_id: str, error: str, duration: int = 0) -> "AgentProcessingResult":
        """Build a failed result."""
        return cls(agent_id=agent_id, success=False, error=error, duration=duration)


class ProcessingResult(BaseModel):
    """Aggregated outcome of one dispatch round."""

    user_message_id: str
    total_agents: int = Field(default=0, ge=0)
    successful_agents: int = Field(default=0, ge=0)
    failed_agents: int = Field(default=0, ge=0)
    agent_results: List[AgentProcessingResult] = Field(default_factory=list)
    total_duration: int = Field(default=0, ge=0, description="Elapsed time in milliseconds")

    @model_validator(mode='after')
    def validate_counts(self):
        """Counts must agree with the result list."""
        if self.successful_agents + self.failed_agents != self.total_agents:
            raise ValueError("successful_agents + failed_agents must equal total_agents")
        if len(self.agent_results) != self.total_agents:
            raise ValueError("agent_results length must equal total_agents")
        return self

    @classmethod
    def empty(cls, user_message_id: str, total_duration: int = 0) -> "ProcessingResult":
        """Result for a round that dispatched to no agents."""
        return cls(user_message_id=user_message_id, total_duration=total_duration)

    @classmethod
    def from_agent_results(
        cls,
        user_message_id: str,
        agent_results: List[AgentProcessingResult],
        total_duration: int
    ) -> "ProcessingResult":
        """Aggregate per-agent results, preserving their order."""
        successful = sum(1 for result in agent_results if result.success)
        return cls(
            user_message_id=user_message_id,
            total_agents=len(agent_results),
            successful_agents=successful,
            failed_agents=len(agent_results) - successful,
            agent_results=agent_results,
            total_duration=total_duration
        )
