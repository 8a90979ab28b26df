"""Dispatch of a user message to every enabled agent in a conversation."""

import asyncio
import logging
import time
from typing import List, Optional

from roundtable.lib.logging_config import AuditLogger, get_audit_logger
from roundtable.lib.metrics import DispatchMetricsCollector, get_metrics_collector
from roundtable.lib.observability import start_dispatch_span
from roundtable.models.agent import ConversationAgent
from roundtable.models.agent_event import AgentEventCallback
from roundtable.models.processing_result import AgentProcessingResult, ProcessingResult
from roundtable.services.agent_task_runner import AgentTaskRunner
from roundtable.services.error_mapper import ErrorMapper
from roundtable.services.interfaces import IConversationAgentsRepository


class ChatOrchestrationService:
    """Coordinates one dispatch round across all enabled agents.

    Agents run concurrently; the round waits for every agent to settle and
    never short-circuits on failure. Results keep the enabled-agent order,
    not completion order.
    """

    def __init__(
        self,
        conversation_agents_repository: IConversationAgentsRepository,
        agent_task_runner: AgentTaskRunner,
        logger: Optional[logging.Logger] = None,
        audit_logger: Optional[AuditLogger] = None,
        metrics_collector: Optional[DispatchMetricsCollector] = None
    ):
        self.conversation_agents_repository = conversation_agents_repository
        self.agent_task_runner = agent_task_runner
        self.logger = logger or logging.getLogger(__name__)
        self.audit_logger = audit_logger or get_audit_logger()
        self.metrics_collector = metrics_collector or get_metrics_collector()
        self.logger.debug("ChatOrchestrationService initialized")

    async def process_user_message(
        self,
        conversation_id: str,
        user_message_id: str,
        event_callback: Optional[AgentEventCallback] = None
    ) -> ProcessingResult:
        """Process a user message across all enabled agents.

        Args:
            conversation_id: Conversation containing the user message
            user_message_id: The user message to process
            event_callback: Optional sink for per-agent status events

        Returns:
            ProcessingResult with one entry per enabled agent. Systemic failures
            (e.g. the participant lookup itself failing) yield a zero-agent result.
        """
        start_time = time.monotonic()

        self.logger.info(
            "Starting user message processing",
            extra={"conversation_id": conversation_id, "user_message_id": user_message_id}
        )

        with start_dispatch_span(conversation_id, user_message_id) as span:
            try:
                enabled_agents = await self.conversation_agents_repository.get_enabled_by_conversation_id(
                    conversation_id
                )
            except Exception:
                self.logger.exception(
                    "Error during user message processing",
                    extra={"conversation_id": conversation_id, "user_message_id": user_message_id}
                )
                return ProcessingResult.empty(user_message_id, self._elapsed_ms(start_time))

            if not enabled_agents:
                self.logger.info(
                    "No enabled agents found for conversation",
                    extra={"conversation_id": conversation_id}
                )
                return ProcessingResult.empty(user_message_id, self._elapsed_ms(start_time))

            self.logger.info(
                f"Processing message with {len(enabled_agents)} enabled agents",
                extra={"conversation_id": conversation_id, "agent_count": len(enabled_agents)}
            )
            span.set_attribute("dispatch.agent_count", len(enabled_agents))

            agent_results = await self._run_agents(
                conversation_id, user_message_id, enabled_agents, event_callback
            )

            result = ProcessingResult.from_agent_results(
                user_message_id, agent_results, self._elapsed_ms(start_time)
            )
            span.set_attribute("dispatch.failed_agents", result.failed_agents)

        self.logger.info(
            "User message processing completed",
            extra={
                "conversation_id": conversation_id,
                "user_message_id": user_message_id,
                "total_agents": result.total_agents,
                "successful_agents": result.successful_agents,
                "failed_agents": result.failed_agents,
                "total_duration_ms": result.total_duration,
            }
        )
        self.audit_logger.log_dispatch_event(
            "dispatch_completed", conversation_id, user_message_id,
            result.total_agents, result.successful_agents, result.failed_agents,
            result.total_duration
        )
        self.metrics_collector.record_dispatch(
            result.total_agents, result.failed_agents, result.total_duration
        )

        return result

    async def _run_agents(
        self,
        conversation_id: str,
        user_message_id: str,
        enabled_agents: List[ConversationAgent],
        event_callback: Optional[AgentEventCallback]
    ) -> List[AgentProcessingResult]:
        """Run every agent concurrently and map outcomes back in input order."""
        settled = await asyncio.gather(
            *(
                self.agent_task_runner.run(
                    conversation_id,
                    user_message_id,
                    conversation_agent.agent_id,
                    conversation_agent.id,
                    event_callback
                )
                for conversation_agent in enabled_agents
            ),
            return_exceptions=True
        )

        agent_results = []
        for conversation_agent, outcome in zip(enabled_agents, settled):
            if isinstance(outcome, AgentProcessingResult):
                agent_results.append(outcome)
                continue

            self.logger.error(
                "Agent task raised unexpectedly",
                exc_info=outcome,
                extra={
                    "conversation_id": conversation_id,
                    "agent_id": conversation_agent.agent_id,
                }
            )
            chat_error = ErrorMapper.classify(outcome, conversation_id, conversation_agent.agent_id)
            agent_results.append(AgentProcessingResult.failed(
                conversation_agent.agent_id, chat_error.user_message
            ))

        return agent_results

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)
