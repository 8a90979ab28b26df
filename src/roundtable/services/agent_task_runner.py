"""Processing of one dispatch round for a single agent."""

import asyncio
import inspect
import logging
import time
from typing import Optional

from opentelemetry.trace import Status, StatusCode

from roundtable.lib.logging_config import AuditLogger, get_audit_logger
from roundtable.lib.metrics import AgentMetrics, DispatchMetricsCollector, get_metrics_collector
from roundtable.lib.observability import start_agent_span
from roundtable.models.agent_event import (
    AgentEvent,
    AgentEventCallback,
    AgentStatus,
    to_event_error_type,
)
from roundtable.models.chat_error import ChatError
from roundtable.models.message import MessageRole, NewMessage
from roundtable.models.processing_result import AgentProcessingResult
from roundtable.services.agent_context_builder import AgentContextBuilder
from roundtable.services.error_mapper import ErrorMapper
from roundtable.services.errors import AgentResponseTimeoutError
from roundtable.services.interfaces import IAgentResolver, ILlmBridge, IMessageRepository


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


def _cancellation_requested() -> bool:
    """True when the running task itself has been asked to cancel."""
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class AgentTaskRunner:
    """Runs context assembly, generation and persistence for one agent.

    ``run`` never raises: every failure is classified, reported to the
    conversation as a system message and returned as a failed result. A
    cancellation raised by a collaborator counts as a failure; cancellation of
    the running task itself propagates. Each invocation persists at most one
    message and emits at most two events (``thinking`` followed by
    ``complete`` or ``error``).
    """

    def __init__(
        self,
        llm_bridge: ILlmBridge,
        message_repository: IMessageRepository,
        agent_resolver: IAgentResolver,
        context_builder: AgentContextBuilder,
        agent_timeout_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
        audit_logger: Optional[AuditLogger] = None,
        metrics_collector: Optional[DispatchMetricsCollector] = None
    ):
        self.llm_bridge = llm_bridge
        self.message_repository = message_repository
        self.agent_resolver = agent_resolver
        self.context_builder = context_builder
        self.agent_timeout_seconds = agent_timeout_seconds or None
        self.logger = logger or logging.getLogger(__name__)
        self.audit_logger = audit_logger or get_audit_logger()
        self.metrics_collector = metrics_collector or get_metrics_collector()

    async def run(
        self,
        conversation_id: str,
        user_message_id: str,
        agent_id: str,
        conversation_agent_id: str,
        event_callback: Optional[AgentEventCallback] = None
    ) -> AgentProcessingResult:
        """Process ``user_message_id`` for one agent.

        Args:
            conversation_id: Conversation containing the user message
            user_message_id: The user message being answered
            agent_id: Target agent
            conversation_agent_id: Association id the reply is attributed to
            event_callback: Optional sink for status events

        Returns:
            AgentProcessingResult with either the response or a user-safe error
        """
        start_time = time.monotonic()

        with start_agent_span(conversation_id, agent_id, conversation_agent_id) as span:
            agent_name = await self._resolve_agent_name(agent_id)
            display_name = agent_name or f"Agent {agent_id}"

            self.logger.debug(
                "Processing agent message",
                extra={
                    "conversation_id": conversation_id,
                    "user_message_id": user_message_id,
                    "agent_id": agent_id,
                }
            )

            await self._emit(event_callback, AgentEvent(
                conversation_agent_id=conversation_agent_id,
                status=AgentStatus.THINKING,
                agent_name=display_name
            ))

            try:
                response = await self._generate(conversation_id, agent_id, conversation_agent_id)

                saved_message = await self.message_repository.create(NewMessage(
                    conversation_id=conversation_id,
                    conversation_agent_id=conversation_agent_id,
                    role=MessageRole.AGENT,
                    content=response,
                    included=True
                ))
            except (Exception, asyncio.CancelledError) as error:
                if isinstance(error, asyncio.CancelledError) and _cancellation_requested():
                    raise
                chat_error = ErrorMapper.classify(
                    error, conversation_id, agent_id, agent_name=agent_name
                )
                span.set_status(Status(StatusCode.ERROR, chat_error.code))
                span.set_attribute("agent.error_type", chat_error.type.value)
                return await self._handle_failure(
                    chat_error, error, user_message_id, conversation_agent_id,
                    display_name, start_time, event_callback
                )

            duration = _elapsed_ms(start_time)

            self.logger.info(
                "Agent message processed successfully",
                extra={
                    "conversation_id": conversation_id,
                    "agent_id": agent_id,
                    "message_id": saved_message.id,
                    "duration_ms": duration,
                }
            )
            self.audit_logger.log_agent_event(
                "agent_reply", conversation_id, agent_id, "success", duration_ms=duration
            )
            self.metrics_collector.record_agent_operation(
                AgentMetrics(agent_id=agent_id, duration_ms=duration, success=True)
            )

            await self._emit(event_callback, AgentEvent(
                conversation_agent_id=conversation_agent_id,
                status=AgentStatus.COMPLETE,
                agent_name=display_name,
                message_id=saved_message.id
            ))

            return AgentProcessingResult(
                agent_id=agent_id,
                success=True,
                response=response,
                message_id=saved_message.id,
                duration=duration
            )

    async def _generate(self, conversation_id: str, agent_id: str, conversation_agent_id: str) -> str:
        context = await self.context_builder.build_agent_context(
            conversation_id, agent_id, conversation_agent_id
        )
        agent = await self.agent_resolver.resolve(agent_id)

        call = self.llm_bridge.send_to_provider(agent.runtime_config(), context)
        if self.agent_timeout_seconds is None:
            return await call

        try:
            return await asyncio.wait_for(call, timeout=self.agent_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise AgentResponseTimeoutError(agent_id, self.agent_timeout_seconds) from e

    async def _handle_failure(
        self,
        chat_error: ChatError,
        error: BaseException,
        user_message_id: str,
        conversation_agent_id: str,
        display_name: str,
        start_time: float,
        event_callback: Optional[AgentEventCallback]
    ) -> AgentProcessingResult:
        conversation_id = chat_error.conversation_id
        agent_id = chat_error.agent_id

        try:
            await self.message_repository.create(NewMessage(
                conversation_id=conversation_id,
                conversation_agent_id=None,
                role=MessageRole.SYSTEM,
                content=chat_error.user_message,
                included=True
            ))
        except Exception:
            self.logger.exception(
                "Failed to persist error system message",
                extra={**chat_error.to_log_context(), "original_error": chat_error.technical_details}
            )

        duration = _elapsed_ms(start_time)

        self.logger.error(
            "Agent message processing failed",
            exc_info=(type(error), error, error.__traceback__),
            extra={
                **chat_error.to_log_context(),
                "user_message_id": user_message_id,
                "duration_ms": duration,
                "technical_details": chat_error.technical_details,
            }
        )
        self.audit_logger.log_agent_event(
            "agent_reply", conversation_id, agent_id, "failure",
            duration_ms=duration, error_code=chat_error.code
        )
        self.metrics_collector.record_agent_operation(AgentMetrics(
            agent_id=agent_id,
            duration_ms=duration,
            success=False,
            error_type=chat_error.type.value
        ))

        await self._emit(event_callback, AgentEvent(
            conversation_agent_id=conversation_agent_id,
            status=AgentStatus.ERROR,
            agent_name=display_name,
            error=chat_error.user_message,
            error_type=to_event_error_type(chat_error.type),
            retryable=chat_error.retryable
        ))

        return AgentProcessingResult.failed(agent_id, chat_error.user_message, duration)

    async def _resolve_agent_name(self, agent_id: str) -> Optional[str]:
        """Best-effort display name; None when resolution fails."""
        try:
            agent = await self.agent_resolver.resolve(agent_id)
        except Exception:
            self.logger.debug("Agent name resolution failed", extra={"agent_id": agent_id})
            return None
        return agent.name or None

    async def _emit(self, event_callback: Optional[AgentEventCallback], event: AgentEvent) -> None:
        if event_callback is None:
            return
        try:
            outcome = event_callback(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            self.logger.warning(
                "Agent event callback failed",
                exc_info=True,
                extra={
                    "conversation_agent_id": event.conversation_agent_id,
                    "agent_status": event.status.value,
                }
            )
