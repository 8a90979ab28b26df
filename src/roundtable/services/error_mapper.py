"""Classification of agent failures into the chat error taxonomy.

Provider error text is opaque, so classification is a best-effort, ordered
substring match. More specific classes are listed first: provider status codes
are checked before timeouts so that "504 gateway timeout" is a provider error.
"""

import asyncio
from typing import Optional, Sequence, Tuple

from pydantic import ValidationError

from roundtable.models.chat_error import ChatError, ChatErrorType
from roundtable.services.errors import LlmProviderError


UNKNOWN_PROVIDER = "unknown"

ClassificationRule = Tuple[ChatErrorType, Sequence[str]]

PROVIDER_ERROR_RULES: Tuple[ClassificationRule, ...] = (
    (ChatErrorType.NETWORK_ERROR, (
        "network", "connection refused", "connection failed", "econnrefused", "enotfound", "dns",
    )),
    (ChatErrorType.AUTH_ERROR, ("unauthorized", "auth", "401", "api key", "invalid key")),
    (ChatErrorType.RATE_LIMIT_ERROR, ("rate limit", "too many requests", "429", "quota", "throttl")),
    (ChatErrorType.VALIDATION_ERROR, ("invalid", "validation", "bad request", "400", "malformed")),
    (ChatErrorType.PROVIDER_ERROR, (
        "500", "502", "503", "504", "internal server error", "service unavailable", "bad gateway",
    )),
    (ChatErrorType.TIMEOUT_ERROR, ("timeout", "timed out", "etimedout", "took too long")),
)

GENERIC_ERROR_RULES: Tuple[ClassificationRule, ...] = (
    (ChatErrorType.TIMEOUT_ERROR, ("timeout", "timed out")),
    (ChatErrorType.NETWORK_ERROR, ("network", "connection", "econnrefused", "enotfound")),
    (ChatErrorType.VALIDATION_ERROR, ("invalid", "validation")),
)

USER_MESSAGES = {
    ChatErrorType.NETWORK_ERROR: "Unable to connect to AI service. Please check your connection and try again.",
    ChatErrorType.AUTH_ERROR: "Authentication failed. Please check your API configuration.",
    ChatErrorType.RATE_LIMIT_ERROR: "Too many requests. Please wait a moment before trying again.",
    ChatErrorType.VALIDATION_ERROR: "Invalid request format. Please try again.",
    ChatErrorType.PROVIDER_ERROR: "AI service temporarily unavailable. Please try again.",
    ChatErrorType.TIMEOUT_ERROR: "Request timed out. Please try again.",
    ChatErrorType.UNKNOWN_ERROR: "An unexpected error occurred. Please try again.",
}


def match_rules(message: str, rules: Sequence[ClassificationRule]) -> ChatErrorType:
    """Return the first rule whose patterns occur in ``message``."""
    lowered = (message or "").lower()
    for error_type, patterns in rules:
        if any(pattern in lowered for pattern in patterns):
            return error_type
    return ChatErrorType.UNKNOWN_ERROR


def build_user_message(error_type: ChatErrorType, label: str) -> str:
    """User-safe text for ``error_type``, attributed to ``label``."""
    return f"Agent {label}: {USER_MESSAGES[error_type]}"


class ErrorMapper:
    """Maps exceptions onto :class:`ChatError` records. Never raises."""

    @staticmethod
    def from_llm_provider_error(
        error: LlmProviderError,
        conversation_id: str,
        agent_id: str,
        agent_name: Optional[str] = None
    ) -> ChatError:
        """Classify a structured provider failure."""
        message = _error_text(error)
        error_type = match_rules(message, PROVIDER_ERROR_RULES)
        return ErrorMapper._create(
            error_type, message, conversation_id, agent_id, error.provider, agent_name
        )

    @staticmethod
    def from_generic_error(
        error: BaseException,
        conversation_id: str,
        agent_id: str,
        provider: Optional[str] = None,
        agent_name: Optional[str] = None
    ) -> ChatError:
        """Classify an error without provider structure."""
        message = _error_text(error)
        error_type = _classify_by_exception_type(error)
        if error_type is None:
            error_type = match_rules(message, GENERIC_ERROR_RULES)
        return ErrorMapper._create(
            error_type, message, conversation_id, agent_id, provider, agent_name
        )

    @staticmethod
    def classify(
        error: BaseException,
        conversation_id: str,
        agent_id: str,
        provider: Optional[str] = None,
        agent_name: Optional[str] = None
    ) -> ChatError:
        """Dispatch to the provider or generic classifier by error kind."""
        if isinstance(error, LlmProviderError):
            return ErrorMapper.from_llm_provider_error(error, conversation_id, agent_id, agent_name)
        return ErrorMapper.from_generic_error(error, conversation_id, agent_id, provider, agent_name)

    @staticmethod
    def _create(
        error_type: ChatErrorType,
        technical_details: str,
        conversation_id: str,
        agent_id: str,
        provider: Optional[str],
        agent_name: Optional[str]
    ) -> ChatError:
        return ChatError(
            type=error_type,
            code=error_type.code,
            user_message=build_user_message(error_type, agent_name or agent_id),
            technical_details=technical_details,
            conversation_id=conversation_id,
            agent_id=agent_id,
            provider=provider or UNKNOWN_PROVIDER,
            retryable=error_type.retryable
        )


def _error_text(error: BaseException) -> str:
    """Raw error text; falls back to the type name when rendering fails."""
    try:
        message = getattr(error, "message", None)
        if isinstance(message, str):
            return message
        return str(error)
    except Exception:
        return type(error).__name__


def _classify_by_exception_type(error: BaseException) -> Optional[ChatErrorType]:
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ChatErrorType.TIMEOUT_ERROR
    if isinstance(error, ConnectionError):
        return ChatErrorType.NETWORK_ERROR
    if isinstance(error, ValidationError):
        return ChatErrorType.VALIDATION_ERROR
    return None
