"""
Structured logging configuration with audit trail support for Roundtable.

Provides JSON-formatted logging with OpenTelemetry correlation and audit
records for dispatch rounds and per-agent outcomes.
"""

import json
import logging
import logging.config
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from opentelemetry import trace


_RESERVED_RECORD_KEYS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
    "relativeCreated", "thread", "threadName", "processName", "process", "message",
    "taskName",
})


def _exception_text(error: BaseException) -> str:
    try:
        return str(error)
    except Exception:
        return type(error).__name__


class StructuredFormatter(logging.Formatter):
    """JSON formatter with OpenTelemetry trace correlation."""

    def __init__(self, include_trace: bool = True, extra_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.include_trace = include_trace
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if self.include_trace:
            current_span = trace.get_current_span()
            if current_span and current_span.is_recording():
                span_context = current_span.get_span_context()
                log_entry.update({
                    "trace_id": format(span_context.trace_id, "032x"),
                    "span_id": format(span_context.span_id, "016x")
                })

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": _exception_text(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and key not in log_entry:
                log_entry[key] = value

        log_entry.update(self.extra_fields)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class AuditLogger:
    """Logger for dispatch-round and agent-outcome audit events."""

    def __init__(self, logger_name: str = "roundtable.audit"):
        self.logger = logging.getLogger(logger_name)

    def log_dispatch_event(
        self,
        event_type: str,
        conversation_id: str,
        user_message_id: str,
        total_agents: int,
        successful_agents: int,
        failed_agents: int,
        duration_ms: int
    ) -> None:
        """Log the outcome of a dispatch round."""
        self.logger.info(
            f"Dispatch event: {event_type}",
            extra={
                "audit_type": "dispatch",
                "event_type": event_type,
                "conversation_id": conversation_id,
                "user_message_id": user_message_id,
                "total_agents": total_agents,
                "successful_agents": successful_agents,
                "failed_agents": failed_agents,
                "duration_ms": duration_ms
            }
        )

    def log_agent_event(
        self,
        event_type: str,
        conversation_id: str,
        agent_id: str,
        result: str,
        duration_ms: Optional[int] = None,
        error_code: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log an agent outcome audit event."""
        self.logger.info(
            f"Agent event: {event_type} - {result}",
            extra={
                "audit_type": "agent",
                "event_type": event_type,
                "conversation_id": conversation_id,
                "agent_id": agent_id,
                "result": result,
                "duration_ms": duration_ms,
                "error_code": error_code,
                "metadata": metadata or {}
            }
        )


def setup_logging(config: Dict[str, Any]) -> None:
    """Setup structured logging configuration."""
    log_level = config.get("level", "INFO").upper()
    log_format = config.get("format", "structured")
    log_directory = config.get("directory")

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
                "include_trace": config.get("include_trace", True),
                "extra_fields": {
                    "service": "roundtable",
                    "environment": config.get("environment", "development")
                }
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "structured" if log_format == "structured" else "simple",
                "stream": sys.stderr
            }
        },
        "loggers": {
            "roundtable": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False
            },
            "roundtable.audit": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False
            },
            "opentelemetry": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            }
        },
        "root": {
            "level": log_level,
            "handlers": ["console"]
        }
    }

    if log_directory:
        log_dir = Path(log_directory).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)

        logging_config["handlers"]["application_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "structured",
            "filename": str(log_dir / "roundtable.log"),
            "maxBytes": config.get("max_file_size", 10 * 1024 * 1024),
            "backupCount": config.get("backup_count", 5)
        }
        logging_config["handlers"]["audit_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "INFO",
            "formatter": "structured",
            "filename": str(log_dir / "audit.jsonl"),
            "maxBytes": config.get("max_file_size", 10 * 1024 * 1024),
            "backupCount": config.get("backup_count", 5)
        }
        logging_config["loggers"]["roundtable"]["handlers"].append("application_file")
        logging_config["loggers"]["roundtable.audit"]["handlers"] = ["audit_file"]

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger("roundtable.logging")
    logger.debug("Structured logging initialized", extra={
        "config": {
            "level": log_level,
            "format": log_format,
            "directory": log_directory
        }
    })


def get_audit_logger() -> AuditLogger:
    """Get the configured audit logger instance."""
    return AuditLogger()
