"""
OpenTelemetry configuration with OTLP exporters for Roundtable.

Spans and instruments are created through the OpenTelemetry API, so they are
no-ops until :func:`initialize_telemetry` installs SDK providers.
"""

import logging
from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.asyncio import AsyncioInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from roundtable.lib.config import ObservabilityConfig


logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "roundtable"


class TelemetryManager:
    """Manages OpenTelemetry setup and lifecycle for Roundtable."""

    def __init__(self, config: ObservabilityConfig):
        self.config = config
        self._initialized = False
        self._resource: Optional[Resource] = None
        self._tracer_provider: Optional[TracerProvider] = None
        self._meter_provider: Optional[MeterProvider] = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Initialize OpenTelemetry with OTLP exporters."""
        if self._initialized:
            logger.warning("Telemetry already initialized")
            return

        try:
            self._setup_resource()
            self._setup_tracing()
            self._setup_metrics()
            self._setup_instrumentation()
        except Exception:
            logger.exception("Failed to initialize OpenTelemetry")
            raise

        self._initialized = True
        logger.info(f"OpenTelemetry initialized for service: {self.config.service_name}")

    def _setup_resource(self) -> None:
        """Setup resource attributes for all telemetry."""
        self._resource = Resource.create({
            "service.name": self.config.service_name,
            "service.version": self.config.service_version,
            "deployment.environment": self.config.environment,
            **self.config.resource_attributes
        })

    def _setup_tracing(self) -> None:
        """Setup distributed tracing with OTLP export."""
        trace_exporter = OTLPSpanExporter(
            endpoint=self.config.otlp_endpoint,
            timeout=self.config.export_timeout
        )

        self._tracer_provider = TracerProvider(
            resource=self._resource,
            sampler=TraceIdRatioBased(self.config.trace_sampling_ratio)
        )
        self._tracer_provider.add_span_processor(BatchSpanProcessor(trace_exporter))

        trace.set_tracer_provider(self._tracer_provider)

    def _setup_metrics(self) -> None:
        """Setup metrics collection with OTLP export."""
        metric_exporter = OTLPMetricExporter(
            endpoint=self.config.otlp_endpoint,
            timeout=self.config.export_timeout
        )

        metric_reader = PeriodicExportingMetricReader(
            exporter=metric_exporter,
            export_interval_millis=self.config.metric_export_interval_ms
        )

        self._meter_provider = MeterProvider(
            resource=self._resource,
            metric_readers=[metric_reader]
        )

        metrics.set_meter_provider(self._meter_provider)

    def _setup_instrumentation(self) -> None:
        """Setup automatic instrumentation for asyncio and logging."""
        AsyncioInstrumentor().instrument()
        LoggingInstrumentor().instrument(set_logging_format=False)

        logger.debug("Automatic instrumentation configured")

    def shutdown(self) -> None:
        """Gracefully shutdown telemetry and flush pending data."""
        if not self._initialized:
            return

        try:
            if self._tracer_provider is not None:
                self._tracer_provider.shutdown()
            if self._meter_provider is not None:
                self._meter_provider.shutdown()
            logger.info("OpenTelemetry shutdown completed")
        except Exception as e:
            logger.error(f"Error during telemetry shutdown: {e}")
        finally:
            self._initialized = False


# Global telemetry manager instance
_telemetry_manager: Optional[TelemetryManager] = None


def initialize_telemetry(config: ObservabilityConfig) -> TelemetryManager:
    """Initialize global telemetry manager."""
    global _telemetry_manager

    _telemetry_manager = TelemetryManager(config)
    _telemetry_manager.initialize()

    return _telemetry_manager


def shutdown_telemetry() -> None:
    """Shutdown global telemetry manager."""
    global _telemetry_manager
    if _telemetry_manager:
        _telemetry_manager.shutdown()
        _telemetry_manager = None


def get_tracer() -> trace.Tracer:
    """Tracer from the current global provider (no-op until initialized)."""
    return trace.get_tracer(INSTRUMENTATION_NAME)


def get_meter() -> metrics.Meter:
    """Meter from the current global provider (no-op until initialized)."""
    return metrics.get_meter(INSTRUMENTATION_NAME)


def start_dispatch_span(conversation_id: str, user_message_id: str):
    """Context manager span covering one dispatch round."""
    return get_tracer().start_as_current_span(
        "dispatch.process_user_message",
        attributes={
            "conversation.id": conversation_id,
            "conversation.user_message_id": user_message_id
        }
    )


def start_agent_span(conversation_id: str, agent_id: str, conversation_agent_id: str):
    """Context manager span covering one agent's processing."""
    return get_tracer().start_as_current_span(
        "agent.process_message",
        attributes={
            "conversation.id": conversation_id,
            "agent.id": agent_id,
            "agent.conversation_agent_id": conversation_agent_id
        }
    )
