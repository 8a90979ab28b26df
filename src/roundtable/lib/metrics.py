"""
Metrics collection for dispatch rounds and per-agent outcomes.

Uses OpenTelemetry metric instruments from the global meter provider.
"""

from dataclasses import dataclass
from typing import Optional

from opentelemetry import metrics

from roundtable.lib.observability import get_meter


@dataclass
class AgentMetrics:
    """Metrics for one agent's processing in a dispatch round."""
    agent_id: str
    duration_ms: int
    success: bool
    error_type: Optional[str] = None


class DispatchMetricsCollector:
    """Collects dispatch and agent metrics."""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self._setup_instruments()

    def _setup_instruments(self) -> None:
        """Setup OpenTelemetry metric instruments."""
        self.dispatch_rounds = self.meter.create_counter(
            name="roundtable_dispatch_rounds_total",
            description="Total number of dispatch rounds",
            unit="1"
        )

        self.dispatch_duration = self.meter.create_histogram(
            name="roundtable_dispatch_duration_ms",
            description="Duration of dispatch rounds",
            unit="ms"
        )

        self.agent_requests = self.meter.create_counter(
            name="roundtable_agent_requests_total",
            description="Agent requests by outcome",
            unit="1"
        )

        self.agent_duration = self.meter.create_histogram(
            name="roundtable_agent_duration_ms",
            description="Agent processing duration",
            unit="ms"
        )

        self.agent_errors = self.meter.create_counter(
            name="roundtable_agent_errors_total",
            description="Agent failures by error type",
            unit="1"
        )

    def record_dispatch(self, total_agents: int, failed_agents: int, duration_ms: int) -> None:
        """Record a completed dispatch round."""
        attributes = {
            "agent_count": str(total_agents),
            "partial_failure": str(0 < failed_agents < total_agents).lower(),
            "all_failed": str(total_agents > 0 and failed_agents == total_agents).lower()
        }

        self.dispatch_rounds.add(1, attributes)
        self.dispatch_duration.record(duration_ms, attributes)

    def record_agent_operation(self, agent_metrics: AgentMetrics) -> None:
        """Record one agent's outcome."""
        attributes = {
            "agent_id": agent_metrics.agent_id,
            "success": str(agent_metrics.success).lower()
        }

        self.agent_requests.add(1, attributes)
        self.agent_duration.record(agent_metrics.duration_ms, attributes)

        if not agent_metrics.success and agent_metrics.error_type:
            self.agent_errors.add(1, {
                "agent_id": agent_metrics.agent_id,
                "error_type": agent_metrics.error_type
            })


# Global metrics collector instance
_metrics_collector: Optional[DispatchMetricsCollector] = None


def initialize_metrics(meter: Optional[metrics.Meter] = None) -> DispatchMetricsCollector:
    """Initialize the global metrics collector."""
    global _metrics_collector
    _metrics_collector = DispatchMetricsCollector(meter or get_meter())
    return _metrics_collector


def get_metrics_collector() -> DispatchMetricsCollector:
    """Get the global metrics collector, creating it on first use."""
    if _metrics_collector is None:
        return initialize_metrics()
    return _metrics_collector
