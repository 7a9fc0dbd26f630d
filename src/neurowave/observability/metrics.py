"""Prometheus-compatible metrics for observability.

Counters, gauges and histograms for the evaluation loop and the
coordinator, exported in the Prometheus text format.
"""

from threading import Lock
from typing import Any

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class MetricsExporter:
    """Prometheus-compatible metrics exporter for neurowave.

    Provides:
    - Counters: ticks, samples received/sanitized, state transitions,
      tick errors, activations
    - Gauges: smoothed score, instability, agitation (per actor), active actors
    - Histograms: tick_latency_ms
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize metrics exporter.

        Args:
            registry: Optional custom Prometheus registry. A private one is
                created when None so exporters never collide.
        """
        self.registry = registry or CollectorRegistry()
        self._lock = Lock()

        # Counters
        self.ticks = Counter(
            "neurowave_ticks_total",
            "Total number of evaluation ticks",
            ["actor_id"],
            registry=self.registry,
        )

        self.samples_received = Counter(
            "neurowave_samples_received_total",
            "Total number of wave samples received",
            registry=self.registry,
        )

        self.samples_sanitized = Counter(
            "neurowave_samples_sanitized_total",
            "Total number of wave samples that required sanitization",
            registry=self.registry,
        )

        self.state_transitions = Counter(
            "neurowave_state_transitions_total",
            "Total number of emotion state transitions",
            ["from_state", "to_state"],
            registry=self.registry,
        )

        self.tick_errors = Counter(
            "neurowave_tick_errors_total",
            "Total number of evaluation ticks that raised",
            ["actor_id"],
            registry=self.registry,
        )

        self.activations = Counter(
            "neurowave_activations_total",
            "Total number of actor activations",
            registry=self.registry,
        )

        # Gauges
        self.smoothed_score = Gauge(
            "neurowave_smoothed_score",
            "Latest smoothed wave score per actor (0-1)",
            ["actor_id"],
            registry=self.registry,
        )

        self.instability = Gauge(
            "neurowave_instability",
            "Latest instability per actor (0-1)",
            ["actor_id"],
            registry=self.registry,
        )

        self.agitation = Gauge(
            "neurowave_agitation",
            "Latest agitation level per actor (0-1)",
            ["actor_id"],
            registry=self.registry,
        )

        self.active_actors = Gauge(
            "neurowave_active_actors",
            "Number of actors with a running evaluation loop",
            registry=self.registry,
        )

        # Histograms
        self.tick_latency = Histogram(
            "neurowave_tick_latency_milliseconds",
            "Evaluation tick latency in milliseconds",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0),
            registry=self.registry,
        )

    def increment_ticks(self, actor_id: str, count: int = 1) -> None:
        with self._lock:
            self.ticks.labels(actor_id=actor_id).inc(count)

    def increment_samples_received(self, sanitized: bool = False) -> None:
        """Count an incoming sample, and separately if it needed repair."""
        with self._lock:
            self.samples_received.inc()
            if sanitized:
                self.samples_sanitized.inc()

    def increment_state_transition(self, from_state: str, to_state: str) -> None:
        with self._lock:
            self.state_transitions.labels(from_state=from_state, to_state=to_state).inc()

    def increment_tick_errors(self, actor_id: str) -> None:
        with self._lock:
            self.tick_errors.labels(actor_id=actor_id).inc()

    def increment_activations(self) -> None:
        with self._lock:
            self.activations.inc()

    def set_actor_values(
        self,
        actor_id: str,
        smoothed_score: float,
        instability: float,
        agitation: float,
    ) -> None:
        with self._lock:
            self.smoothed_score.labels(actor_id=actor_id).set(smoothed_score)
            self.instability.labels(actor_id=actor_id).set(instability)
            self.agitation.labels(actor_id=actor_id).set(agitation)

    def remove_actor(self, actor_id: str) -> None:
        """Drop per-actor gauge series for an unregistered actor."""
        with self._lock:
            for gauge in (self.smoothed_score, self.instability, self.agitation):
                try:
                    gauge.remove(actor_id)
                except KeyError:
                    pass

    def set_active_actors(self, count: int) -> None:
        with self._lock:
            self.active_actors.set(count)

    def observe_tick_latency(self, latency_ms: float) -> None:
        with self._lock:
            self.tick_latency.observe(latency_ms)

    def export_metrics(self) -> bytes:
        """Export metrics in Prometheus format."""
        return generate_latest(self.registry)

    def get_metrics_text(self) -> str:
        return self.export_metrics().decode("utf-8")

    def get_current_values(self) -> dict[str, Any]:
        """Current unlabelled metric values (testing and debugging aid)."""
        sample = self.registry.get_sample_value
        return {
            "samples_received": sample("neurowave_samples_received_total") or 0.0,
            "samples_sanitized": sample("neurowave_samples_sanitized_total") or 0.0,
            "activations": sample("neurowave_activations_total") or 0.0,
            "active_actors": sample("neurowave_active_actors") or 0.0,
        }


# Global instance for convenience
_metrics_exporter: MetricsExporter | None = None
_metrics_exporter_lock = Lock()


def get_metrics_exporter(registry: CollectorRegistry | None = None) -> MetricsExporter:
    """Get or create the process-wide metrics exporter.

    Note:
        The registry parameter is only used when creating the singleton
        instance; later calls return the existing exporter.
    """
    global _metrics_exporter

    if _metrics_exporter is None:
        with _metrics_exporter_lock:
            if _metrics_exporter is None:
                _metrics_exporter = MetricsExporter(registry=registry)

    return _metrics_exporter
