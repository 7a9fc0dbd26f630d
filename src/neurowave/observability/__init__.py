"""Observability: structured logging and Prometheus metrics."""

from .logger import (
    EventType,
    JSONFormatter,
    ObservabilityLogger,
    configure_logging,
    get_observability_logger,
)
from .metrics import MetricsExporter, get_metrics_exporter

__all__ = [
    "EventType",
    "JSONFormatter",
    "MetricsExporter",
    "ObservabilityLogger",
    "configure_logging",
    "get_metrics_exporter",
    "get_observability_logger",
]
