"""
OpenTelemetry Integration Module

Provides distributed tracing and metrics collection capabilities:
- tracer: Tracer setup and span creation
- metrics: Counters and latency histograms

Without setup_tracer()/setup_metrics() the OpenTelemetry API falls back to
no-op providers, so instrumented code runs unchanged.
"""

from .tracer import setup_tracer, create_span
from .metrics import setup_metrics, increment_counter, record_latency

__all__ = [
    "setup_tracer",
    "create_span",
    "setup_metrics",
    "increment_counter",
    "record_latency",
]
