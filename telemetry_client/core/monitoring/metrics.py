"""Métricas Prometheus del cliente de telemetría."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

SAMPLES = Counter(
    "telemetry_samples_total",
    "Sensor sampling attempts",
    ["status"],  # ok, sensor_error, format_error
)
PUBLISHES = Counter(
    "telemetry_publish_total",
    "Publish attempts to the broker",
    ["source", "status"],  # source: fresh, queue; status: ok, failed
)
QUEUE_OPS = Counter(
    "telemetry_queue_ops_total",
    "Durable queue operations",
    ["op"],  # push, delete
)
BROKER_CONNECTED = Gauge(
    "telemetry_broker_connected",
    "Broker session status (1 = connected)",
)
QUEUE_DEPTH = Gauge(
    "telemetry_queue_depth",
    "Payloads waiting in the durable queue",
)
