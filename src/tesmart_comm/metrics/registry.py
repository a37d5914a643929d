"""Prometheus metrics registry for switch communication."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

CONNECTION_STATES: Final = ("disconnected", "connecting", "connected", "reconnecting", "closed")

# Metric definitions
tesmart_frame_sent_total: Final = Counter(  # type: ignore[assignment]
    "tesmart_frame_sent_total",
    "Total command frames sent",
    ["host", "outcome"],
)

tesmart_frame_recv_total: Final = Counter(  # type: ignore[assignment]
    "tesmart_frame_recv_total",
    "Total frames received",
    ["host", "kind"],
)

tesmart_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "tesmart_decode_errors_total",
    "Total invalid response frames",
    ["host", "reason"],
)

tesmart_request_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "tesmart_request_latency_seconds",
    "Command to response latency in seconds",
    ["host"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

tesmart_response_timeout_total: Final = Counter(  # type: ignore[assignment]
    "tesmart_response_timeout_total",
    "Total requests that got no response in time",
    ["host"],
)

tesmart_reconnection_total: Final = Counter(  # type: ignore[assignment]
    "tesmart_reconnection_total",
    "Total reconnection attempts",
    ["host", "reason"],
)

tesmart_connection_state: Final = Gauge(  # type: ignore[assignment]
    "tesmart_connection_state",
    "Current connection state",
    ["host", "state"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_frame_sent(host: str, outcome: str) -> None:
    """Record a sent command frame."""
    tesmart_frame_sent_total.labels(host=host, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_frame_recv(host: str, kind: str) -> None:
    """Record a received frame (kind: response or unsolicited)."""
    tesmart_frame_recv_total.labels(host=host, kind=kind).inc()  # type: ignore[no-untyped-call]


def record_decode_error(host: str, reason: str) -> None:
    """Record an invalid response frame."""
    tesmart_decode_errors_total.labels(host=host, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_request_latency(host: str, latency_seconds: float) -> None:
    """Record request/response latency."""
    tesmart_request_latency_seconds.labels(host=host).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_response_timeout(host: str) -> None:
    """Record a response timeout."""
    tesmart_response_timeout_total.labels(host=host).inc()  # type: ignore[no-untyped-call]


def record_reconnection(host: str, reason: str) -> None:
    """Record a reconnection attempt."""
    tesmart_reconnection_total.labels(host=host, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_connection_state(host: str, state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in CONNECTION_STATES:
        value = 1 if s == state else 0
        tesmart_connection_state.labels(host=host, state=s).set(value)  # type: ignore[no-untyped-call]
