"""Metrics module."""

from .registry import (
    record_connection_state,
    record_decode_error,
    record_frame_recv,
    record_frame_sent,
    record_reconnection,
    record_request_latency,
    record_response_timeout,
    start_metrics_server,
)

__all__ = [
    "record_connection_state",
    "record_decode_error",
    "record_frame_recv",
    "record_frame_sent",
    "record_reconnection",
    "record_request_latency",
    "record_response_timeout",
    "start_metrics_server",
]
