"""Metrics module."""

from .registry import (
    record_connection_state,
    record_datagram_recv,
    record_datagram_sent,
    record_handshake,
    record_listener_error,
    record_request,
    record_request_latency,
    record_request_lock_wait,
    record_telemetry_record,
    start_metrics_server,
)

__all__ = [
    "record_connection_state",
    "record_datagram_recv",
    "record_datagram_sent",
    "record_handshake",
    "record_listener_error",
    "record_request",
    "record_request_latency",
    "record_request_lock_wait",
    "record_telemetry_record",
    "start_metrics_server",
]
