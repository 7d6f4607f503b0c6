"""Prometheus metrics registry for Tello UDP communication."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from tello_comm.const import TELLO_METRICS_PORT

# Datagram metrics
tello_comm_datagram_sent_total: Final = Counter(  # type: ignore[assignment]
    "tello_comm_datagram_sent_total",
    "Total datagrams sent",
    ["channel", "outcome"],
)

tello_comm_datagram_recv_total: Final = Counter(  # type: ignore[assignment]
    "tello_comm_datagram_recv_total",
    "Total datagrams received",
    ["channel", "outcome"],
)

tello_comm_listener_errors_total: Final = Counter(  # type: ignore[assignment]
    "tello_comm_listener_errors_total",
    "Total telemetry listener failures (receive or callback)",
    ["port", "reason"],
)

# Request metrics
tello_comm_request_total: Final = Counter(  # type: ignore[assignment]
    "tello_comm_request_total",
    "Total command channel requests",
    ["kind", "outcome"],
)

tello_comm_request_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "tello_comm_request_latency_seconds",
    "Request round-trip latency in seconds",
    ["kind"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

tello_comm_request_lock_wait_seconds: Final = Histogram(  # type: ignore[assignment]
    "tello_comm_request_lock_wait_seconds",
    "Time spent waiting for the request lock in seconds",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
)

# Telemetry metrics
tello_comm_telemetry_records_total: Final = Counter(  # type: ignore[assignment]
    "tello_comm_telemetry_records_total",
    "Total telemetry records decoded",
)

# Connection metrics
tello_comm_connection_state: Final = Gauge(  # type: ignore[assignment]
    "tello_comm_connection_state",
    "Current connection state",
    ["state"],
)

tello_comm_handshake_total: Final = Counter(  # type: ignore[assignment]
    "tello_comm_handshake_total",
    "Total handshake attempts",
    ["outcome"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = TELLO_METRICS_PORT) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_datagram_sent(channel: str, outcome: str) -> None:
    """Record a sent datagram."""
    tello_comm_datagram_sent_total.labels(channel=channel, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_datagram_recv(channel: str, outcome: str) -> None:
    """Record a received datagram (or failed receive)."""
    tello_comm_datagram_recv_total.labels(channel=channel, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_listener_error(port: int, reason: str) -> None:
    """Record a telemetry listener failure."""
    tello_comm_listener_errors_total.labels(port=str(port), reason=reason).inc()  # type: ignore[no-untyped-call]


def record_request(kind: str, outcome: str) -> None:
    """Record a command channel request outcome."""
    tello_comm_request_total.labels(kind=kind, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_request_latency(kind: str, latency_seconds: float) -> None:
    """Record request round-trip latency."""
    tello_comm_request_latency_seconds.labels(kind=kind).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_request_lock_wait(wait_seconds: float) -> None:
    """Record time spent waiting for the request lock."""
    tello_comm_request_lock_wait_seconds.observe(wait_seconds)  # type: ignore[no-untyped-call]


def record_telemetry_record() -> None:
    """Record a decoded telemetry record."""
    tello_comm_telemetry_records_total.inc()  # type: ignore[no-untyped-call]


def record_connection_state(state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in ["disconnected", "connecting", "connected"]:
        value = 1 if s == state else 0
        tello_comm_connection_state.labels(state=s).set(value)  # type: ignore[no-untyped-call]


def record_handshake(outcome: str) -> None:
    """Record a handshake attempt."""
    tello_comm_handshake_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]
