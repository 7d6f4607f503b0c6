"""Shared fixtures for unit tests.

Provides a fake drone that answers on loopback, so the client and channels
are exercised over real UDP sockets without hardware.
"""

from __future__ import annotations

import socket
from collections.abc import Callable, Iterator

import pytest

from tello_comm.transport.retry_policy import RetryPolicy, TimeoutConfig
from tests.helpers.fake_drone import LOOPBACK, FakeTello, Responder, default_responder


@pytest.fixture
def fake_tello_factory() -> Iterator[Callable[[Responder], FakeTello]]:
    """Create fake drones that are stopped after the test."""
    drones: list[FakeTello] = []

    def _make(responder: Responder) -> FakeTello:
        drone = FakeTello(responder)
        drones.append(drone)
        return drone

    yield _make

    for drone in drones:
        drone.stop()


@pytest.fixture
def fake_tello(fake_tello_factory: Callable[[Responder], FakeTello]) -> FakeTello:
    """Fake drone with a healthy battery that acknowledges every command."""
    return fake_tello_factory(default_responder())


@pytest.fixture
def fast_timeouts() -> TimeoutConfig:
    """Short deadlines so failing requests finish quickly."""
    return TimeoutConfig(command_timeout_ms=200, action_timeout_ms=500)


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Three handshake attempts with no delay between them."""
    return RetryPolicy(max_attempts=3, base_delay_seconds=0.0)


@pytest.fixture
def free_udp_port() -> int:
    """Return a UDP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind((LOOPBACK, 0))
        return s.getsockname()[1]
