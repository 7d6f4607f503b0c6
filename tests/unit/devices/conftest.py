"""Fixtures for device layer tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from tello_comm.devices.tello import Tello
from tello_comm.transport.retry_policy import RetryPolicy, TimeoutConfig
from tests.helpers.fake_drone import LOOPBACK, FakeTello

TelloFactory = Callable[..., Tello]


@pytest.fixture
def tello_factory(fast_timeouts: TimeoutConfig, fast_retry: RetryPolicy) -> Iterator[TelloFactory]:
    """Build clients aimed at a fake drone; all are closed after the test."""
    clients: list[Tello] = []

    def _make(drone: FakeTello, **overrides: object) -> Tello:
        kwargs: dict[str, object] = {
            "command_port": drone.port,
            "data_port": 0,
            "local_port": 0,
            "timeout_config": fast_timeouts,
            "retry_policy": fast_retry,
        }
        kwargs.update(overrides)
        client = Tello(**kwargs)  # type: ignore[arg-type]
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def connected_tello(fake_tello: FakeTello, tello_factory: TelloFactory) -> Tello:
    """Client that completed the handshake with the default fake drone."""
    client = tello_factory(fake_tello)
    assert client.connect(LOOPBACK)
    return client
