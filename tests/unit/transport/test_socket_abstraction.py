"""Unit tests for UDPSocket socket abstraction.

Tests cover:
- Lifecycle (open, bind, close) and close idempotence
- Error mapping to UDPSocketError subclasses
- Receive buffer semantics and timeouts
- Receive timeout caching
- Draining queued datagrams
- Self-interrupt of a blocked receive
"""

from __future__ import annotations

import errno
import socket
import threading
from unittest.mock import MagicMock, patch

import pytest

from tello_comm.const import NO_TIMEOUT
from tello_comm.transport.address import IPv4Address
from tello_comm.transport.exceptions import (
    SocketBindError,
    SocketCloseError,
    SocketOpenError,
    SocketRecvError,
    SocketSendError,
    SocketShutdownError,
    SocketStatus,
)
from tello_comm.transport.socket_abstraction import UDPSocket
from tests.helpers.fake_drone import wait_for

SHORT_TIMEOUT_MS = 50


@pytest.fixture
def udp_socket():
    """Open socket bound to an ephemeral port, closed after the test."""
    sock = UDPSocket()
    sock.open()
    sock.bind_any()
    yield sock
    sock.close()


def _install_mock(sock: UDPSocket) -> MagicMock:
    """Swap the real descriptor for a mock, closing the real one."""
    real = sock._sock
    assert real is not None
    real.close()
    mock = MagicMock(spec=socket.socket)
    sock._sock = mock
    return mock


class TestLifecycle:
    """Tests for open/bind/close."""

    def test_new_socket_is_closed(self):
        """Test that a new socket has no descriptor."""
        sock = UDPSocket()
        assert sock.is_closed
        assert sock.fileno() == -1

    def test_bind_any_reports_ephemeral_port(self, udp_socket: UDPSocket):
        """Test that the bound address is read back from the OS."""
        assert udp_socket.self_address.port != 0
        assert udp_socket.self_address.is_any

    def test_open_failure_raises(self):
        """Test that an OS open failure maps to SocketOpenError."""
        sock = UDPSocket()
        with patch("socket.socket", side_effect=OSError("no descriptors")):
            with pytest.raises(SocketOpenError) as exc_info:
                sock.open()
        assert exc_info.value.status == SocketStatus.SOCKET_ERROR
        assert sock.is_closed

    def test_bind_unavailable_address_raises(self):
        """Test that binding a non-local address maps to SocketBindError."""
        other = UDPSocket()
        other.open()
        try:
            # 192.0.2.0/24 is reserved for documentation, never a local address
            with pytest.raises(SocketBindError):
                other.bind(IPv4Address((192, 0, 2, 1), 0))
        finally:
            other.close()

    def test_close_is_idempotent(self, udp_socket: UDPSocket):
        """Test that repeated close() reaches the OS only once."""
        mock = _install_mock(udp_socket)
        mock.shutdown.side_effect = OSError(errno.ENOTCONN, "not connected")

        udp_socket.close()
        udp_socket.close()
        udp_socket.close()

        mock.shutdown.assert_called_once()
        mock.close.assert_called_once()
        assert udp_socket.is_closed

    def test_close_failure_invalidates_handle(self, udp_socket: UDPSocket):
        """Test that the handle is invalid even when close fails."""
        mock = _install_mock(udp_socket)
        mock.close.side_effect = OSError("close failed")

        with pytest.raises(SocketCloseError):
            udp_socket.close()
        assert udp_socket.is_closed

    def test_shutdown_failure_reported_after_close(self, udp_socket: UDPSocket):
        """Test that a shutdown error is raised only after close ran."""
        mock = _install_mock(udp_socket)
        mock.shutdown.side_effect = OSError(errno.EBADF, "bad descriptor")

        with pytest.raises(SocketShutdownError):
            udp_socket.close()
        mock.close.assert_called_once()

    def test_context_manager_opens_and_closes(self):
        """Test that the context manager opens on entry and closes on exit."""
        with UDPSocket() as sock:
            assert not sock.is_closed
        assert sock.is_closed


class TestSendRecv:
    """Tests for datagram exchange."""

    def test_send_and_recv_identify_sender(self, udp_socket: UDPSocket):
        """Test that recv returns the payload size and the sender address."""
        with UDPSocket() as sender:
            sender.bind_any()
            sent = sender.send(b"battery?", IPv4Address.loopback(udp_socket.self_address.port))

            buffer = bytearray(b"stale contents")
            udp_socket.set_recv_timeout(1000)
            count, origin = udp_socket.recv(buffer)

            assert sent == count == len(b"battery?")
            assert bytes(buffer) == b"battery?"
            assert origin == IPv4Address.loopback(sender.self_address.port)

    def test_recv_timeout_empties_buffer(self, udp_socket: UDPSocket):
        """Test that a timeout is flagged and leaves the buffer empty."""
        buffer = bytearray(b"previous")
        udp_socket.set_recv_timeout(SHORT_TIMEOUT_MS)

        with pytest.raises(SocketRecvError) as exc_info:
            udp_socket.recv(buffer)

        assert exc_info.value.timed_out
        assert exc_info.value.status == SocketStatus.RECV_ERROR
        assert buffer == bytearray()

    def test_recv_error_empties_buffer(self, udp_socket: UDPSocket):
        """Test that a non-timeout error leaves the buffer empty."""
        mock = _install_mock(udp_socket)
        mock.recvfrom.side_effect = OSError("boom")
        buffer = bytearray(b"previous")

        with pytest.raises(SocketRecvError) as exc_info:
            udp_socket.recv(buffer)

        assert not exc_info.value.timed_out
        assert buffer == bytearray()

    def test_operations_on_closed_socket_raise(self):
        """Test that I/O on a closed socket raises the mapped errors."""
        sock = UDPSocket()
        with pytest.raises(SocketSendError):
            sock.send(b"x", IPv4Address.loopback(9))
        with pytest.raises(SocketRecvError):
            sock.recv(bytearray())


class TestDrain:
    """Tests for discarding queued datagrams."""

    def test_drain_discards_queue(self, udp_socket: UDPSocket):
        """Test that queued datagrams are discarded and counted."""
        target = IPv4Address.loopback(udp_socket.self_address.port)
        with UDPSocket() as sender:
            sender.send(b"ok", target)
            sender.send(b"ok", target)
            discarded: list[int] = []
            assert wait_for(lambda: discarded.append(udp_socket.drain()) or sum(discarded) == 2)

        udp_socket.set_recv_timeout(SHORT_TIMEOUT_MS)
        with pytest.raises(SocketRecvError):
            udp_socket.recv(bytearray())

    def test_drain_empty_queue(self, udp_socket: UDPSocket):
        """Test that draining an empty queue returns 0 even with no timeout set."""
        assert udp_socket.recv_timeout_ms == NO_TIMEOUT
        assert udp_socket.drain() == 0

    def test_drain_closed_socket_raises(self):
        """Test that draining a closed socket raises SocketRecvError."""
        with pytest.raises(SocketRecvError):
            UDPSocket().drain()


class TestRecvTimeout:
    """Tests for receive timeout caching."""

    def test_fresh_socket_blocks_forever(self, udp_socket: UDPSocket):
        """Test that a new descriptor has no receive timeout."""
        assert udp_socket.recv_timeout_ms == NO_TIMEOUT

    def test_unchanged_value_makes_no_call(self, udp_socket: UDPSocket):
        """Test that repeating a timeout value makes no system call."""
        mock = _install_mock(udp_socket)

        udp_socket.set_recv_timeout(250)
        udp_socket.set_recv_timeout(250)
        udp_socket.set_recv_timeout(250)

        mock.settimeout.assert_called_once_with(0.25)
        assert udp_socket.recv_timeout_ms == 250

    def test_zero_means_block_forever(self, udp_socket: UDPSocket):
        """Test that 0 maps to a blocking socket."""
        mock = _install_mock(udp_socket)

        udp_socket.set_recv_timeout(100)
        udp_socket.set_recv_timeout(NO_TIMEOUT)

        assert mock.settimeout.call_args_list[-1].args == (None,)

    def test_reopen_resets_cache(self, udp_socket: UDPSocket):
        """Test that reopening forgets the cached timeout."""
        udp_socket.set_recv_timeout(100)
        udp_socket.open()
        assert udp_socket.recv_timeout_ms == NO_TIMEOUT


class TestInterrupt:
    """Tests for self-interrupt."""

    def test_interrupt_releases_blocked_recv(self, udp_socket: UDPSocket):
        """Test that interrupt() wakes a receive blocked in another thread."""
        received: list[int] = []

        def _block() -> None:
            count, _ = udp_socket.recv(bytearray())
            received.append(count)

        thread = threading.Thread(target=_block, daemon=True)
        thread.start()
        udp_socket.interrupt()
        thread.join(2.0)

        assert not thread.is_alive()
        assert received == [0]

    def test_interrupt_targets_loopback_for_wildcard_bind(self, udp_socket: UDPSocket):
        """Test that a wildcard-bound socket wakes itself through loopback."""
        port = udp_socket.self_address.port
        with patch.object(udp_socket, "send", return_value=0) as mock_send:
            udp_socket.interrupt()
        mock_send.assert_called_once_with(b"", IPv4Address.loopback(port))
