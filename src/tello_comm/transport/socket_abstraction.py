"""Blocking UDP socket abstraction with sender identification and self-interrupt."""

from __future__ import annotations

import errno
import logging
import select
import socket
from types import TracebackType
from typing import Self

from tello_comm.const import NO_TIMEOUT, RECV_BUFFER_SIZE
from tello_comm.transport.address import IPv4Address
from tello_comm.transport.exceptions import (
    GetSockNameError,
    SetSockOptError,
    SocketBindError,
    SocketCloseError,
    SocketConnectError,
    SocketOpenError,
    SocketRecvError,
    SocketSendError,
    SocketShutdownError,
)

logger = logging.getLogger(__name__)


class UDPSocket:
    """IPv4 datagram socket.

    Every operation raises a UDPSocketError subclass on failure; callers that
    prefer boolean results wrap it (see transport.channels).

    The receive timeout is cached: ``set_recv_timeout`` only reaches the OS
    when the requested value differs from the last one applied.
    """

    def __init__(self) -> None:
        """Create an unopened socket."""
        self._sock: socket.socket | None = None
        self._self_addr: IPv4Address = IPv4Address()
        self._peer_addr: IPv4Address = IPv4Address()
        self._timeout_ms: int = NO_TIMEOUT

    def open(self) -> None:
        """Create the OS descriptor, closing any previous one first."""
        self.close()
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        except OSError as e:
            self._sock = None
            raise SocketOpenError(str(e)) from e
        # Fresh descriptors block forever until told otherwise
        self._timeout_ms = NO_TIMEOUT

    def close(self) -> None:
        """Shut down and close the descriptor.

        Idempotent: closing a closed socket makes no OS call. The handle is
        invalid afterwards even if shutdown or close fails.
        """
        if self._sock is None:
            return

        sock, self._sock = self._sock, None
        shutdown_error: OSError | None = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Unconnected datagram sockets report ENOTCONN on shutdown
            if e.errno != errno.ENOTCONN:
                shutdown_error = e

        try:
            sock.close()
        except OSError as e:
            raise SocketCloseError(str(e)) from e

        if shutdown_error is not None:
            raise SocketShutdownError(str(shutdown_error)) from shutdown_error

    @property
    def is_closed(self) -> bool:
        """True when there is no open descriptor."""
        return self._sock is None

    def _require_open(self) -> socket.socket:
        if self._sock is None:
            msg = "Socket is not open"
            raise OSError(errno.EBADF, msg)
        return self._sock

    def bind(self, address: IPv4Address) -> None:
        """Bind to ``address`` and read back the actually bound address.

        Reading back is what reveals an OS-chosen ephemeral port.
        """
        try:
            sock = self._require_open()
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as e:
            raise SetSockOptError(str(e)) from e

        try:
            sock.bind(address.to_sockaddr())
        except OSError as e:
            raise SocketBindError(f"{address}: {e}") from e

        try:
            self._self_addr = IPv4Address.from_sockaddr(sock.getsockname())
        except OSError as e:
            raise GetSockNameError(str(e)) from e

        logger.debug(
            "Bound UDP socket to %s",
            self._self_addr,
            extra={"requested": str(address), "bound": str(self._self_addr)},
        )

    def bind_port(self, port: int) -> None:
        """Bind to the wildcard address on ``port``."""
        self.bind(IPv4Address.any(port))

    def bind_any(self) -> int:
        """Bind to an ephemeral port and return the port number."""
        self.bind(IPv4Address.any(0))
        return self._self_addr.port

    def connect(self, address: IPv4Address) -> None:
        """Fix the default peer for later sends and filter receives to it."""
        try:
            self._require_open().connect(address.to_sockaddr())
        except OSError as e:
            raise SocketConnectError(f"{address}: {e}") from e
        self._peer_addr = address

    def connect_port(self, port: int) -> None:
        """Connect to ``port`` on loopback."""
        self.connect(IPv4Address.loopback(port))

    @property
    def self_address(self) -> IPv4Address:
        """Locally bound address (all zeros before bind)."""
        return self._self_addr

    @property
    def peer_address(self) -> IPv4Address:
        """Connected peer address (all zeros if never connected)."""
        return self._peer_addr

    def fileno(self) -> int:
        """Raw descriptor, or -1 when closed."""
        return -1 if self._sock is None else self._sock.fileno()

    def send(self, data: bytes, address: IPv4Address) -> int:
        """Send one datagram to ``address`` and return the byte count."""
        try:
            return self._require_open().sendto(data, address.to_sockaddr())
        except OSError as e:
            raise SocketSendError(f"{address}: {e}") from e

    def recv(self, buffer: bytearray) -> tuple[int, IPv4Address]:
        """Receive one datagram into ``buffer``.

        Blocks up to the configured receive timeout. On success the buffer
        holds exactly the received bytes; on error or timeout it is emptied.

        Returns:
            Tuple of (bytes received, sender address)

        """
        try:
            data, sender = self._require_open().recvfrom(RECV_BUFFER_SIZE)
        except TimeoutError as e:
            buffer.clear()
            raise SocketRecvError(f"timed out after {self._timeout_ms}ms", timed_out=True) from e
        except OSError as e:
            buffer.clear()
            raise SocketRecvError(str(e)) from e

        buffer[:] = data
        return len(data), IPv4Address.from_sockaddr(sender)

    def drain(self) -> int:
        """Discard every datagram already queued, without blocking.

        Returns:
            Number of datagrams discarded

        """
        discarded = 0
        try:
            sock = self._require_open()
            while select.select([sock], [], [], 0)[0]:
                sock.recvfrom(RECV_BUFFER_SIZE)
                discarded += 1
        except OSError as e:
            raise SocketRecvError(str(e)) from e
        return discarded

    def set_broadcast(self, enabled: bool) -> None:
        """Toggle SO_BROADCAST."""
        try:
            self._require_open().setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, int(enabled))
        except OSError as e:
            raise SetSockOptError(str(e)) from e

    def set_recv_timeout(self, timeout_ms: int) -> None:
        """Apply a receive timeout in milliseconds (0 blocks forever).

        No system call is made when the value is unchanged.
        """
        if timeout_ms == self._timeout_ms:
            return
        try:
            self._require_open().settimeout(None if timeout_ms <= NO_TIMEOUT else timeout_ms / 1000.0)
        except OSError as e:
            raise SetSockOptError(str(e)) from e
        self._timeout_ms = timeout_ms

    @property
    def recv_timeout_ms(self) -> int:
        """Receive timeout currently applied, in milliseconds."""
        return self._timeout_ms

    def interrupt(self) -> int:
        """Send an empty datagram to our own bound port.

        This is the only way to release a ``recv`` blocked in another thread.
        A socket bound to the wildcard address is reached through loopback.
        """
        target = self._self_addr
        if target.is_any:
            target = IPv4Address.loopback(target.port)
        return self.send(b"", target)

    def __enter__(self) -> Self:
        """Open the socket if needed."""
        if self.is_closed:
            self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the socket."""
        self.close()

    def __repr__(self) -> str:
        """String representation."""
        status = "closed" if self.is_closed else "open"
        return f"UDPSocket({self._self_addr}, {status})"
