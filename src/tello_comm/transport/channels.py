"""Command and telemetry channels built on UDPSocket.

SyncChannel is the request/response side: send, then block for one reply.
AsyncChannel owns a listener thread that pushes every datagram to a callback
until it is stopped by a self-addressed wake-up datagram.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from tello_comm.correlation import ensure_correlation_id
from tello_comm.metrics import registry
from tello_comm.transport.address import IPv4Address
from tello_comm.transport.exceptions import SocketRecvError, UDPSocketError
from tello_comm.transport.socket_abstraction import UDPSocket

logger = logging.getLogger(__name__)

_LISTENER_JOIN_TIMEOUT_SECONDS = 2.0

TelemetryCallback = Callable[[bytes], None]


def _open_bound_socket(port: int, owner: str) -> UDPSocket:
    sock = UDPSocket()
    try:
        sock.open()
    except UDPSocketError:
        logger.exception("%s: socket.open() failed", owner)
        raise
    try:
        sock.bind_port(port)
    except UDPSocketError:
        logger.exception("%s: socket.bind() failed. Port %d may be in use.", owner, port, extra={"port": port})
        sock.close()
        raise
    return sock


class SyncChannel:
    """Request/response datagram channel.

    Its I/O methods never raise; failures come back as False/None/0 and are
    logged at debug level for the caller to report.
    """

    def __init__(self, local_port: int = 0) -> None:
        """Open and bind the channel socket.

        Args:
            local_port: Local port to bind (0 picks an ephemeral port)

        Raises:
            UDPSocketError: If the socket cannot be opened or bound

        """
        self.socket: UDPSocket = _open_bound_socket(local_port, "SyncChannel")

    @property
    def local_address(self) -> IPv4Address:
        """Bound local address, including an OS-chosen port."""
        return self.socket.self_address

    def send(self, target: IPv4Address, payload: bytes) -> bool:
        """Send one datagram to ``target``."""
        try:
            self.socket.send(payload, target)
        except UDPSocketError as e:
            logger.debug("Send to %s failed: %s", target, e, extra={"target": str(target), "error": str(e)})
            registry.record_datagram_sent("command", "error")
            return False
        registry.record_datagram_sent("command", "success")
        return True

    def receive(self, timeout_ms: int) -> bytes | None:
        """Wait up to ``timeout_ms`` (0 = forever) for one datagram.

        Returns:
            Payload bytes, or None on timeout or socket error

        """
        buffer = bytearray()
        try:
            self.socket.set_recv_timeout(timeout_ms)
            self.socket.recv(buffer)
        except SocketRecvError as e:
            outcome = "timeout" if e.timed_out else "error"
            logger.debug("Receive failed: %s", e, extra={"outcome": outcome, "timeout_ms": timeout_ms})
            registry.record_datagram_recv("command", outcome)
            return None
        except UDPSocketError as e:
            logger.debug("Receive setup failed: %s", e, extra={"timeout_ms": timeout_ms})
            registry.record_datagram_recv("command", "error")
            return None
        registry.record_datagram_recv("command", "success")
        return bytes(buffer)

    def drain(self) -> int:
        """Drop replies that arrived after their request gave up waiting.

        Returns:
            Number of datagrams dropped (0 on socket error)

        """
        try:
            dropped = self.socket.drain()
        except UDPSocketError as e:
            logger.debug("Drain failed: %s", e)
            return 0
        for _ in range(dropped):
            registry.record_datagram_recv("command", "stale")
        return dropped

    def close(self) -> None:
        """Release the socket."""
        self.socket.close()

    def __repr__(self) -> str:
        """String representation."""
        return f"SyncChannel({self.socket.self_address})"


class AsyncChannel:
    """Datagram channel drained by a dedicated listener thread.

    The listener checks the stop signal before and after every blocking
    receive, so data delivered after ``stop()`` is never dispatched.
    Zero-length datagrams are wake-up sentinels and never reach the callback.
    """

    def __init__(self, port: int, callback: TelemetryCallback | None, autostart: bool = True) -> None:
        """Open and bind the channel socket, then start listening.

        Args:
            port: Local port to bind
            callback: Called from the listener thread with each payload
            autostart: Start the listener thread immediately

        Raises:
            UDPSocketError: If the socket cannot be opened or bound

        """
        self.port: int = port
        self.callback: TelemetryCallback | None = callback
        self.socket: UDPSocket = _open_bound_socket(port, "AsyncChannel")
        self._stop_event: threading.Event = threading.Event()
        self._listener: threading.Thread | None = None
        self._lifecycle_lock: threading.Lock = threading.Lock()
        if autostart:
            self.start()

    @property
    def local_address(self) -> IPv4Address:
        """Bound local address."""
        return self.socket.self_address

    @property
    def is_running(self) -> bool:
        """True while the listener thread is alive."""
        return self._listener is not None and self._listener.is_alive()

    def start(self) -> None:
        """Start the listener thread (no-op if already running)."""
        with self._lifecycle_lock:
            if self.is_running:
                return
            if self.socket.is_closed:
                msg = "AsyncChannel socket is closed"
                raise RuntimeError(msg)
            self._stop_event.clear()
            self._listener = threading.Thread(
                target=self._listen,
                name=f"tello-listener-{self.port}",
                daemon=True,
            )
            self._listener.start()
            logger.debug("Listener started on port %d", self.port, extra={"port": self.port})

    def stop(self) -> None:
        """Request stop, wake the blocked receive, and join the listener."""
        with self._lifecycle_lock:
            listener = self._listener
            if listener is None:
                return
            self._stop_event.set()
            try:
                self.socket.interrupt()
            except UDPSocketError as e:
                logger.warning("Failed to interrupt listener on port %d: %s", self.port, e)
            if listener is not threading.current_thread():
                listener.join(_LISTENER_JOIN_TIMEOUT_SECONDS)
                if listener.is_alive():
                    logger.warning("Listener on port %d did not exit in time", self.port)
            self._listener = None
            logger.debug("Listener stopped on port %d", self.port, extra={"port": self.port})

    def send(self, target: IPv4Address, payload: bytes) -> bool:
        """Send one datagram from the telemetry socket."""
        try:
            self.socket.send(payload, target)
        except UDPSocketError as e:
            logger.debug("Send to %s failed: %s", target, e)
            registry.record_datagram_sent("telemetry", "error")
            return False
        registry.record_datagram_sent("telemetry", "success")
        return True

    def close(self) -> None:
        """Stop the listener and release the socket."""
        self.stop()
        self.socket.close()

    def _listen(self) -> None:
        # One ID per listener run tags every log line from this thread
        ensure_correlation_id()
        buffer = bytearray()
        while not self._stop_event.is_set():
            try:
                self.socket.recv(buffer)
            except SocketRecvError as e:
                if self._stop_event.is_set() or self.socket.is_closed:
                    break
                logger.error("AsyncChannel: socket.recv() failed: %s", e, extra={"port": self.port})
                registry.record_listener_error(self.port, "recv")
                continue

            if self._stop_event.is_set():
                break

            if not buffer:
                logger.debug("Ignoring empty datagram on port %d", self.port)
                continue

            registry.record_datagram_recv("telemetry", "success")
            if self.callback is None:
                continue
            try:
                self.callback(bytes(buffer))
            except Exception:
                # A bad callback must not end the listener
                logger.exception("AsyncChannel: telemetry callback failed", extra={"port": self.port})
                registry.record_listener_error(self.port, "callback")

    def __repr__(self) -> str:
        """String representation."""
        status = "running" if self.is_running else "stopped"
        return f"AsyncChannel({self.socket.self_address}, {status})"
