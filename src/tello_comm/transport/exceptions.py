"""Custom exception types for UDP transport errors.

This module defines the exception hierarchy for socket and connection
failures, extending the protocol exceptions. Every socket failure carries a
SocketStatus code so callers that only want a numeric result can get one.
"""

from __future__ import annotations

from enum import IntEnum

from tello_comm.protocol.exceptions import RequestError, TelloProtocolError


class SocketStatus(IntEnum):
    """Result codes for datagram socket operations."""

    OK = 0
    SOCKET_ERROR = -1
    CLOSE_ERROR = -2
    SHUTDOWN_ERROR = -3
    BIND_ERROR = -4
    SET_SOCK_OPT_ERROR = -5
    GET_SOCK_NAME_ERROR = -6
    SEND_ERROR = -7
    RECV_ERROR = -8

    # Aliases share the value of the status they stand for
    OPEN_ERROR = -1
    CONNECT_ERROR = -4


class TransportError(TelloProtocolError):
    """Networking layer failure (socket open/bind/connect/send/receive).

    Attributes:
        reason: Specific failure reason

    """

    def __init__(self, reason: str) -> None:
        """Initialize transport error with reason."""
        self.reason: str = reason
        super().__init__(f"Transport error: {reason}")


class UDPSocketError(TransportError):
    """Datagram socket operation failed.

    Attributes:
        status: SocketStatus code for the failed operation

    """

    status: SocketStatus = SocketStatus.SOCKET_ERROR

    def __init__(self, reason: str) -> None:
        """Initialize socket error with reason."""
        super().__init__(f"{reason} (status: {self.status.name})")


class SocketOpenError(UDPSocketError):
    """Socket descriptor could not be created."""

    status = SocketStatus.OPEN_ERROR


class SocketCloseError(UDPSocketError):
    """Closing the socket descriptor failed."""

    status = SocketStatus.CLOSE_ERROR


class SocketShutdownError(UDPSocketError):
    """Shutting down the socket failed."""

    status = SocketStatus.SHUTDOWN_ERROR


class SocketBindError(UDPSocketError):
    """Binding to the local address failed (port may be in use)."""

    status = SocketStatus.BIND_ERROR


class SocketConnectError(UDPSocketError):
    """Fixing the default peer address failed."""

    status = SocketStatus.CONNECT_ERROR


class SetSockOptError(UDPSocketError):
    """Setting a socket option failed."""

    status = SocketStatus.SET_SOCK_OPT_ERROR


class GetSockNameError(UDPSocketError):
    """Reading back the bound address failed."""

    status = SocketStatus.GET_SOCK_NAME_ERROR


class SocketSendError(UDPSocketError):
    """Sending a datagram failed."""

    status = SocketStatus.SEND_ERROR


class SocketRecvError(UDPSocketError):
    """Receiving a datagram failed or timed out.

    Attributes:
        timed_out: True if the receive deadline expired

    """

    status = SocketStatus.RECV_ERROR

    def __init__(self, reason: str, timed_out: bool = False) -> None:
        """Initialize receive error, flagging deadline expiry separately."""
        self.timed_out: bool = timed_out
        super().__init__(reason)


class RequestTransportError(RequestError, TransportError):
    """The request datagram could not be sent on the command channel."""

    def __init__(self, command: str) -> None:
        """Initialize with the command that failed to send."""
        # Both bases chain to super().__init__, so set the fields directly
        self.command = command
        self.reason = "Socket error"
        TelloProtocolError.__init__(self, f"Failed to send command '{command}': Socket error")


class HandshakeError(TelloProtocolError):
    """Handshake failed (no acknowledgement after all attempts).

    Attributes:
        reason: Specific failure reason
        attempts: Number of handshake attempts made

    """

    def __init__(self, reason: str, attempts: int = 0) -> None:
        """Initialize handshake error with reason and attempt count."""
        self.reason: str = reason
        self.attempts: int = attempts
        super().__init__(f"Handshake failed: {reason} after {attempts} attempts")
