"""UDP transport layer: endpoint type, socket abstraction, and channels."""

from tello_comm.transport.address import IPv4Address
from tello_comm.transport.channels import AsyncChannel, SyncChannel
from tello_comm.transport.exceptions import (
    GetSockNameError,
    HandshakeError,
    RequestTransportError,
    SetSockOptError,
    SocketBindError,
    SocketCloseError,
    SocketConnectError,
    SocketOpenError,
    SocketRecvError,
    SocketSendError,
    SocketShutdownError,
    SocketStatus,
    TransportError,
    UDPSocketError,
)
from tello_comm.transport.retry_policy import RetryPolicy, TimeoutConfig
from tello_comm.transport.socket_abstraction import UDPSocket
from tello_comm.transport.types import RequestResult

__all__ = [
    "AsyncChannel",
    "GetSockNameError",
    "HandshakeError",
    "IPv4Address",
    "RequestTransportError",
    "RequestResult",
    "RetryPolicy",
    "SetSockOptError",
    "SocketBindError",
    "SocketCloseError",
    "SocketConnectError",
    "SocketOpenError",
    "SocketRecvError",
    "SocketSendError",
    "SocketShutdownError",
    "SocketStatus",
    "SyncChannel",
    "TimeoutConfig",
    "TransportError",
    "UDPSocket",
    "UDPSocketError",
]
