"""IPv4 endpoint value type used by the datagram socket layer."""

from __future__ import annotations

import socket
from dataclasses import dataclass

_MAX_OCTET = 255
_MAX_PORT = 65535


@dataclass(frozen=True, order=True, slots=True)
class IPv4Address:
    """Immutable IPv4 endpoint: four octets plus a port.

    Equality, ordering and hashing cover the full (octets, port) tuple, so
    two endpoints that differ only by port are distinct dictionary keys.

    Attributes:
        octets: Address octets in network order, e.g. (192, 168, 10, 1)
        port: UDP port number

    """

    octets: tuple[int, int, int, int] = (0, 0, 0, 0)
    port: int = 0

    def __post_init__(self) -> None:
        """Validate octet and port ranges."""
        if len(self.octets) != 4 or any(not 0 <= o <= _MAX_OCTET for o in self.octets):
            msg = f"Invalid IPv4 octets: {self.octets!r}"
            raise ValueError(msg)
        if not 0 <= self.port <= _MAX_PORT:
            msg = f"Invalid port: {self.port}"
            raise ValueError(msg)

    @classmethod
    def from_string(cls, host: str, port: int) -> IPv4Address:
        """Build from dotted-quad text and a port.

        Text that is not a valid dotted quad yields the all-zero address with
        port 0, which any later send rejects.
        """
        try:
            packed = socket.inet_pton(socket.AF_INET, host)
        except OSError:
            return cls()
        return cls(octets=(packed[0], packed[1], packed[2], packed[3]), port=port)

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple[str, int]) -> IPv4Address:
        """Build from the ``(host, port)`` tuple returned by recvfrom/getsockname."""
        host, port = sockaddr[0], sockaddr[1]
        packed = socket.inet_aton(host)
        return cls(octets=(packed[0], packed[1], packed[2], packed[3]), port=port)

    @classmethod
    def any(cls, port: int = 0) -> IPv4Address:
        """Wildcard address (INADDR_ANY)."""
        return cls(octets=(0, 0, 0, 0), port=port)

    @classmethod
    def loopback(cls, port: int = 0) -> IPv4Address:
        """Loopback address (INADDR_LOOPBACK)."""
        return cls(octets=(127, 0, 0, 1), port=port)

    @classmethod
    def broadcast(cls, port: int = 0) -> IPv4Address:
        """Limited broadcast address (INADDR_BROADCAST)."""
        return cls(octets=(255, 255, 255, 255), port=port)

    @property
    def host(self) -> str:
        """Dotted-quad text without the port."""
        return ".".join(str(o) for o in self.octets)

    @property
    def is_any(self) -> bool:
        """True for the wildcard address."""
        return self.octets == (0, 0, 0, 0)

    def to_sockaddr(self) -> tuple[str, int]:
        """Convert to the ``(host, port)`` tuple accepted by socket calls."""
        return (self.host, self.port)

    def __getitem__(self, index: int) -> int:
        """Return one octet."""
        return self.octets[index]

    def __str__(self) -> str:
        """Return ``a.b.c.d:port``."""
        return f"{self.host}:{self.port}"
