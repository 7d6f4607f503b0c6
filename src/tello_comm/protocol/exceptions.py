"""Custom exception types for Tello protocol errors.

Request failures are returned, not raised: the device client records one of
these instances on its RequestResult and on ``Tello.last_error`` so callers
can tell a timeout from a rejected command without parsing log text.
"""

from __future__ import annotations


class TelloProtocolError(Exception):
    """Base exception for all tello-comm errors.

    All protocol and transport exceptions inherit from this base class,
    enabling catch-all error handling when needed while maintaining
    specific exception types for detailed handling.
    """


class RequestError(TelloProtocolError):
    """A command channel request did not produce the expected reply.

    Attributes:
        command: Command text that was (or would have been) sent
        reason: Specific failure reason

    """

    def __init__(self, command: str, reason: str) -> None:
        """Initialize request error with the offending command and reason."""
        self.command: str = command
        self.reason: str = reason
        super().__init__(f"Failed to send command '{command}': {reason}")


class NotConnectedError(RequestError):
    """Request issued while the client is not in the Connected state.

    Attributes:
        state: Connection state when the request was refused

    """

    def __init__(self, command: str, state: str = "disconnected") -> None:
        """Initialize with the refused command and current state."""
        self.state: str = state
        super().__init__(command, f"Tello not connected (state: {state})")


class RequestTimeoutError(RequestError):
    """No reply arrived within the request deadline.

    Attributes:
        timeout_ms: Deadline that was exceeded (0 means unbounded)

    """

    def __init__(self, command: str, timeout_ms: int) -> None:
        """Initialize with the command and the exceeded deadline."""
        self.timeout_ms: int = timeout_ms
        super().__init__(command, f"Timeout waiting for response ({timeout_ms}ms)")


class ProtocolMismatchError(RequestError):
    """A reply arrived but was not the expected acknowledgement token.

    Attributes:
        expected: Expected reply text
        response: Reply text actually received, kept for diagnostics

    """

    def __init__(self, command: str, response: str, expected: str = "ok") -> None:
        """Initialize with the command, the reply, and the expected token."""
        self.expected: str = expected
        self.response: str = response
        super().__init__(command, f"Expected '{expected}', received '{response}'")


class UnsafeBatteryError(TelloProtocolError):
    """Battery level is below the hard safety floor; the drone must not fly.

    Attributes:
        battery: Reported battery percentage
        floor: Safety floor that was not met

    """

    def __init__(self, battery: float, floor: float) -> None:
        """Initialize with the reported battery level and the floor."""
        self.battery: float = battery
        self.floor: float = floor
        super().__init__(f"Battery level {battery:.0f}% is below {floor:.0f}%")
