"""Result dataclasses for the command channel."""

from __future__ import annotations

from dataclasses import dataclass

from tello_comm.protocol.exceptions import TelloProtocolError


@dataclass(frozen=True)
class RequestResult:
    """Outcome of one send-then-wait request.

    Attributes:
        command: Command text as sent on the wire
        success: Whether a reply arrived (and matched, if a token was expected)
        response: Reply text, kept on mismatch for diagnostics ("" if none)
        error: Failure cause, None on success
        correlation_id: ID tagging every log line of this request
        elapsed_ms: Time from request start to reply or failure
    """

    command: str
    success: bool
    response: str = ""
    error: TelloProtocolError | None = None
    correlation_id: str = ""
    elapsed_ms: float = 0.0
