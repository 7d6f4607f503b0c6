"""Tello protocol package: command templates, telemetry codec, and errors.

Public API:
- Command tokens and format_command()
- TelloState and decode_state()
- Request error taxonomy
"""

from tello_comm.protocol.commands import (
    BATTERY_QUERY,
    HANDSHAKE_COMMAND,
    LAND_ACTION,
    OK_RESPONSE,
    STREAM_OFF_COMMAND,
    format_command,
)
from tello_comm.protocol.exceptions import (
    NotConnectedError,
    ProtocolMismatchError,
    RequestError,
    RequestTimeoutError,
    TelloProtocolError,
    UnsafeBatteryError,
)
from tello_comm.protocol.telemetry import TELEMETRY_FIELDS, TelloState, decode_state, parse_fields

__all__ = [
    # Command tokens
    "BATTERY_QUERY",
    "HANDSHAKE_COMMAND",
    "LAND_ACTION",
    "OK_RESPONSE",
    "STREAM_OFF_COMMAND",
    "format_command",
    # Telemetry
    "TELEMETRY_FIELDS",
    "TelloState",
    "decode_state",
    "parse_fields",
    # Errors
    "NotConnectedError",
    "ProtocolMismatchError",
    "RequestError",
    "RequestTimeoutError",
    "TelloProtocolError",
    "UnsafeBatteryError",
]
