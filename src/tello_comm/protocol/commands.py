"""Command channel tokens and the generic command template renderer."""

from __future__ import annotations

from enum import Enum

# Handshake token that puts the drone into SDK mode
HANDSHAKE_COMMAND = "command"
# Literal acknowledgement for successful commands and actions
OK_RESPONSE = "ok"

BATTERY_QUERY = "battery?"
LAND_ACTION = "land"
STREAM_OFF_COMMAND = "streamoff"


def format_argument(value: object) -> str:
    """Render one template argument the way the drone expects it.

    Integral floats drop the decimal point (``50.0`` -> ``50``), other floats
    use the shortest round-trip form, and enums render as their value.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_command(template: str, *args: object) -> str:
    """Fill ``{}`` placeholders in ``template`` with rendered arguments.

    Example:
        >>> format_command("go {} {} {} {} m{}", 50.0, 0, 20.5, 30, 1)
        'go 50 0 20.5 30 m1'
    """
    if not args:
        return template
    return template.format(*(format_argument(a) for a in args))
