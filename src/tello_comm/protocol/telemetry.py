"""Telemetry record decoding.

The drone pushes one text record per datagram, e.g.::

    mid:-1;x:0;y:0;z:0;mpry:0,0,0;pitch:0;roll:0;yaw:0;vgx:0;vgy:0;vgz:0;
    templ:83;temph:85;tof:10;h:0;bat:87;baro:45.39;time:0;agx:-2.00;...

Each recognized key is written to one slot of TelloState. New fields are
a change to TELEMETRY_FIELDS, not to the decoder.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ";"
KEY_VALUE_SEPARATOR = ":"


class FieldKind(Enum):
    """Numeric type of a telemetry slot."""

    INT = "int"
    UNSIGNED = "unsigned"
    FLOAT = "float"


class TelloState(BaseModel):
    """Latest decoded telemetry snapshot.

    Frozen: the listener replaces the whole snapshot, so a reference handed
    to a reader never changes underneath it.
    """

    model_config = ConfigDict(frozen=True)

    mp_id: int = 0
    mp_x: int = 0
    mp_y: int = 0
    mp_z: int = 0
    pitch: int = 0
    roll: int = 0
    yaw: int = 0
    vgx: int = 0
    vgy: int = 0
    vgz: int = 0
    templ: int = 0
    temph: int = 0
    height: int = 0
    h: int = 0
    battery: int = 0
    sea_height: float = 0.0
    time: int = 0
    agx: float = 0.0
    agy: float = 0.0
    agz: float = 0.0


# wire key -> (TelloState field, kind)
TELEMETRY_FIELDS: dict[str, tuple[str, FieldKind]] = {
    "mid": ("mp_id", FieldKind.INT),
    "x": ("mp_x", FieldKind.INT),
    "y": ("mp_y", FieldKind.INT),
    "z": ("mp_z", FieldKind.INT),
    "pitch": ("pitch", FieldKind.INT),
    "roll": ("roll", FieldKind.INT),
    "yaw": ("yaw", FieldKind.INT),
    "vgx": ("vgx", FieldKind.INT),
    "vgy": ("vgy", FieldKind.INT),
    "vgz": ("vgz", FieldKind.INT),
    "templ": ("templ", FieldKind.INT),
    "temph": ("temph", FieldKind.INT),
    "tof": ("height", FieldKind.UNSIGNED),
    "h": ("h", FieldKind.UNSIGNED),
    "bat": ("battery", FieldKind.UNSIGNED),
    "baro": ("sea_height", FieldKind.FLOAT),
    "time": ("time", FieldKind.INT),
    "agx": ("agx", FieldKind.FLOAT),
    "agy": ("agy", FieldKind.FLOAT),
    "agz": ("agz", FieldKind.FLOAT),
}


def parse_int(text: str) -> int:
    """Parse a signed integer, 0 if malformed."""
    # int() would also take digit separators such as "1_5"
    if "_" in text:
        return 0
    try:
        return int(text.strip())
    except ValueError:
        return 0


def parse_unsigned(text: str) -> int:
    """Parse a non-negative integer, 0 if malformed or negative."""
    value = parse_int(text)
    return value if value >= 0 else 0


def parse_float(text: str) -> float:
    """Parse a finite float, 0.0 if malformed (NaN and infinities included)."""
    if "_" in text:
        return 0.0
    try:
        value = float(text.strip())
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


_PARSERS = {
    FieldKind.INT: parse_int,
    FieldKind.UNSIGNED: parse_unsigned,
    FieldKind.FLOAT: parse_float,
}


def parse_fields(record: str) -> dict[str, int | float]:
    """Decode one record into a ``{field: value}`` update for TelloState.

    Tokens without a ``key:value`` shape and unknown keys are skipped. A
    malformed value for a known key becomes zero instead of dropping the
    record.
    """
    update: dict[str, int | float] = {}
    for token in record.split(FIELD_SEPARATOR):
        key, sep, value = token.partition(KEY_VALUE_SEPARATOR)
        if not sep:
            continue
        slot = TELEMETRY_FIELDS.get(key.strip())
        if slot is None:
            continue
        field_name, kind = slot
        update[field_name] = _PARSERS[kind](value)
    return update


def decode_state(record: str, previous: TelloState | None = None) -> TelloState:
    """Apply one telemetry record on top of ``previous``.

    Fields the record does not mention keep their previous values.
    """
    base = previous if previous is not None else TelloState()
    update = parse_fields(record)
    if not update:
        logger.debug("Telemetry record had no recognized fields", extra={"record": record[:64]})
        return base
    return base.model_copy(update=update)
