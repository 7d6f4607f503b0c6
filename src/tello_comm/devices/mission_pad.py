"""Mission pad (SDK 2.0) commands.

Pads are numbered 1-8. Flight commands end at a pad given as ``m<id>``;
detection must be enabled with enable_pad_detection() first.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tello_comm.devices.tello import Tello


class DetectDirection(IntEnum):
    """Which camera(s) look for mission pads."""

    DOWNWARD_ONLY = 0
    FORWARD_ONLY = 1
    BOTH = 2


class MissionPadAPI:
    """Mission pad commands. Only formats requests; the client does the I/O."""

    def __init__(self, tello: Tello) -> None:
        self.tello = tello

    def enable_pad_detection(self) -> bool:
        return self.tello.execute_command("mon")

    def disable_pad_detection(self) -> bool:
        return self.tello.execute_command("moff")

    def set_pad_detection_direction(self, direction: DetectDirection) -> bool:
        return self.tello.execute_command("mdirection {}", DetectDirection(direction))

    def fly_straight_to_pad(self, x: float, y: float, z: float, speed: float, mp_id: int) -> bool:
        """Fly to (x, y, z) in the coordinate frame of pad ``mp_id``."""
        return self.tello.execute_action("go {} {} {} {} m{}", x, y, z, speed, mp_id)

    def fly_arc_to_pad(
        self,
        start_x: float,
        start_y: float,
        start_z: float,
        end_x: float,
        end_y: float,
        end_z: float,
        speed_cmps: float,
        mp_id: int,
    ) -> bool:
        """Fly a curve through the start point to the end point, relative to pad ``mp_id``."""
        return self.tello.execute_action(
            "curve {} {} {} {} {} {} {} m{}",
            start_x,
            start_y,
            start_z,
            end_x,
            end_y,
            end_z,
            speed_cmps,
            mp_id,
        )

    def jump_to_next_pad(
        self,
        x: float,
        y: float,
        z: float,
        speed: float,
        yaw: float,
        mp_id1: int,
        mp_id2: int,
    ) -> bool:
        """Fly to (x, y, z) over pad ``mp_id1``, then find pad ``mp_id2`` and rotate to ``yaw``."""
        return self.tello.execute_action("jump {} {} {} {} {} m{} m{}", x, y, z, speed, yaw, mp_id1, mp_id2)
