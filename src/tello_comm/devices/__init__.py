"""Device layer: the Tello client and its command groups."""

from tello_comm.devices.mission_pad import DetectDirection, MissionPadAPI
from tello_comm.devices.tello import ConnectionState, Tello

__all__ = [
    "ConnectionState",
    "DetectDirection",
    "MissionPadAPI",
    "Tello",
]
