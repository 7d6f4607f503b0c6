"""UDP command/telemetry client for Tello drones (SDK 2.0)."""

__version__ = "0.1.0"
