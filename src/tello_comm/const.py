import os

from tello_comm import __version__

__all__ = [
    "BATTERY_CRITICAL_PERCENT",
    "BATTERY_LOW_PERCENT",
    "CONNECT_ATTEMPTS",
    "CONNECT_RETRY_DELAY_SECONDS",
    "NO_TIMEOUT",
    "RECV_BUFFER_SIZE",
    "TELLO_ACTION_TIMEOUT_MS",
    "TELLO_COMMAND_PORT",
    "TELLO_COMMAND_TIMEOUT_MS",
    "TELLO_DATA_PORT",
    "TELLO_DEBUG",
    "TELLO_IP",
    "TELLO_LOCAL_PORT",
    "TELLO_LOG_FORMAT",
    "TELLO_LOG_HUMAN_OUTPUT",
    "TELLO_LOG_JSON_FILE",
    "TELLO_METRICS_PORT",
    "TELLO_PERF_THRESHOLD_MS",
    "TELLO_PERF_TRACKING",
    "TELLO_VERSION",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
TELLO_VERSION: str = __version__


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Tello SDK 2.0 endpoints
TELLO_IP: str = os.environ.get("TELLO_IP", "192.168.10.1")
TELLO_COMMAND_PORT: int = _env_int("TELLO_COMMAND_PORT", 8889)
TELLO_DATA_PORT: int = _env_int("TELLO_DATA_PORT", 8890)
TELLO_LOCAL_PORT: int = _env_int("TELLO_LOCAL_PORT", 36085)

# 0 = wait forever
NO_TIMEOUT: int = 0
TELLO_COMMAND_TIMEOUT_MS: int = _env_int("TELLO_COMMAND_TIMEOUT_MS", 1000)
TELLO_ACTION_TIMEOUT_MS: int = _env_int("TELLO_ACTION_TIMEOUT_MS", NO_TIMEOUT)

# 1500 is the common MTU, 2048 leaves headroom
RECV_BUFFER_SIZE: int = 2048

CONNECT_ATTEMPTS: int = 10
CONNECT_RETRY_DELAY_SECONDS: float = 1.0
BATTERY_CRITICAL_PERCENT: float = 5.0
BATTERY_LOW_PERCENT: float = 10.0

TELLO_DEBUG = os.environ.get("TELLO_DEBUG", "0").casefold() in YES_ANSWER
TELLO_LOG_FORMAT: str = os.environ.get("TELLO_LOG_FORMAT", "human")  # "json", "human", or "both"
TELLO_LOG_JSON_FILE: str | None = os.environ.get("TELLO_LOG_JSON_FILE") or None
TELLO_LOG_HUMAN_OUTPUT: str = os.environ.get("TELLO_LOG_HUMAN_OUTPUT", "stdout")  # "stdout", "stderr", or file path

TELLO_PERF_TRACKING: bool = os.environ.get("TELLO_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("TELLO_PERF_THRESHOLD_MS", "100")
TELLO_PERF_THRESHOLD_MS: int = int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 100

TELLO_METRICS_PORT: int = _env_int("TELLO_METRICS_PORT", 9400)
