"""Logging abstraction layer for tello-comm.

Handlers live on the top-level package logger ("tello_comm"), so module
loggers created with either get_logger() or logging.getLogger(__name__)
share one set of outputs. Every line carries the correlation ID of the
request (or listener thread) that emitted it.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from typing_extensions import override

from tello_comm.correlation import get_correlation_id, short_correlation_id

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "TelloLogger",
    "configure_handlers",
    "get_logger",
]


def _context(record: logging.LogRecord) -> Mapping[str, object] | None:
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping) and extra_data:
        return cast("Mapping[str, object]", extra_data)
    return None


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        context = _context(record)
        if context is not None:
            log_data["context"] = dict(context)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Console format: time, level, thread, location, short correlation ID."""

    def __init__(self) -> None:
        super().__init__(
            fmt=(
                "%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s %(module)s:%(lineno)d] "
                "[%(correlation_id)s] > %(message)s"
            ),
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = short_correlation_id()
        formatted = super().format(record)
        context = _context(record)
        if context is not None:
            formatted += " | " + " | ".join(f"{k}={v}" for k, v in context.items())
        return formatted


def _human_handler(human_output: str | None) -> logging.Handler:
    if human_output in (None, "stdout"):
        return logging.StreamHandler(sys.stdout)
    if human_output == "stderr":
        return logging.StreamHandler(sys.stderr)
    try:
        path = Path(human_output)
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError as e:
        print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
        return logging.StreamHandler(sys.stdout)


def configure_handlers(
    target: logging.Logger,
    log_format: str,
    json_file: str | Path | None,
    human_output: str | None,
) -> None:
    """Attach output handlers to ``target`` unless it already has some.

    Args:
        target: Logger to configure (normally the package logger)
        log_format: "json", "human", or "both"
        json_file: Path for JSON lines (JSON output is skipped without one)
        human_output: "stdout", "stderr", or a file path

    """
    if target.handlers:
        return

    from tello_comm.const import TELLO_DEBUG

    target.setLevel(logging.DEBUG if TELLO_DEBUG else logging.INFO)

    if log_format in ("json", "both") and json_file:
        try:
            json_path = Path(json_file)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(json_path, mode="a")
        except OSError as e:
            print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
        else:
            json_handler.setFormatter(JSONFormatter())
            target.addHandler(json_handler)

    if log_format in ("human", "both"):
        human_handler = _human_handler(human_output)
        human_handler.setFormatter(HumanReadableFormatter())
        target.addHandler(human_handler)


class TelloLogger:
    """Module logger that keeps ``extra`` context for both formatters.

    Context passed through ``extra`` is stored under ``extra_data`` rather
    than as record attributes, so keys never collide with LogRecord fields.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
    ) -> None:
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        package_logger = logging.getLogger(name.partition(".")[0])
        configure_handlers(package_logger, log_format, json_file, human_output)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        payload = {"extra_data": dict(extra)} if extra else None
        # stacklevel=3 so module/lineno point at the caller, not this wrapper
        self.logger.log(level, msg, *args, extra=payload, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at error level with the active exception's traceback."""
        payload = {"extra_data": dict(extra)} if extra else None
        self.logger.exception(msg, *args, extra=payload, stacklevel=2)


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> TelloLogger:
    """Create a TelloLogger, configuring package output from TELLO_LOG_* on first use.

    Args:
        name: Logger name (module ``__name__``)
        log_format: Override TELLO_LOG_FORMAT ("json", "human", or "both")
        json_file: Override TELLO_LOG_JSON_FILE
        human_output: Override TELLO_LOG_HUMAN_OUTPUT

    """
    from tello_comm.const import (
        TELLO_LOG_FORMAT,
        TELLO_LOG_HUMAN_OUTPUT,
        TELLO_LOG_JSON_FILE,
    )

    return TelloLogger(
        name=name,
        log_format=log_format or TELLO_LOG_FORMAT,
        json_file=json_file or TELLO_LOG_JSON_FILE,
        human_output=human_output or TELLO_LOG_HUMAN_OUTPUT,
    )
