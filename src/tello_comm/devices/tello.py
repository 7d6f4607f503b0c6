"""Tello client: connection lifecycle, request correlation, and telemetry.

The client owns two channels. The command channel (SyncChannel) carries one
request at a time: ``_request_lock`` spans the send and the wait for the
reply, so the next datagram received on the command socket belongs to the
request that holds the lock. Replies still queued from earlier, timed-out
requests are dropped before each send. The telemetry channel (AsyncChannel)
runs a listener thread that folds each state record into the latest
TelloState snapshot under ``_telemetry_lock``.

Lock order: ``_request_lock`` and ``_telemetry_lock`` are never nested.
``_state_lock`` only guards the connection state and is never held across I/O.
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from types import TracebackType
from typing import Self

from tello_comm.const import (
    BATTERY_CRITICAL_PERCENT,
    BATTERY_LOW_PERCENT,
    TELLO_COMMAND_PORT,
    TELLO_DATA_PORT,
    TELLO_IP,
    TELLO_LOCAL_PORT,
)
from tello_comm.correlation import correlation_context
from tello_comm.devices.mission_pad import MissionPadAPI
from tello_comm.instrumentation import measure_time, timed
from tello_comm.logging_abstraction import get_logger
from tello_comm.metrics import registry
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
from tello_comm.protocol.telemetry import TelloState, decode_state, parse_float
from tello_comm.transport.address import IPv4Address
from tello_comm.transport.channels import AsyncChannel, SyncChannel
from tello_comm.transport.exceptions import HandshakeError, RequestTransportError, UDPSocketError
from tello_comm.transport.retry_policy import RetryPolicy, TimeoutConfig
from tello_comm.transport.types import RequestResult

logger = get_logger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Tello:
    """Client for one Tello drone on the local network.

    Usage::

        with Tello() as tello:
            if tello.connect():
                tello.execute_action("takeoff")
                print(tello.state().battery)

    Command, action, and query methods never raise on protocol failures.
    They return False / "" / 0.0 and keep the cause in ``last_error``.
    ``last_error`` reflects the most recent request from any thread; callers
    sharing one client should read ``RequestResult.error`` from send_request().
    """

    lp: str = "Tello:"

    def __init__(
        self,
        command_port: int = TELLO_COMMAND_PORT,
        data_port: int = TELLO_DATA_PORT,
        local_port: int = TELLO_LOCAL_PORT,
        timeout_config: TimeoutConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Open both channels and start the telemetry listener.

        Args:
            command_port: Drone command port requests are sent to
            data_port: Local port the drone pushes state records to
            local_port: Local port the command channel binds
            timeout_config: Request deadlines (defaults to TimeoutConfig())
            retry_policy: Handshake retry schedule (defaults to RetryPolicy())

        Raises:
            UDPSocketError: If either channel cannot be opened or bound

        """
        self.command_port: int = command_port
        self.timeout_config: TimeoutConfig = timeout_config or TimeoutConfig()
        self.retry_policy: RetryPolicy = retry_policy or RetryPolicy()
        self.ip_address: str = TELLO_IP
        self._target: IPv4Address = IPv4Address.from_string(TELLO_IP, command_port)

        self._connection_state: ConnectionState = ConnectionState.DISCONNECTED
        self._state_lock: threading.Lock = threading.Lock()
        self._request_lock: threading.Lock = threading.Lock()
        self._telemetry_lock: threading.Lock = threading.Lock()
        self._telemetry: TelloState = TelloState()
        self._closed: bool = False
        self.last_error: TelloProtocolError | None = None

        self.command_channel: SyncChannel = SyncChannel(local_port)
        try:
            self.telemetry_channel: AsyncChannel = AsyncChannel(data_port, self._on_telemetry)
        except UDPSocketError:
            self.command_channel.close()
            raise

        self.mission_pad: MissionPadAPI = MissionPadAPI(self)
        registry.record_connection_state(self._connection_state.value)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    @property
    def connection_state(self) -> ConnectionState:
        with self._state_lock:
            return self._connection_state

    def _set_connection_state(self, state: ConnectionState) -> None:
        with self._state_lock:
            self._connection_state = state
        registry.record_connection_state(state.value)

    def is_connected(self) -> bool:
        return self.connection_state is ConnectionState.CONNECTED

    @timed("tello_connect")
    def connect(self, ip_address: str = TELLO_IP) -> bool:
        """Handshake with the drone and check its battery.

        Sends the handshake up to ``retry_policy.max_attempts`` times, waiting
        ``retry_policy.get_delay()`` between attempts. A battery level below
        the critical floor leaves the client disconnected; a level below the
        low threshold only logs a warning.

        Args:
            ip_address: Drone address in dotted-quad form

        Returns:
            True if the client ends up Connected

        """
        self.ip_address = ip_address
        self._target = IPv4Address.from_string(ip_address, self.command_port)
        logger.info("%s Connecting to %s", self.lp, self._target, extra={"target": str(self._target)})
        self._set_connection_state(ConnectionState.CONNECTING)

        attempts = self.retry_policy.max_attempts
        for attempt in range(attempts):
            result = self._request(
                HANDSHAKE_COMMAND,
                self.timeout_config.command_timeout_ms,
                kind="handshake",
                expect=OK_RESPONSE,
                silent=True,
                require_connected=False,
            )
            if result.success:
                registry.record_handshake("success")
                break

            registry.record_handshake("failed")
            if self.retry_policy.should_retry(attempt):
                reason = result.error.reason if isinstance(result.error, RequestError) else str(result.error)
                logger.warning(
                    "%s Tello not found: %s. Retrying (%d/%d)...",
                    self.lp,
                    reason,
                    attempt + 1,
                    attempts,
                    extra={"attempt": attempt + 1, "correlation_id": result.correlation_id},
                )
                time.sleep(self.retry_policy.get_delay(attempt))
        else:
            self.last_error = HandshakeError("no acknowledgement", attempts)
            logger.error(
                "%s Failed to connect to the Tello after %d attempts. Please check the connection.",
                self.lp,
                attempts,
            )
            self._set_connection_state(ConnectionState.DISCONNECTED)
            return False

        battery = parse_float(self._get_value(BATTERY_QUERY, silent=False, require_connected=False))
        logger.info("%s Connected: battery level %.0f%%", self.lp, battery, extra={"battery": battery})

        if battery < BATTERY_CRITICAL_PERCENT:
            self.last_error = UnsafeBatteryError(battery, BATTERY_CRITICAL_PERCENT)
            logger.error(
                "%s Battery level is below %.0f%%! Do not fly!",
                self.lp,
                BATTERY_CRITICAL_PERCENT,
                extra={"battery": battery},
            )
            self._set_connection_state(ConnectionState.DISCONNECTED)
            return False

        if battery < BATTERY_LOW_PERCENT:
            logger.warning(
                "%s Battery level is below %.0f%%, consider landing soon",
                self.lp,
                BATTERY_LOW_PERCENT,
                extra={"battery": battery},
            )

        self._set_connection_state(ConnectionState.CONNECTED)
        return True

    def close(self) -> None:
        """Land (if connected), stop the video stream, and release both channels.

        Safe to call more than once. The land action uses the action timeout,
        which by default waits forever.
        """
        if self._closed:
            return
        self._closed = True

        if self.is_connected():
            self._request(
                LAND_ACTION,
                self.timeout_config.action_timeout_ms,
                kind="action",
                expect=OK_RESPONSE,
                silent=True,
            )
            self._request(
                STREAM_OFF_COMMAND,
                self.timeout_config.command_timeout_ms,
                kind="command",
                expect=OK_RESPONSE,
                silent=True,
            )
        self._set_connection_state(ConnectionState.DISCONNECTED)

        for channel in (self.telemetry_channel, self.command_channel):
            try:
                channel.close()
            except UDPSocketError as e:
                logger.warning("%s Error closing %r: %s", self.lp, channel, e)

        logger.debug("%s Closed", self.lp)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def send_request(self, command: str, timeout_ms: int, silent: bool = False) -> RequestResult:
        """Send ``command`` and wait up to ``timeout_ms`` (0 = forever) for its reply.

        The reply is not checked against any token; see execute_command() for that.
        """
        return self._request(command, timeout_ms, kind="query", silent=silent)

    def _request(
        self,
        command: str,
        timeout_ms: int,
        *,
        kind: str,
        expect: str | None = None,
        silent: bool = False,
        require_connected: bool = True,
    ) -> RequestResult:
        """Run one request under the request lock.

        ``require_connected=False`` lets the handshake and battery check run
        while the client is still Connecting.
        """
        with correlation_context() as correlation_id:
            start = time.perf_counter()
            error: RequestError | None = None
            response = ""

            state = self.connection_state
            if require_connected and state is not ConnectionState.CONNECTED:
                error = NotConnectedError(command, state.value)
            else:
                if not silent:
                    logger.debug(
                        "%s → Sending '%s'",
                        self.lp,
                        command,
                        extra={"kind": kind, "timeout": TimeoutConfig.describe(timeout_ms)},
                    )
                wait_start = time.perf_counter()
                with self._request_lock:
                    registry.record_request_lock_wait(time.perf_counter() - wait_start)
                    # Late replies to timed-out requests must not answer this one
                    stale = self.command_channel.drain()
                    if stale:
                        logger.debug(
                            "%s Dropped %d stale repl%s before '%s'",
                            self.lp,
                            stale,
                            "y" if stale == 1 else "ies",
                            command,
                            extra={"stale": stale},
                        )
                    error, response = self._exchange(command, timeout_ms, expect)
                    self.last_error = error

            if isinstance(error, NotConnectedError):
                self.last_error = error

            elapsed_ms = measure_time(start)
            registry.record_request_latency(kind, elapsed_ms / 1000)
            registry.record_request(kind, "success" if error is None else _outcome(error))

            if error is not None:
                if not silent:
                    logger.error("%s %s", self.lp, error, extra={"kind": kind, "elapsed_ms": round(elapsed_ms, 2)})
                return RequestResult(command, False, response, error, correlation_id, elapsed_ms)

            if not silent:
                logger.debug(
                    "%s ← '%s' in %.1fms",
                    self.lp,
                    response,
                    elapsed_ms,
                    extra={"kind": kind},
                )
            return RequestResult(command, True, response, None, correlation_id, elapsed_ms)

    def _exchange(self, command: str, timeout_ms: int, expect: str | None) -> tuple[RequestError | None, str]:
        """Send and wait for the reply. Caller holds ``_request_lock``."""
        if not self.command_channel.send(self._target, command.encode()):
            return RequestTransportError(command), ""
        reply = self.command_channel.receive(timeout_ms)
        if reply is None:
            return RequestTimeoutError(command, timeout_ms), ""
        response = reply.decode(errors="replace").strip()
        if expect is not None and response != expect:
            return ProtocolMismatchError(command, response, expect), response
        return None, response

    def execute_action(
        self,
        template: str,
        *args: object,
        timeout_ms: int | None = None,
        silent: bool = False,
    ) -> bool:
        """Send a flight action and wait for ``ok`` (action timeout unless given)."""
        command = format_command(template, *args)
        if timeout_ms is None:
            timeout_ms = self.timeout_config.action_timeout_ms
        return self._request(
            command,
            timeout_ms,
            kind="action",
            expect=OK_RESPONSE,
            silent=silent,
        ).success

    def execute_command(
        self,
        template: str,
        *args: object,
        timeout_ms: int | None = None,
        silent: bool = False,
    ) -> bool:
        """Send a setting command and wait for ``ok`` (command timeout unless given)."""
        command = format_command(template, *args)
        if timeout_ms is None:
            timeout_ms = self.timeout_config.command_timeout_ms
        return self._request(
            command,
            timeout_ms,
            kind="command",
            expect=OK_RESPONSE,
            silent=silent,
        ).success

    def execute_manual_command(self, command: str, timeout_ms: int | None = None) -> bool:
        """Send raw command text and expect ``ok`` (command timeout unless given)."""
        if timeout_ms is None:
            timeout_ms = self.timeout_config.command_timeout_ms
        return self._request(command, timeout_ms, kind="command", expect=OK_RESPONSE).success

    def _get_value(self, command: str, *, silent: bool, require_connected: bool = True) -> str:
        result = self._request(
            command,
            self.timeout_config.command_timeout_ms,
            kind="query",
            silent=silent,
            require_connected=require_connected,
        )
        return result.response if result.success else ""

    def get_value(self, command: str, silent: bool = False) -> str:
        """Send a query and return the reply text, or "" on failure."""
        return self._get_value(command, silent=silent)

    def get_manual_response(self, command: str) -> str:
        """Send raw query text and return the reply text, or "" on failure."""
        return self._get_value(command, silent=False)

    def get_float(self, command: str, silent: bool = False) -> float:
        """Send a query and parse the reply as a float (0.0 on failure)."""
        return parse_float(self.get_value(command, silent=silent))

    def get_battery_level(self) -> float:
        return self.get_float(BATTERY_QUERY)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_command_timeout(self, timeout_ms: int) -> None:
        self.timeout_config = TimeoutConfig(timeout_ms, self.timeout_config.action_timeout_ms)

    def set_action_timeout(self, timeout_ms: int) -> None:
        self.timeout_config = TimeoutConfig(self.timeout_config.command_timeout_ms, timeout_ms)

    @staticmethod
    def sleep(milliseconds: int) -> None:
        time.sleep(milliseconds / 1000)

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def state(self) -> TelloState:
        """Return the latest telemetry snapshot (all zeros before the first record)."""
        with self._telemetry_lock:
            return self._telemetry

    def _on_telemetry(self, payload: bytes) -> None:
        record = payload.decode(errors="replace")
        with self._telemetry_lock:
            self._telemetry = decode_state(record, self._telemetry)
        registry.record_telemetry_record()

    def __repr__(self) -> str:
        """String representation."""
        return f"Tello({self._target}, {self.connection_state.value})"


def _outcome(error: RequestError) -> str:
    if isinstance(error, NotConnectedError):
        return "not_connected"
    if isinstance(error, RequestTimeoutError):
        return "timeout"
    if isinstance(error, ProtocolMismatchError):
        return "mismatch"
    return "send_error"
