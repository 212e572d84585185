"""ConnectionManager: owns the transport and the Disconnected/Connecting/Connected state machine."""

import logging
import threading
from typing import Callable, Protocol

from .config import PanelConfig
from .errors import ConnectError, ModbusIOError
from .transport import ModbusTransport
from .types import ConnectionState, Endpoint

logger = logging.getLogger(__name__)

StateListener = Callable[[ConnectionState], None]
TransportFactory = Callable[[Endpoint, PanelConfig], ModbusTransport]


class Cadence(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


def default_transport_factory(endpoint: Endpoint, config: PanelConfig) -> ModbusTransport:
    return ModbusTransport(endpoint, unit_id=config.unit_id, timeout=config.timeout, retries=config.retries)


class ConnectionManager:
    """
    Single owner of the device connection.

    All transport access goes through ``lock`` (re-entrant), so a poll tick, an
    operator write and a close can never run against the socket at the same time.
    The polling cadence is started on connect and stopped before the transport
    is torn down.
    """

    def __init__(
        self,
        config: PanelConfig | None = None,
        transport_factory: TransportFactory = default_transport_factory,
    ) -> None:
        self._config = config if config is not None else PanelConfig()
        self._transport_factory = transport_factory
        self._transport: ModbusTransport | None = None
        self._endpoint: Endpoint | None = None
        self._state = ConnectionState.DISCONNECTED
        self._cadence: Cadence | None = None
        self._listeners: list[StateListener] = []
        self.lock = threading.RLock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED and self._transport is not None

    @property
    def endpoint(self) -> Endpoint | None:
        return self._endpoint

    @property
    def transport(self) -> ModbusTransport:
        """The open transport; raises ModbusIOError when disconnected."""
        if self._transport is None:
            raise ModbusIOError("Not connected")
        return self._transport

    def attach_cadence(self, cadence: Cadence) -> None:
        self._cadence = cadence

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with the new state on every transition."""
        self._listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.debug("Connection state %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def connect(self, endpoint: Endpoint) -> None:
        """
        Open a connection to ``endpoint`` and start polling.

        Any connection already open is closed first. On failure the manager is
        left Disconnected and ConnectError is raised.
        """
        if self._state != ConnectionState.DISCONNECTED or self._transport is not None:
            self.disconnect()

        with self.lock:
            self._set_state(ConnectionState.CONNECTING)
            transport = self._transport_factory(endpoint, self._config)
            try:
                transport.connect()
            except ModbusIOError as e:
                self._set_state(ConnectionState.DISCONNECTED)
                raise ConnectError(endpoint, f"Failed to connect to {endpoint}: {e}", cause=e) from e
            self._transport = transport
            self._endpoint = endpoint
            self._set_state(ConnectionState.CONNECTED)
        logger.info("Connected to %s", endpoint)

        if self._cadence is not None:
            self._cadence.start()

    def owns(self, transport: ModbusTransport) -> bool:
        """True while ``transport`` is the open connection's transport."""
        return transport is not None and self._transport is transport

    def disconnect(self, expected: ModbusTransport | None = None) -> BaseException | None:
        """
        Stop polling, close the transport and force the Disconnected state.

        Always succeeds. A failure while closing is logged and returned so the
        caller can report it; it never prevents the transition.

        With ``expected``, only that session is torn down: if a newer
        connection has replaced it in the meantime, nothing happens.
        """
        if expected is not None and not self.owns(expected):
            return None
        if self._cadence is not None:
            self._cadence.stop()

        close_error: BaseException | None = None
        with self.lock:
            if expected is not None and not self.owns(expected):
                logger.debug("Session already replaced, not disconnecting")
                return None
            transport, self._transport = self._transport, None
            endpoint, self._endpoint = self._endpoint, None
            if transport is not None:
                try:
                    transport.close()
                except Exception as e:
                    logger.warning("Error closing Modbus connection to %s: %s", endpoint, e)
                    close_error = e
            self._set_state(ConnectionState.DISCONNECTED)
        if endpoint is not None:
            logger.info("Disconnected from %s", endpoint)
        return close_error
