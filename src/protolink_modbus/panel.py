"""ControlPanel: collaborator-facing API tying connection, polling and relay writes together."""

import logging
from typing import Any, Callable

from .config import DEFAULT_PORT, PanelConfig, parse_endpoint
from .connection import ConnectionManager, TransportFactory, default_transport_factory
from .coordinator import WriteCoordinator
from .display import PanelDisplay
from .errors import ModbusIOError, PollError
from .poller import PollingEngine, read_signal
from .registermap import RegisterMap, get_default_register_map
from .scheduler import TickScheduler
from .series import TimeSeriesBuffer
from .types import ConnectionState, DeviceSnapshot, Endpoint, ToggleCoil

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[DeviceSnapshot], None]


class ControlPanel:
    """
    Operates one Protolink device over Modbus TCP.

    connect() starts a 500 ms poll (configurable) on a background thread;
    each successful cycle updates ``display``, the channel histories and
    calls the on_snapshot callbacks from that thread. A failed cycle
    disconnects. set_coil()/handle() are the operator's relay commands.
    """

    def __init__(
        self,
        config: PanelConfig | None = None,
        register_map: RegisterMap | None = None,
        transport_factory: TransportFactory = default_transport_factory,
    ) -> None:
        self.config = config if config is not None else PanelConfig()
        self._register_map = register_map if register_map is not None else get_default_register_map()
        self.display = PanelDisplay()
        self._connection = ConnectionManager(self.config, transport_factory)
        self._coordinator = WriteCoordinator(self._connection, self.display, self._register_map)
        self._engine = PollingEngine(self._coordinator, self.display, self.config, self._register_map)
        self._scheduler = TickScheduler(self._tick, self.config.poll_interval)
        self._connection.attach_cadence(self._scheduler)
        self._connection.add_listener(self._on_state_change)
        self._snapshot_callbacks: list[SnapshotCallback] = []
        self._last_snapshot: DeviceSnapshot | None = None
        self.last_error: PollError | None = None

    # -- connection ---------------------------------------------------------

    def connect(self, host: str | None, port: str | int = DEFAULT_PORT) -> Endpoint:
        """Validate host/port (ConfigError), connect (ConnectError) and start polling."""
        endpoint = parse_endpoint(host, port)
        self.last_error = None
        self._connection.connect(endpoint)
        return endpoint

    def disconnect(self) -> BaseException | None:
        """Stop polling and close. Always ends Disconnected; returns a close error, if any."""
        return self._connection.disconnect()

    def connection_state(self) -> ConnectionState:
        return self._connection.state

    @property
    def endpoint(self) -> Endpoint | None:
        return self._connection.endpoint

    def _on_state_change(self, state: ConnectionState) -> None:
        if state == ConnectionState.DISCONNECTED:
            self.display.reset()
            self._last_snapshot = None

    # -- polling ------------------------------------------------------------

    def on_snapshot(self, callback: SnapshotCallback) -> SnapshotCallback:
        """Register a callback for every successful poll cycle (usable as a decorator)."""
        self._snapshot_callbacks.append(callback)
        return callback

    @property
    def last_snapshot(self) -> DeviceSnapshot | None:
        return self._last_snapshot

    def history(self, channel: int) -> TimeSeriesBuffer:
        return self._engine.history(channel)

    def poll_once(self) -> DeviceSnapshot | None:
        """Run one poll cycle now. Returns None when not connected or when the cycle failed."""
        return self._tick()

    def _tick(self) -> DeviceSnapshot | None:
        failure: PollError | None = None
        with self._connection.lock:
            if not self._connection.is_connected:
                return None
            transport = self._connection.transport
            try:
                snapshot = self._engine.run_cycle(transport)
            except PollError as e:
                failure = e
                self.last_error = e

        if failure is not None:
            # a reconnect may have replaced this session since the lock was released
            logger.warning("Poll failed, disconnecting: %s", failure)
            self._connection.disconnect(expected=transport)
            return None

        self._last_snapshot = snapshot
        for callback in list(self._snapshot_callbacks):
            callback(snapshot)
        return snapshot

    def read_signal(self, name: str) -> float | int | list[bool]:
        """
        Read any signal in the register map on demand (e.g. "scale1").
        Raises PollError on failure; unlike a poll tick this does not disconnect.
        """
        defn = self._register_map.lookup(name)
        with self._connection.lock:
            if not self._connection.is_connected:
                raise PollError(defn.name, "not connected")
            try:
                return read_signal(self._connection.transport, defn, self.config.word_order)
            except ModbusIOError as e:
                raise PollError(defn.name, str(e), cause=e) from e

    # -- relays -------------------------------------------------------------

    def set_coil(self, index: int, value: bool) -> None:
        """Operator relay command. Raises WriteError if the device rejects the write."""
        self._coordinator.set_coil(index, value)

    def handle(self, command: ToggleCoil) -> bool:
        return self._coordinator.handle(command)

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self.disconnect()

    def __enter__(self) -> "ControlPanel":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
