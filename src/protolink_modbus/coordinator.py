"""WriteCoordinator: turns relay changes into single-coil writes, except for poll read-backs."""

import logging
from typing import Sequence

from .connection import ConnectionManager
from .display import PanelDisplay
from .errors import ModbusIOError, WriteError
from .registermap import DIGITAL_OUTPUTS, RELAY_COUNT, RegisterMap, get_default_register_map
from .types import ToggleCoil, UpdateSource

logger = logging.getLogger(__name__)


class WriteCoordinator:
    """
    Every change to a relay indicator passes through set_coil together with
    its source. Operator changes are written to the device; changes that came
    from a poll read-back only update the display, so reconciling with the
    device never echoes a write back to it.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        display: PanelDisplay,
        register_map: RegisterMap | None = None,
    ) -> None:
        self._connection = connection
        self._display = display
        regmap = register_map if register_map is not None else get_default_register_map()
        self._outputs = regmap.lookup(DIGITAL_OUTPUTS)

    def set_coil(self, index: int, value: bool, source: UpdateSource = UpdateSource.OPERATOR) -> None:
        """
        Set relay ``index`` (0-3) to ``value``.

        - source POLL: display only, no write.
        - not connected: the display snaps back to its previous value, no write, no error.
        - otherwise: Write Single Coil; a transport failure raises WriteError and
          leaves the connection untouched.
        """
        if not 0 <= index < RELAY_COUNT:
            raise ValueError(f"relay index must be 0-{RELAY_COUNT - 1}, got {index}")
        value = bool(value)

        with self._connection.lock:
            previous = self._display.set_output(index, value)
            if source == UpdateSource.POLL:
                return
            if not self._connection.is_connected:
                self._display.set_output(index, previous)
                logger.debug("Relay %d change ignored: not connected", index + 1)
                return
            address = self._outputs.offset + index
            try:
                self._connection.transport.write_coil(address, value)
            except ModbusIOError as e:
                logger.warning("Relay %d write failed: %s", index + 1, e)
                raise WriteError(index, str(e), cause=e) from e
        logger.debug("Relay %d set to %s", index + 1, value)

    def apply_readback(self, bits: Sequence[bool]) -> None:
        """Reconcile the relay indicators with coil states read from the device."""
        for index in range(RELAY_COUNT):
            bit = bool(bits[index]) if index < len(bits) else False
            self.set_coil(index, bit, source=UpdateSource.POLL)

    def handle(self, command: ToggleCoil) -> bool:
        """Apply an operator ToggleCoil command; returns the value requested."""
        if not 0 <= command.index < RELAY_COUNT:
            raise ValueError(f"relay index must be 0-{RELAY_COUNT - 1}, got {command.index}")
        value = command.value
        if value is None:
            value = not self._display.digital_out[command.index]
        self.set_coil(command.index, value, source=UpdateSource.OPERATOR)
        return value
