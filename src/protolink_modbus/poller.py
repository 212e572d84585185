"""PollingEngine: one read cycle (analog, digital in, relay read-back) against the open transport."""

import logging
from datetime import datetime

from .config import PanelConfig
from .coordinator import WriteCoordinator
from .decode import decode_float
from .display import PanelDisplay
from .errors import ModbusIOError, PollError
from .registermap import AI1_MA, AI2_MA, DIGITAL_INPUTS, DIGITAL_OUTPUTS, RegisterMap, get_default_register_map
from .series import TimeSeriesBuffer
from .transport import ModbusTransport
from .types import DecodeKind, DeviceSnapshot, SignalDef, WordOrder

logger = logging.getLogger(__name__)

STEP_ANALOG = "analog"
STEP_DIGITAL_INPUTS = "digital_inputs"
STEP_DIGITAL_OUTPUTS = "digital_outputs"


def read_signal(transport: ModbusTransport, defn: SignalDef, order: WordOrder = WordOrder.HIGH_LOW) -> float | int | list[bool]:
    """Read one signal and decode it per its kind. Raises ModbusIOError."""
    if defn.kind == DecodeKind.BIT:
        return transport.read_bits(defn)
    registers = transport.read_registers(defn)
    if defn.kind == DecodeKind.FLOAT32:
        return decode_float(registers, order)
    return registers[0]


class PollingEngine:
    """
    Runs the three poll steps in order and publishes the results:
    analog readings to the display and the per-channel history, digital
    inputs to the display, coil states to the WriteCoordinator as read-backs.
    """

    def __init__(
        self,
        coordinator: WriteCoordinator,
        display: PanelDisplay,
        config: PanelConfig | None = None,
        register_map: RegisterMap | None = None,
    ) -> None:
        self._config = config if config is not None else PanelConfig()
        self._coordinator = coordinator
        self._display = display
        regmap = register_map if register_map is not None else get_default_register_map()
        self._ai1 = regmap.lookup(AI1_MA)
        self._ai2 = regmap.lookup(AI2_MA)
        self._inputs = regmap.lookup(DIGITAL_INPUTS)
        self._outputs = regmap.lookup(DIGITAL_OUTPUTS)
        self._history = (
            TimeSeriesBuffer(self._config.history_size),
            TimeSeriesBuffer(self._config.history_size),
        )

    def history(self, channel: int) -> TimeSeriesBuffer:
        """Trend buffer for analog channel 1 or 2."""
        if channel not in (1, 2):
            raise ValueError(f"channel must be 1 or 2, got {channel}")
        return self._history[channel - 1]

    def _stamp(self, now: datetime | None) -> datetime:
        ts = now if now is not None else datetime.now()
        latest = self._history[0].latest()
        # wall clock stepped back; keep history ordered
        if latest is not None and ts < latest[0]:
            ts = latest[0]
        return ts

    def run_cycle(self, transport: ModbusTransport, now: datetime | None = None) -> DeviceSnapshot:
        """
        Perform one poll cycle and return its snapshot.

        A failed read aborts the rest of the cycle and raises PollError naming
        the step; results of earlier steps stay published.
        """
        order = self._config.word_order
        try:
            ch1 = decode_float(transport.read_registers(self._ai1), order)
            ch2 = decode_float(transport.read_registers(self._ai2), order)
        except ModbusIOError as e:
            raise PollError(STEP_ANALOG, str(e), cause=e) from e

        timestamp = self._stamp(now)
        self._display.set_analog(ch1, ch2)
        self._history[0].append(timestamp, ch1)
        self._history[1].append(timestamp, ch2)

        try:
            inputs = transport.read_bits(self._inputs)
        except ModbusIOError as e:
            raise PollError(STEP_DIGITAL_INPUTS, str(e), cause=e) from e
        self._display.set_inputs(inputs)

        try:
            outputs = transport.read_bits(self._outputs)
        except ModbusIOError as e:
            raise PollError(STEP_DIGITAL_OUTPUTS, str(e), cause=e) from e
        self._coordinator.apply_readback(outputs)

        logger.debug("Poll: ch1=%.3f mA ch2=%.3f mA di=%s do=%s", ch1, ch2, inputs, outputs)
        return DeviceSnapshot(
            ch1_mA=ch1,
            ch2_mA=ch2,
            digital_in=tuple(self._display.digital_in),  # type: ignore[arg-type]
            digital_out=tuple(self._display.digital_out),  # type: ignore[arg-type]
            timestamp=timestamp,
        )
