"""protolink-modbus: poll and operate a Protolink I/O module over Modbus TCP via pymodbus."""

__version__ = "0.1.0"

from .config import PanelConfig, parse_endpoint
from .decode import decode_float, encode_float
from .errors import (
    ConfigError,
    ConnectError,
    ModbusIOError,
    PollError,
    ProtolinkError,
    UnknownSignalError,
    WriteError,
)
from .panel import ControlPanel
from .registermap import RegisterMap, get_default_register_map, normalize_signal
from .series import TimeSeriesBuffer
from .types import (
    ConnectionState,
    DecodeKind,
    DeviceSnapshot,
    Endpoint,
    ModbusTable,
    SignalDef,
    ToggleCoil,
    UpdateSource,
    WordOrder,
)

__all__ = [
    "__version__",
    "ControlPanel",
    "PanelConfig",
    "parse_endpoint",
    "decode_float",
    "encode_float",
    "ConfigError",
    "ConnectError",
    "ModbusIOError",
    "PollError",
    "ProtolinkError",
    "UnknownSignalError",
    "WriteError",
    "RegisterMap",
    "get_default_register_map",
    "normalize_signal",
    "TimeSeriesBuffer",
    "ConnectionState",
    "DecodeKind",
    "DeviceSnapshot",
    "Endpoint",
    "ModbusTable",
    "SignalDef",
    "ToggleCoil",
    "UpdateSource",
    "WordOrder",
]
