"""Core data model: Modbus tables, decode kinds, word order, signals, endpoint and snapshots."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import ConfigError


class ModbusTable(str, Enum):
    """Modbus table types used for pymodbus dispatch."""

    COIL = "coil"
    DISCRETE_INPUT = "discrete_input"
    INPUT_REGISTER = "input_register"


class DecodeKind(str, Enum):
    """How the registers or bits of a signal turn into a value."""

    FLOAT32 = "float32"
    RAW_INT = "raw_int"
    BIT = "bit"


class WordOrder(str, Enum):
    """Which of two transmitted registers holds the most-significant half of a 32-bit value."""

    HIGH_LOW = "high_low"
    LOW_HIGH = "low_high"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class UpdateSource(str, Enum):
    """Origin of a relay display change. Changes from POLL never reach the device."""

    OPERATOR = "operator"
    POLL = "poll"


@dataclass(frozen=True)
class SignalDef:
    """One logical signal in the device address space (0-based offset, no reference numbers)."""

    name: str
    table: ModbusTable
    offset: int
    count: int
    kind: DecodeKind
    description: str = ""

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.count < 1:
            raise ValueError(f"count must be >= 1, got {self.count}")
        if self.kind == DecodeKind.FLOAT32 and self.count != 2:
            raise ValueError(f"float32 signal {self.name!r} must span 2 registers, got {self.count}")


@dataclass(frozen=True)
class Endpoint:
    """Modbus TCP endpoint, fixed for the life of one connection."""

    host: str
    port: int = 502

    def __post_init__(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise ConfigError(f"Port out of range 1-65535: {self.port!r}", field="port")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class DeviceSnapshot:
    """Result of one successful poll cycle."""

    ch1_mA: float
    ch2_mA: float
    digital_in: tuple[bool, bool, bool, bool]
    digital_out: tuple[bool, bool, bool, bool]
    timestamp: datetime

    def as_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "ch1_mA": self.ch1_mA,
            "ch2_mA": self.ch2_mA,
            "digital_in": list(self.digital_in),
            "digital_out": list(self.digital_out),
        }


@dataclass(frozen=True)
class ToggleCoil:
    """Operator intent for one relay. value=None flips the currently displayed state."""

    index: int
    value: bool | None = None
