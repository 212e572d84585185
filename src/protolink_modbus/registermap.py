"""RegisterMap: the fixed Protolink address table, signal-name normalization and O(1) lookup."""

import logging
import re
from typing import Any, Iterator

from .errors import UnknownSignalError
from .types import DecodeKind, ModbusTable, SignalDef

logger = logging.getLogger(__name__)

# Standard Modbus reference number bases (ref = base + 0-based offset)
_MODBUS_REF_BASE: dict[ModbusTable, int] = {
    ModbusTable.COIL: 1,
    ModbusTable.DISCRETE_INPUT: 10_001,
    ModbusTable.INPUT_REGISTER: 30_001,
}

_READ_FUNCTION: dict[ModbusTable, str] = {
    ModbusTable.COIL: "read_coils",
    ModbusTable.DISCRETE_INPUT: "read_discrete_inputs",
    ModbusTable.INPUT_REGISTER: "read_input_registers",
}

_NAME_SEPARATORS = re.compile(r"[\s\-.]+")
_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

AI1_MA = "ai1_ma"
AI2_MA = "ai2_ma"
DIGITAL_INPUTS = "digital_inputs"
DIGITAL_OUTPUTS = "digital_outputs"

RELAY_COUNT = 4

# Device-specific; offsets are 0-based within each region.
PROTOLINK_SIGNALS: tuple[SignalDef, ...] = (
    SignalDef("ai1_raw", ModbusTable.INPUT_REGISTER, 0, 2, DecodeKind.FLOAT32, "AI1 raw"),
    SignalDef(AI1_MA, ModbusTable.INPUT_REGISTER, 2, 2, DecodeKind.FLOAT32, "AI1 loop current (mA)"),
    SignalDef("ai1_scaled", ModbusTable.INPUT_REGISTER, 4, 1, DecodeKind.RAW_INT, "AI1 scaled"),
    SignalDef("ai2_raw", ModbusTable.INPUT_REGISTER, 10, 2, DecodeKind.FLOAT32, "AI2 raw"),
    SignalDef(AI2_MA, ModbusTable.INPUT_REGISTER, 12, 2, DecodeKind.FLOAT32, "AI2 loop current (mA)"),
    SignalDef("ai2_scaled", ModbusTable.INPUT_REGISTER, 14, 1, DecodeKind.RAW_INT, "AI2 scaled"),
    SignalDef("scale1", ModbusTable.INPUT_REGISTER, 20, 2, DecodeKind.FLOAT32, "Weighing scale 1"),
    SignalDef("scale2", ModbusTable.INPUT_REGISTER, 22, 2, DecodeKind.FLOAT32, "Weighing scale 2"),
    SignalDef(DIGITAL_INPUTS, ModbusTable.DISCRETE_INPUT, 0, 4, DecodeKind.BIT, "Digital inputs DI1-DI4"),
    SignalDef(DIGITAL_OUTPUTS, ModbusTable.COIL, 0, RELAY_COUNT, DecodeKind.BIT, "Relay outputs R1-R4"),
)


def normalize_signal(raw: str) -> str:
    """
    Normalize a signal name to canonical form.

    - Lowercase, collapse spaces, dashes and dots to a single underscore.
    - "AI1 mA", "ai1-ma" and "AI1_MA" all become "ai1_ma".

    Raises UnknownSignalError for empty or malformed names.
    """
    s = raw.strip()
    if not s:
        raise UnknownSignalError(raw, "Signal name cannot be empty")
    name = _NAME_SEPARATORS.sub("_", s.lower()).strip("_")
    if not _NAME_PATTERN.match(name):
        raise UnknownSignalError(raw, f"Malformed signal name: {raw!r}")
    return name


def reference_number(defn: SignalDef) -> int:
    """Return the conventional Modbus reference (e.g. 30003) for a signal's first address."""
    return _MODBUS_REF_BASE[defn.table] + defn.offset


class RegisterMap:
    """
    In-memory map of signal names to SignalDef. Built from a constant table and
    never mutated after construction.
    """

    def __init__(self, signals: tuple[SignalDef, ...] | list[SignalDef] = PROTOLINK_SIGNALS) -> None:
        self._by_name: dict[str, SignalDef] = {}
        for defn in signals:
            if defn.name in self._by_name:
                raise ValueError(f"Duplicate signal in map: {defn.name}")
            self._by_name[defn.name] = defn
        logger.debug("RegisterMap loaded: %d signals", len(self._by_name))

    def lookup(self, name: str) -> SignalDef:
        """Return SignalDef for a (possibly un-normalized) name; raise UnknownSignalError if absent."""
        key = normalize_signal(name)
        if key not in self._by_name:
            raise UnknownSignalError(name)
        return self._by_name[key]

    def describe(self, name: str) -> dict[str, Any]:
        """Return table, offset, count, reference number and read function for diagnostics."""
        defn = self.lookup(name)
        return {
            "name": defn.name,
            "description": defn.description,
            "table": defn.table.value,
            "offset": defn.offset,
            "count": defn.count,
            "kind": defn.kind.value,
            "reference": reference_number(defn),
            "function_used": _READ_FUNCTION[defn.table],
        }

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        try:
            self.lookup(name)
        except UnknownSignalError:
            return False
        return True

    def __iter__(self) -> Iterator[SignalDef]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


_DEFAULT_MAP = RegisterMap()


def get_default_register_map() -> RegisterMap:
    """Return the shared Protolink register map."""
    return _DEFAULT_MAP
