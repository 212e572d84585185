"""
Register pair <-> IEEE 754 float32 conversion.

Modbus registers are 16 bits wide, so a float32 travels as two consecutive
registers. Which register carries the most-significant half depends on the
device firmware; the Protolink module sends the high word first.
"""

import struct
from typing import Sequence

from .types import WordOrder


def _check_register(value: int) -> int:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"register value {value} out of range [0, 65535]")
    return value


def decode_float(registers: Sequence[int], order: WordOrder = WordOrder.HIGH_LOW) -> float:
    """
    Combine two 16-bit registers into an IEEE 754 single-precision value.

    Args:
        registers: exactly two register values, in transmission order
        order: HIGH_LOW if the first register is the most-significant word

    Returns:
        The decoded float (single precision, widened to a Python float)

    Raises:
        ValueError: if not exactly two 16-bit registers are given
    """
    if len(registers) != 2:
        raise ValueError(f"float32 needs exactly 2 registers, got {len(registers)}")
    first, second = (_check_register(int(r)) for r in registers)
    if WordOrder(order) == WordOrder.HIGH_LOW:
        high, low = first, second
    else:
        high, low = second, first
    (value,) = struct.unpack(">f", struct.pack(">HH", high, low))
    return value


def encode_float(value: float, order: WordOrder = WordOrder.HIGH_LOW) -> tuple[int, int]:
    """Split a float into two registers in transmission order (inverse of decode_float)."""
    high, low = struct.unpack(">HH", struct.pack(">f", value))
    if WordOrder(order) == WordOrder.HIGH_LOW:
        return high, low
    return low, high
