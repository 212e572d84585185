"""Shared fixtures: a mocked pymodbus client that behaves like a Protolink module."""

from typing import Iterator
from unittest.mock import MagicMock, patch

import pytest

from protolink_modbus import ControlPanel, PanelConfig
from protolink_modbus.decode import encode_float

AI1_REGISTERS = [0x4048, 0xF5C3]  # 3.14 high word first
AI2_REGISTERS = list(encode_float(12.5))


def ok(**fields: object) -> MagicMock:
    return MagicMock(isError=lambda: False, **fields)


def error_response(text: str = "Exception Response(132, 4, SlaveFailure)") -> MagicMock:
    rr = MagicMock(isError=lambda: True)
    rr.__str__.return_value = text  # type: ignore[attr-defined]
    return rr


@pytest.fixture
def device_registers() -> dict[int, list[int]]:
    """Input register contents by offset; tests may edit before polling."""
    return {
        0: list(encode_float(812.0)),
        2: list(AI1_REGISTERS),
        4: [4000],
        10: list(encode_float(640.0)),
        12: list(AI2_REGISTERS),
        14: [1500],
        20: list(encode_float(25.75)),
        22: list(encode_float(0.0)),
    }


@pytest.fixture
def mock_modbus_client(device_registers: dict[int, list[int]]) -> MagicMock:
    client = MagicMock()
    client.connect.return_value = True

    def read_input_registers(address: int, count: int = 1, device_id: int = 1) -> MagicMock:
        return ok(registers=device_registers[address][:count])

    client.read_input_registers.side_effect = read_input_registers
    client.read_discrete_inputs.return_value = ok(bits=[True, False, True, False, False, False, False, False])
    client.read_coils.return_value = ok(bits=[False, True, False, False, False, False, False, False])
    client.write_coil.return_value = ok()
    return client


@pytest.fixture
def patched_client(mock_modbus_client: MagicMock) -> Iterator[MagicMock]:
    """Patch ModbusTcpClient so transports built during the test get the mock."""
    with patch("protolink_modbus.transport.ModbusTcpClient", return_value=mock_modbus_client) as client_class:
        yield client_class


@pytest.fixture
def panel(patched_client: MagicMock) -> Iterator[ControlPanel]:
    """A panel whose background cadence never fires during a test; drive it with poll_once()."""
    p = ControlPanel(PanelConfig(poll_interval=60.0))
    yield p
    p.close()
