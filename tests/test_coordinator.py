"""Tests for relay writes and echo suppression."""

from unittest.mock import MagicMock

import pytest

from protolink_modbus import ConnectionState, Endpoint, ToggleCoil, UpdateSource, WriteError
from protolink_modbus.connection import ConnectionManager
from protolink_modbus.coordinator import WriteCoordinator
from protolink_modbus.display import PanelDisplay
from protolink_modbus.errors import ModbusIOError
from protolink_modbus.transport import ModbusTransport


@pytest.fixture
def fake_transport() -> MagicMock:
    return MagicMock(spec=ModbusTransport)


@pytest.fixture
def connection(fake_transport: MagicMock) -> ConnectionManager:
    return ConnectionManager(transport_factory=lambda ep, cfg: fake_transport)


@pytest.fixture
def display() -> PanelDisplay:
    return PanelDisplay()


@pytest.fixture
def coordinator(connection: ConnectionManager, display: PanelDisplay) -> WriteCoordinator:
    return WriteCoordinator(connection, display)


def test_operator_write_when_connected(
    coordinator: WriteCoordinator, connection: ConnectionManager, display: PanelDisplay, fake_transport: MagicMock
) -> None:
    connection.connect(Endpoint("10.0.0.5"))
    coordinator.set_coil(2, True)
    fake_transport.write_coil.assert_called_once_with(2, True)
    assert display.digital_out == [False, False, True, False]


def test_poll_source_suppresses_write(
    coordinator: WriteCoordinator, connection: ConnectionManager, display: PanelDisplay, fake_transport: MagicMock
) -> None:
    connection.connect(Endpoint("10.0.0.5"))
    coordinator.set_coil(1, True, source=UpdateSource.POLL)
    fake_transport.write_coil.assert_not_called()
    assert display.digital_out[1] is True


def test_readback_updates_display_without_writes(
    coordinator: WriteCoordinator, connection: ConnectionManager, display: PanelDisplay, fake_transport: MagicMock
) -> None:
    connection.connect(Endpoint("10.0.0.5"))
    coordinator.apply_readback([True, False, True])
    assert display.digital_out == [True, False, True, False]
    fake_transport.write_coil.assert_not_called()


def test_disconnected_toggle_snaps_back(coordinator: WriteCoordinator, display: PanelDisplay, fake_transport: MagicMock) -> None:
    display.digital_out = [False, True, False, False]
    coordinator.set_coil(1, False)
    coordinator.set_coil(3, True)
    assert display.digital_out == [False, True, False, False]
    fake_transport.write_coil.assert_not_called()
    fake_transport.connect.assert_not_called()


def test_write_failure_raises_and_keeps_connection(
    coordinator: WriteCoordinator, connection: ConnectionManager, fake_transport: MagicMock
) -> None:
    connection.connect(Endpoint("10.0.0.5"))
    fake_transport.write_coil.side_effect = ModbusIOError("Illegal data address")
    with pytest.raises(WriteError) as exc_info:
        coordinator.set_coil(0, True)
    assert exc_info.value.index == 0
    assert isinstance(exc_info.value.cause, ModbusIOError)
    assert connection.state == ConnectionState.CONNECTED
    fake_transport.close.assert_not_called()


def test_same_value_twice_writes_twice(
    coordinator: WriteCoordinator, connection: ConnectionManager, fake_transport: MagicMock
) -> None:
    connection.connect(Endpoint("10.0.0.5"))
    coordinator.set_coil(3, True)
    coordinator.set_coil(3, True)
    assert fake_transport.write_coil.call_count == 2
    assert fake_transport.write_coil.call_args_list[0] == fake_transport.write_coil.call_args_list[1]


@pytest.mark.parametrize("index", [-1, 4])
def test_index_out_of_range(coordinator: WriteCoordinator, index: int) -> None:
    with pytest.raises(ValueError, match="relay index"):
        coordinator.set_coil(index, True)


def test_toggle_command_flips_displayed_state(
    coordinator: WriteCoordinator, connection: ConnectionManager, display: PanelDisplay, fake_transport: MagicMock
) -> None:
    connection.connect(Endpoint("10.0.0.5"))
    display.digital_out[0] = True
    assert coordinator.handle(ToggleCoil(0)) is False
    fake_transport.write_coil.assert_called_once_with(0, False)
    assert coordinator.handle(ToggleCoil(1, value=True)) is True
    assert display.digital_out == [False, True, False, False]


def test_toggle_command_bad_index(coordinator: WriteCoordinator) -> None:
    with pytest.raises(ValueError):
        coordinator.handle(ToggleCoil(7))
