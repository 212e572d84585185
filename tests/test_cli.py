"""Tests for CLI module - value parsing and command structure."""

import json
from datetime import datetime
from typing import Callable
from unittest.mock import MagicMock, patch

import pytest
from click.testing import Result
from typer.testing import CliRunner

from protolink_modbus.cli import app, format_snapshot, format_value, parse_bool, parse_register
from protolink_modbus.errors import ConnectError, PollError, WriteError
from protolink_modbus.types import ConnectionState, DeviceSnapshot, Endpoint

runner = CliRunner()

SNAP = DeviceSnapshot(
    ch1_mA=3.14,
    ch2_mA=12.5,
    digital_in=(True, False, True, False),
    digital_out=(False, True, False, False),
    timestamp=datetime(2026, 1, 1, 12, 0, 0),
)


def _mock_panel(mock_panel_class: MagicMock) -> MagicMock:
    mock_panel = MagicMock()
    mock_panel_class.return_value = mock_panel
    mock_panel.__enter__.return_value = mock_panel
    mock_panel.last_error = None
    return mock_panel


def _output(result: Result) -> str:
    return result.output


# ============================================================================
# Value Parsing Tests
# ============================================================================


class TestParseBool:
    """Test boolean value parsing."""

    def test_true_variants(self) -> None:
        for val in ["true", "True", "1", "on", "ON", "yes"]:
            assert parse_bool(val) is True

    def test_false_variants(self) -> None:
        for val in ["false", "FALSE", "0", "off", "no"]:
            assert parse_bool(val) is False

    def test_invalid_values(self) -> None:
        with pytest.raises(ValueError, match="Invalid boolean value"):
            parse_bool("maybe")


class TestParseRegister:
    """Test register value parsing."""

    def test_decimal_and_hex(self) -> None:
        assert parse_register("16456") == 0x4048
        assert parse_register("0x4048") == 16456
        assert parse_register("  0xFFFF ") == 65535

    def test_range_validation(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            parse_register("65536")
        with pytest.raises(ValueError, match="out of range"):
            parse_register("-1")

    def test_invalid_values(self) -> None:
        with pytest.raises(ValueError):
            parse_register("abc")


class TestFormatting:
    """Test value and snapshot formatting for display."""

    def test_format_value(self) -> None:
        assert format_value(True) == "true"
        assert format_value(4000) == "4000"
        assert format_value(3.14159) == "3.14"
        assert format_value([True, False, True, False]) == "1010"

    def test_format_snapshot_text(self) -> None:
        line = format_snapshot(SNAP, "text")
        assert line == "2026-01-01T12:00:00 ch1=3.14mA ch2=12.50mA di=1010 do=0100"

    def test_format_snapshot_csv(self) -> None:
        assert format_snapshot(SNAP, "csv") == (
            "2026-01-01T12:00:00,3.14,12.50,true,false,true,false,false,true,false,false"
        )

    def test_format_snapshot_json(self) -> None:
        data = json.loads(format_snapshot(SNAP, "json"))
        assert data["ch1_mA"] == 3.14
        assert data["digital_in"] == [True, False, True, False]


# ============================================================================
# Offline commands
# ============================================================================


def test_signals_command() -> None:
    result = runner.invoke(app, ["signals"])
    assert result.exit_code == 0
    assert "ai1_ma" in result.stdout
    assert "30003" in result.stdout
    assert "digital_outputs" in result.stdout


def test_signals_command_json() -> None:
    result = runner.invoke(app, ["signals", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert len(data) == 10
    assert {"name": "ai2_ma", "offset": 12}.items() <= data[4].items()


def test_explain_command() -> None:
    result = runner.invoke(app, ["explain", "AI1 mA"])
    assert result.exit_code == 0
    assert "ai1_ma" in result.stdout
    assert "input_register" in result.stdout
    assert "Offset:          2" in result.stdout
    assert "read_input_registers" in result.stdout


def test_explain_command_json() -> None:
    result = runner.invoke(app, ["explain", "digital_inputs", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["table"] == "discrete_input"
    assert data["count"] == 4
    assert data["reference"] == 10001


def test_explain_unknown_signal() -> None:
    result = runner.invoke(app, ["explain", "ai9_ma"])
    assert result.exit_code == 2
    assert "Unknown signal" in _output(result)


def test_decode_command() -> None:
    result = runner.invoke(app, ["decode", "0x4048", "0xF5C3"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "3.14"


def test_decode_command_low_high_json() -> None:
    result = runner.invoke(app, ["decode", "0xF5C3", "0x4048", "--word-order", "low_high", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["word_order"] == "low_high"
    assert data["value"] == pytest.approx(3.14, abs=1e-6)


def test_decode_invalid_register() -> None:
    result = runner.invoke(app, ["decode", "0x4048", "70000"])
    assert result.exit_code == 2
    assert "Invalid register" in _output(result)


# ============================================================================
# Device commands (with mocked panel)
# ============================================================================


@patch("protolink_modbus.cli.ControlPanel")
def test_snapshot_command(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.poll_once.return_value = SNAP

    result = runner.invoke(app, ["snapshot", "--host", "10.0.0.5", "--port", "1502"])

    assert result.exit_code == 0
    assert "ch1=3.14mA" in result.stdout
    assert "di=1010" in result.stdout
    mock_panel.connect.assert_called_once_with("10.0.0.5", "1502")


@patch("protolink_modbus.cli.ControlPanel")
def test_snapshot_command_json(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.poll_once.return_value = SNAP

    result = runner.invoke(app, ["snapshot", "--host", "10.0.0.5", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["digital_out"] == [False, True, False, False]


@patch("protolink_modbus.cli.ControlPanel")
def test_snapshot_poll_failure(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.poll_once.return_value = None
    mock_panel.last_error = PollError("digital_outputs", "timeout")

    result = runner.invoke(app, ["snapshot", "--host", "10.0.0.5"])

    assert result.exit_code == 3
    assert "digital_outputs" in _output(result)


@patch("protolink_modbus.cli.ControlPanel")
def test_connect_error_exit_code(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.connect.side_effect = ConnectError(Endpoint("10.0.0.5"))

    result = runner.invoke(app, ["snapshot", "--host", "10.0.0.5"])

    assert result.exit_code == 3
    assert "Failed to connect to 10.0.0.5:502" in _output(result)


def test_bad_port_exit_code() -> None:
    result = runner.invoke(app, ["snapshot", "--host", "10.0.0.5", "--port", "http"])
    assert result.exit_code == 2
    assert "Invalid port" in _output(result)


def test_bad_unit_id_exit_code() -> None:
    result = runner.invoke(app, ["snapshot", "--host", "10.0.0.5", "--unit-id", "300"])
    assert result.exit_code == 2
    assert "unit_id" in _output(result)


@patch("protolink_modbus.cli.ControlPanel")
def test_read_command(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.read_signal.return_value = 25.754

    result = runner.invoke(app, ["read", "Scale1", "--host", "10.0.0.5"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "25.75"
    mock_panel.read_signal.assert_called_once_with("scale1")


@patch("protolink_modbus.cli.ControlPanel")
def test_read_command_json(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.read_signal.return_value = [True, False, False, True]

    result = runner.invoke(app, ["read", "digital_inputs", "--host", "10.0.0.5", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"signal": "digital_inputs", "value": [True, False, False, True]}


def test_read_unknown_signal() -> None:
    result = runner.invoke(app, ["read", "ai7", "--host", "10.0.0.5"])
    assert result.exit_code == 2


@patch("protolink_modbus.cli.ControlPanel")
def test_relay_command(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)

    result = runner.invoke(app, ["relay", "2", "on", "--host", "10.0.0.5"])

    assert result.exit_code == 0
    assert "OK: Relay 2 = on" in result.stdout
    mock_panel.set_coil.assert_called_once_with(1, True)


@patch("protolink_modbus.cli.ControlPanel")
def test_relay_write_error(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.set_coil.side_effect = WriteError(0, "Illegal data address")

    result = runner.invoke(app, ["relay", "1", "off", "--host", "10.0.0.5"])

    assert result.exit_code == 3
    assert "relay 1" in _output(result)


@pytest.mark.parametrize(("number", "value"), [("0", "on"), ("5", "on"), ("1", "maybe")])
def test_relay_invalid_arguments(number: str, value: str) -> None:
    result = runner.invoke(app, ["relay", number, value, "--host", "10.0.0.5"])
    assert result.exit_code == 2


def _feed_on_connect(mock_panel: MagicMock, snaps: list[DeviceSnapshot]) -> None:
    callbacks: list[Callable[[DeviceSnapshot], None]] = []
    mock_panel.on_snapshot.side_effect = callbacks.append

    def connect(host: str, port: str) -> None:
        for snap in snaps:
            callbacks[0](snap)

    mock_panel.connect.side_effect = connect
    mock_panel.connection_state.return_value = ConnectionState.CONNECTED


@patch("protolink_modbus.cli.ControlPanel")
def test_monitor_command_count(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    _feed_on_connect(mock_panel, [SNAP, SNAP, SNAP])

    result = runner.invoke(app, ["monitor", "--host", "10.0.0.5", "--count", "2"])

    assert result.exit_code == 0
    lines = result.stdout.strip().split("\n")
    assert len(lines) == 2
    assert all("ch1=3.14mA" in line for line in lines)


@patch("protolink_modbus.cli.ControlPanel")
def test_monitor_command_csv(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    _feed_on_connect(mock_panel, [SNAP])

    result = runner.invoke(app, ["monitor", "--host", "10.0.0.5", "--count", "1", "--format", "csv"])

    assert result.exit_code == 0
    lines = result.stdout.strip().split("\n")
    assert len(lines) == 2  # header + data
    assert lines[0] == "timestamp,ch1_mA,ch2_mA,di1,di2,di3,di4,do1,do2,do3,do4"
    assert lines[1].startswith("2026-01-01T12:00:00,3.14,12.50,")


@patch("protolink_modbus.cli.ControlPanel")
def test_monitor_command_json(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    _feed_on_connect(mock_panel, [SNAP])

    result = runner.invoke(app, ["monitor", "--host", "10.0.0.5", "--count", "1", "--format", "json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["ch2_mA"] == 12.5


@patch("protolink_modbus.cli.ControlPanel")
def test_monitor_exits_when_connection_lost(mock_panel_class: MagicMock) -> None:
    mock_panel = _mock_panel(mock_panel_class)
    mock_panel.connection_state.return_value = ConnectionState.DISCONNECTED
    mock_panel.last_error = PollError("digital_outputs", "socket closed")

    result = runner.invoke(app, ["monitor", "--host", "10.0.0.5", "--interval", "0.01"])

    assert result.exit_code == 3
    assert "socket closed" in _output(result)


def test_monitor_invalid_interval() -> None:
    result = runner.invoke(app, ["monitor", "--host", "10.0.0.5", "--interval", "0"])
    assert result.exit_code == 2
    assert "Interval must be positive" in _output(result)


def test_monitor_invalid_format() -> None:
    result = runner.invoke(app, ["monitor", "--host", "10.0.0.5", "--format", "xml"])
    assert result.exit_code == 2
    assert "Invalid format" in _output(result)


def test_command_help() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("signals", "explain", "decode", "snapshot", "read", "relay", "monitor"):
        assert command in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "protolink-modbus" in result.stdout
