#!/usr/bin/env python3
"""Command-line front end for protolink-modbus using Typer."""

import json
import logging
import queue
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .config import DEFAULT_HOST, DEFAULT_PORT, PanelConfig
from .decode import decode_float
from .display import format_channel
from .errors import ConfigError, ConnectError, ModbusIOError, PollError, UnknownSignalError, WriteError
from .panel import ControlPanel
from .registermap import RELAY_COUNT, get_default_register_map
from .types import ConnectionState, DeviceSnapshot, WordOrder

app = typer.Typer(
    name="protolink",
    help="Poll and operate a Protolink I/O module via Modbus TCP.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

HostOption = Annotated[
    str,
    typer.Option("--host", "-h", help="Device hostname or IP address", envvar="PROTOLINK_HOST"),
]
PortOption = Annotated[
    str,
    typer.Option("--port", "-p", help="Modbus TCP port", envvar="PROTOLINK_PORT"),
]
UnitIdOption = Annotated[
    int,
    typer.Option("--unit-id", "-u", help="Modbus unit ID", envvar="PROTOLINK_UNIT_ID"),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", "-t", help="Connection timeout in seconds", envvar="PROTOLINK_TIMEOUT"),
]
WordOrderOption = Annotated[
    WordOrder,
    typer.Option("--word-order", help="Register order of 32-bit floats", envvar="PROTOLINK_WORD_ORDER"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_panel(unit_id: int, timeout: float, word_order: WordOrder, poll_interval: float = 0.5) -> ControlPanel:
    """Create a ControlPanel; bad settings exit with code 2."""
    try:
        config = PanelConfig(unit_id=unit_id, timeout=timeout, word_order=word_order, poll_interval=poll_interval)
    except ConfigError as e:
        typer.echo(f"Error: Invalid setting: {e}", err=True)
        raise typer.Exit(2)
    return ControlPanel(config)


@contextmanager
def cli_errors(verbose: bool) -> Iterator[None]:
    """Map library errors to exit codes: 2 usage/config, 3 Modbus/connection, 4 unexpected."""
    try:
        yield
    except typer.Exit:
        raise
    except ConfigError as e:
        typer.echo(f"Error: Invalid input: {e}", err=True)
        raise typer.Exit(2)
    except UnknownSignalError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except (ConnectError, PollError, WriteError, ModbusIOError) as e:
        typer.echo(f"Error: Connection/Modbus error: {e}", err=True)
        raise typer.Exit(3)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


def parse_bool(value: str) -> bool:
    """Parse boolean value from string."""
    v = value.lower().strip()
    if v in ("true", "1", "on", "yes"):
        return True
    if v in ("false", "0", "off", "no"):
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def parse_register(value: str) -> int:
    """Parse a 16-bit register value, decimal or 0x hex."""
    v = value.strip()
    num = int(v, 16) if v.lower().startswith("0x") else int(v)
    if not (0 <= num <= 65535):
        raise ValueError(f"Register value out of range: {num}")
    return num


def format_bits(bits: list[bool] | tuple[bool, ...]) -> str:
    return "".join("1" if b else "0" for b in bits)


def format_value(value: bool | int | float | list[bool]) -> str:
    """Format a signal value for display."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, list):
        return format_bits(value)
    if isinstance(value, float):
        return format_channel(value)
    return str(value)


CSV_HEADER = "timestamp,ch1_mA,ch2_mA," + ",".join(
    [f"di{i}" for i in range(1, 5)] + [f"do{i}" for i in range(1, RELAY_COUNT + 1)]
)


def format_snapshot(snapshot: DeviceSnapshot, fmt: str) -> str:
    """Render one snapshot as a text, NDJSON or CSV line."""
    if fmt == "json":
        return json.dumps(snapshot.as_dict())
    ts = snapshot.timestamp.isoformat()
    if fmt == "csv":
        bits = [str(b).lower() for b in (*snapshot.digital_in, *snapshot.digital_out)]
        return ",".join([ts, format_channel(snapshot.ch1_mA), format_channel(snapshot.ch2_mA), *bits])
    return (
        f"{ts} ch1={format_channel(snapshot.ch1_mA)}mA ch2={format_channel(snapshot.ch2_mA)}mA "
        f"di={format_bits(snapshot.digital_in)} do={format_bits(snapshot.digital_out)}"
    )


# ============================================================================
# Offline commands (no connection)
# ============================================================================

@app.command()
def signals(
    json_output: JsonOption = False,
) -> None:
    """List every signal in the Protolink register map."""
    regmap = get_default_register_map()
    rows = [regmap.describe(defn.name) for defn in regmap]
    if json_output:
        typer.echo(json.dumps(rows, indent=2))
        return
    for row in rows:
        typer.echo(
            f"{row['name']:<16} {row['table']:<15} offset={row['offset']:<3} "
            f"count={row['count']} ref={row['reference']}  {row['description']}"
        )


@app.command()
def explain(
    name: Annotated[str, typer.Argument(help="Signal to explain (e.g. ai1_ma, 'AI2 mA', digital_outputs)")],
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show table, offset, register count and read function for a signal.

    Does not require connection; uses the built-in register map only.
    """
    setup_logging(verbose)

    with cli_errors(verbose):
        info = get_default_register_map().describe(name)
        if json_output:
            typer.echo(json.dumps(info, indent=2))
        else:
            typer.echo(f"Signal:          {info['name']}")
            typer.echo(f"Description:     {info['description']}")
            typer.echo(f"Modbus table:    {info['table']}")
            typer.echo(f"Offset:          {info['offset']}")
            typer.echo(f"Count:           {info['count']}")
            typer.echo(f"Kind:            {info['kind']}")
            typer.echo(f"Reference:       {info['reference']}")
            typer.echo(f"Function:        {info['function_used']}")


@app.command()
def decode(
    first: Annotated[str, typer.Argument(help="First transmitted register (decimal or 0x hex)")],
    second: Annotated[str, typer.Argument(help="Second transmitted register (decimal or 0x hex)")],
    word_order: WordOrderOption = WordOrder.HIGH_LOW,
    json_output: JsonOption = False,
) -> None:
    """Decode two registers into a float32, e.g. `protolink decode 0x4048 0xF5C3`."""
    try:
        registers = [parse_register(first), parse_register(second)]
    except ValueError as e:
        typer.echo(f"Error: Invalid register: {e}", err=True)
        raise typer.Exit(2)
    value = decode_float(registers, word_order)
    if json_output:
        typer.echo(json.dumps({"registers": registers, "word_order": word_order.value, "value": value}))
    else:
        typer.echo(f"{value:.6g}")


# ============================================================================
# Device commands
# ============================================================================

@app.command()
def snapshot(
    host: HostOption = DEFAULT_HOST,
    port: PortOption = str(DEFAULT_PORT),
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 3.0,
    word_order: WordOrderOption = WordOrder.HIGH_LOW,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Connect, run one poll cycle and print analog, digital-input and relay states."""
    setup_logging(verbose)

    with cli_errors(verbose):
        with create_panel(unit_id, timeout, word_order) as panel:
            panel.connect(host, port)
            snap = panel.poll_once()
            if snap is None:
                raise panel.last_error or PollError("poll", "no data")
            typer.echo(format_snapshot(snap, "json" if json_output else "text"))


@app.command()
def read(
    name: Annotated[str, typer.Argument(help="Signal to read (see `protolink signals`)")],
    host: HostOption = DEFAULT_HOST,
    port: PortOption = str(DEFAULT_PORT),
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 3.0,
    word_order: WordOrderOption = WordOrder.HIGH_LOW,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Read a single signal from the register map, including ones the poll loop skips."""
    setup_logging(verbose)

    with cli_errors(verbose):
        defn = get_default_register_map().lookup(name)
        with create_panel(unit_id, timeout, word_order) as panel:
            panel.connect(host, port)
            value = panel.read_signal(defn.name)
            if json_output:
                typer.echo(json.dumps({"signal": defn.name, "value": value}))
            else:
                typer.echo(format_value(value))


@app.command()
def relay(
    number: Annotated[int, typer.Argument(help=f"Relay number 1-{RELAY_COUNT}")],
    value: Annotated[str, typer.Argument(help="on/off, true/false, 1/0, yes/no")],
    host: HostOption = DEFAULT_HOST,
    port: PortOption = str(DEFAULT_PORT),
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 3.0,
    verbose: VerboseOption = False,
) -> None:
    """Switch one relay output (Write Single Coil)."""
    setup_logging(verbose)

    if not 1 <= number <= RELAY_COUNT:
        typer.echo(f"Error: Relay number must be 1-{RELAY_COUNT}, got {number}", err=True)
        raise typer.Exit(2)
    try:
        state = parse_bool(value)
    except ValueError as e:
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)

    with cli_errors(verbose):
        with create_panel(unit_id, timeout, WordOrder.HIGH_LOW) as panel:
            panel.connect(host, port)
            panel.set_coil(number - 1, state)
            typer.echo(f"OK: Relay {number} = {'on' if state else 'off'}")


@app.command()
def monitor(
    host: HostOption = DEFAULT_HOST,
    port: PortOption = str(DEFAULT_PORT),
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 3.0,
    word_order: WordOrderOption = WordOrder.HIGH_LOW,
    verbose: VerboseOption = False,
    interval: Annotated[float, typer.Option("--interval", "-i", help="Polling interval in seconds")] = 0.5,
    count: Annotated[int, typer.Option("--count", "-n", help="Stop after N snapshots (0 = until Ctrl+C)")] = 0,
    format: Annotated[str, typer.Option("--format", "-f", help="Output format: text, json, csv")] = "text",
) -> None:
    """
    Connect and print a line for every poll cycle.

    Outputs format:
    - text: timestamp, both mA channels, DI and relay bit strings (default)
    - json: NDJSON, one snapshot object per line
    - csv: header line, then one row per cycle

    A failed cycle disconnects and exits with code 3. Press Ctrl+C to stop.
    """
    setup_logging(verbose)

    if format not in ("text", "json", "csv"):
        typer.echo(f"Error: Invalid format '{format}'. Must be text, json, or csv.", err=True)
        raise typer.Exit(2)

    if interval <= 0:
        typer.echo(f"Error: Interval must be positive, got {interval}", err=True)
        raise typer.Exit(2)

    if count < 0:
        typer.echo(f"Error: Count must be >= 0, got {count}", err=True)
        raise typer.Exit(2)

    snapshots: "queue.Queue[DeviceSnapshot]" = queue.Queue()

    try:
        with cli_errors(verbose):
            with create_panel(unit_id, timeout, word_order, poll_interval=interval) as panel:
                panel.on_snapshot(snapshots.put)
                if format == "csv":
                    typer.echo(CSV_HEADER)
                panel.connect(host, port)

                printed = 0
                while count == 0 or printed < count:
                    try:
                        snap = snapshots.get(timeout=interval)
                    except queue.Empty:
                        if panel.connection_state() == ConnectionState.DISCONNECTED:
                            raise panel.last_error or PollError("poll", "connection lost")
                        continue
                    typer.echo(format_snapshot(snap, format))
                    printed += 1
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"protolink-modbus {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """protolink - poll and operate a Protolink I/O module via Modbus TCP."""
    pass


if __name__ == "__main__":
    app()
