#!/usr/bin/env python3
"""
Read every float32 signal of the Protolink map once and print it decoded
with both word orders, to tell which one the device firmware uses. A
plausible mA reading (0-24) shows the right order.

Usage (from repo root, after pip install -e .):
  python tools/probe_word_order.py [--host HOST] [--port PORT] [--output PATH]

Environment: PROTOLINK_HOST, PROTOLINK_PORT (defaults: 192.168.68.111, 502).
"""

import argparse
import csv
import os
import sys
from pathlib import Path

from protolink_modbus.config import parse_endpoint
from protolink_modbus.decode import decode_float
from protolink_modbus.errors import ConfigError, ModbusIOError
from protolink_modbus.registermap import get_default_register_map, reference_number
from protolink_modbus.transport import ModbusTransport
from protolink_modbus.types import DecodeKind, WordOrder


def probe(transport: ModbusTransport) -> list[tuple[str, int, str, str, str]]:
    """Return (signal, reference, raw registers, high_low value, low_high value) per float signal."""
    rows: list[tuple[str, int, str, str, str]] = []
    for defn in get_default_register_map():
        if defn.kind != DecodeKind.FLOAT32:
            continue
        try:
            regs = transport.read_registers(defn)
        except ModbusIOError as e:
            print(f"  {defn.name}: read failed ({e})", file=sys.stderr)
            continue
        raw = " ".join(f"0x{r:04X}" for r in regs)
        hl = decode_float(regs, WordOrder.HIGH_LOW)
        lh = decode_float(regs, WordOrder.LOW_HIGH)
        rows.append((defn.name, reference_number(defn), raw, f"{hl:.4g}", f"{lh:.4g}"))
    return rows


def main() -> int:
    parser = argparse.ArgumentParser(description="Decode Protolink float registers with both word orders.")
    parser.add_argument(
        "--host",
        default=os.environ.get("PROTOLINK_HOST", "192.168.68.111"),
        help="Device host (default: PROTOLINK_HOST or 192.168.68.111)",
    )
    parser.add_argument(
        "--port",
        default=os.environ.get("PROTOLINK_PORT", "502"),
        help="Modbus TCP port (default: PROTOLINK_PORT or 502)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Also write results as CSV")
    args = parser.parse_args()

    try:
        endpoint = parse_endpoint(args.host, args.port)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    transport = ModbusTransport(endpoint)
    try:
        transport.connect()
        rows = probe(transport)
    except ModbusIOError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return 3
    finally:
        transport.close()

    print(f"{'signal':<10} {'ref':>6}  {'registers':<14} {'high_low':>12} {'low_high':>12}")
    for name, ref, raw, hl, lh in rows:
        print(f"{name:<10} {ref:>6}  {raw:<14} {hl:>12} {lh:>12}")

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["signal", "reference", "registers", "high_low", "low_high"])
            w.writerows(rows)
        print(f"Wrote {len(rows)} rows to {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
