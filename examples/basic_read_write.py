#!/usr/bin/env python3
"""Example: connect to a Protolink module, take one snapshot, read extra signals and switch a relay."""

import sys

from protolink_modbus import ControlPanel
from protolink_modbus.errors import ConfigError, ConnectError, PollError, WriteError


def main() -> None:
    host = "192.168.68.111"  # change to your device IP
    port = 502

    try:
        with ControlPanel() as panel:
            panel.connect(host, port)

            # One poll cycle: both mA channels, DI1-DI4, relay read-back
            snapshot = panel.poll_once()
            if snapshot is None:
                print(f"Poll failed: {panel.last_error}", file=sys.stderr)
                sys.exit(3)
            print(f"AI1 = {snapshot.ch1_mA:.2f} mA, AI2 = {snapshot.ch2_mA:.2f} mA")
            print(f"DI = {snapshot.digital_in}  relays = {snapshot.digital_out}")

            # Signals the poll loop does not cover
            print(f"scale1 = {panel.read_signal('scale1')}")
            print(f"AI1 scaled = {panel.read_signal('AI1 scaled')}")

            # Switch relay 1 (example; uncomment if the outputs are safe to drive)
            # panel.set_coil(0, True)
    except ConfigError as e:
        print(f"Invalid host/port: {e}", file=sys.stderr)
        sys.exit(2)
    except (ConnectError, PollError, WriteError) as e:
        print(f"Modbus/connection error: {e}", file=sys.stderr)
        sys.exit(3)


if __name__ == "__main__":
    main()
