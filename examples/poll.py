#!/usr/bin/env python3
"""Example: let the panel poll every 500 ms and print each snapshot; graceful shutdown on Ctrl+C."""

import sys
import threading

from protolink_modbus import ConnectionState, ControlPanel, DeviceSnapshot
from protolink_modbus.display import format_channel
from protolink_modbus.errors import ConfigError, ConnectError


def main() -> None:
    host = "192.168.68.111"  # change to your device IP
    port = 502
    lost = threading.Event()

    panel = ControlPanel()

    @panel.on_snapshot
    def show(snapshot: DeviceSnapshot) -> None:
        trend = panel.history(1).range()
        span = (trend[1] - trend[0]).total_seconds() if trend else 0.0
        print(
            f"{snapshot.timestamp:%H:%M:%S} CH1 {format_channel(snapshot.ch1_mA)} mA "
            f"CH2 {format_channel(snapshot.ch2_mA)} mA DI {snapshot.digital_in} "
            f"R {snapshot.digital_out} (trend {span:.1f}s)"
        )

    try:
        panel.connect(host, port)
        print(f"Polling {host}:{port} every {panel.config.poll_interval}s (Ctrl+C to stop)...")
        while not lost.wait(1.0):
            if panel.connection_state() == ConnectionState.DISCONNECTED:
                print(f"Connection lost: {panel.last_error}", file=sys.stderr)
                lost.set()
    except KeyboardInterrupt:
        print("\nStopped.")
    except ConfigError as e:
        print(f"Invalid host/port: {e}", file=sys.stderr)
        sys.exit(2)
    except ConnectError as e:
        print(f"Modbus/connection error: {e}", file=sys.stderr)
        sys.exit(3)
    finally:
        panel.close()


if __name__ == "__main__":
    main()
