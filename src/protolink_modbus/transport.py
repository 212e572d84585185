"""ModbusTransport: thin wrapper over the pymodbus TCP client for the four function codes the panel uses."""

import logging
from typing import Any

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException as PymodbusException

from .errors import ModbusIOError
from .types import Endpoint, ModbusTable, SignalDef

logger = logging.getLogger(__name__)


class ModbusTransport:
    """
    One Modbus TCP connection to one device. Reads whole signals (bits or
    registers) and writes single coils; every failure surfaces as ModbusIOError.
    Not thread-safe on its own: callers serialize access.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        unit_id: int = 1,
        timeout: float = 3.0,
        retries: int = 1,
    ) -> None:
        self._endpoint = endpoint
        self._unit_id = unit_id
        self._timeout = timeout
        self._retries = retries
        self._client: ModbusTcpClient | None = None

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _get_client(self) -> ModbusTcpClient:
        if self._client is None:
            raise ModbusIOError(f"Not connected to {self._endpoint}")
        return self._client

    def connect(self) -> None:
        """Establish the TCP connection; raises ModbusIOError if the device is unreachable."""
        if self._client is not None:
            return
        client = ModbusTcpClient(
            host=self._endpoint.host,
            port=self._endpoint.port,
            timeout=self._timeout,
            retries=self._retries,
        )
        try:
            ok = client.connect()
        except (PymodbusException, OSError) as e:
            raise ModbusIOError(f"Failed to connect to {self._endpoint}: {e}", cause=e) from e
        if not ok:
            client.close()
            raise ModbusIOError(f"Failed to connect to {self._endpoint}", cause=None)
        self._client = client
        logger.debug("TCP connection open to %s (unit %d)", self._endpoint, self._unit_id)

    def close(self) -> None:
        """Close the TCP connection. The handle is dropped even if close raises."""
        client, self._client = self._client, None
        if client is not None:
            client.close()

    def _call(self, defn_name: str, table: ModbusTable, offset: int, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            rr = func(*args, **kwargs)
        except (PymodbusException, OSError) as e:
            raise ModbusIOError(str(e), signal=defn_name, table=table.value, offset=offset, cause=e) from e
        if rr.isError():
            raise ModbusIOError(
                str(rr),
                signal=defn_name,
                table=table.value,
                offset=offset,
                cause=getattr(rr, "exception", None),
            )
        return rr

    def read_bits(self, defn: SignalDef) -> list[bool]:
        """Read a coil or discrete-input block; a short response is padded with False."""
        client = self._get_client()
        if defn.table == ModbusTable.COIL:
            func = client.read_coils
        elif defn.table == ModbusTable.DISCRETE_INPUT:
            func = client.read_discrete_inputs
        else:
            raise ModbusIOError(
                f"Bit read not supported for table {defn.table.value}",
                signal=defn.name,
                table=defn.table.value,
                offset=defn.offset,
            )
        rr = self._call(defn.name, defn.table, defn.offset, func, defn.offset, count=defn.count, device_id=self._unit_id)
        bits = list(getattr(rr, "bits", None) or [])
        return [bool(bits[i]) if i < len(bits) else False for i in range(defn.count)]

    def read_registers(self, defn: SignalDef) -> list[int]:
        """Read an input-register block; a short response is an error."""
        client = self._get_client()
        if defn.table != ModbusTable.INPUT_REGISTER:
            raise ModbusIOError(
                f"Register read not supported for table {defn.table.value}",
                signal=defn.name,
                table=defn.table.value,
                offset=defn.offset,
            )
        rr = self._call(defn.name, defn.table, defn.offset, client.read_input_registers, defn.offset, count=defn.count, device_id=self._unit_id)
        registers = getattr(rr, "registers", None)
        if not registers or len(registers) < defn.count:
            raise ModbusIOError(
                "Short register response",
                signal=defn.name,
                table=defn.table.value,
                offset=defn.offset,
            )
        return [int(r) for r in registers[: defn.count]]

    def write_coil(self, address: int, value: bool) -> None:
        """Write Single Coil (function code 5)."""
        client = self._get_client()
        self._call(
            f"coil {address}",
            ModbusTable.COIL,
            address,
            client.write_coil,
            address,
            bool(value),
            device_id=self._unit_id,
        )

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"ModbusTransport({self._endpoint}, unit={self._unit_id}, {state})"
