"""Clear exceptions for protolink-modbus: config, connect, poll, write and Modbus I/O errors."""


class ProtolinkError(Exception):
    """Base exception for protolink-modbus."""

    pass


class ConfigError(ProtolinkError, ValueError):
    """Raised when host/port or panel settings are malformed, before any transport attempt."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class UnknownSignalError(ProtolinkError, LookupError):
    """Raised when a signal name is not in the register map."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        self._msg = message or f"Unknown signal: {name!r}"
        super().__init__(self._msg)


class ModbusIOError(ProtolinkError):
    """Raised when a Modbus read/write fails (wraps pymodbus or connection errors)."""

    def __init__(
        self,
        message: str,
        *,
        signal: str | None = None,
        table: str | None = None,
        offset: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.signal = signal
        self.table = table
        self.offset = offset
        self.cause = cause
        super().__init__(message)


class ConnectError(ProtolinkError):
    """Raised when the device refuses or cannot be reached; the panel stays disconnected."""

    def __init__(self, endpoint: object, message: str | None = None, *, cause: BaseException | None = None) -> None:
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(message or f"Failed to connect to {endpoint}")


class PollError(ProtolinkError):
    """Raised when a read fails mid-cycle. The panel answers it by disconnecting."""

    def __init__(self, step: str, message: str, *, cause: BaseException | None = None) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"{step}: {message}")


class WriteError(ProtolinkError):
    """Raised when a relay coil write fails; the connection is left as it was."""

    def __init__(self, index: int, message: str, *, cause: BaseException | None = None) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"relay {index + 1}: {message}")
