"""Panel settings and operator endpoint parsing."""

from dataclasses import dataclass

from .errors import ConfigError
from .series import DEFAULT_CAPACITY
from .types import Endpoint, WordOrder

DEFAULT_HOST = "192.168.68.111"
DEFAULT_PORT = 502


@dataclass(frozen=True)
class PanelConfig:
    """Settings shared by every connection the panel opens."""

    unit_id: int = 1
    timeout: float = 3.0
    retries: int = 1
    poll_interval: float = 0.5
    history_size: int = DEFAULT_CAPACITY
    word_order: WordOrder = WordOrder.HIGH_LOW

    def __post_init__(self) -> None:
        if not 0 <= self.unit_id <= 255:
            raise ConfigError(f"unit_id must be 0-255, got {self.unit_id}", field="unit_id")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}", field="timeout")
        if self.retries < 0:
            raise ConfigError(f"retries must be >= 0, got {self.retries}", field="retries")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be positive, got {self.poll_interval}", field="poll_interval")
        if self.history_size < 1:
            raise ConfigError(f"history_size must be >= 1, got {self.history_size}", field="history_size")
        try:
            # frozen: bypass __setattr__ to store the coerced enum
            object.__setattr__(self, "word_order", WordOrder(self.word_order))
        except ValueError:
            raise ConfigError(f"Unknown word order: {self.word_order!r}", field="word_order") from None


def parse_port(value: str | int) -> int:
    """Parse a TCP port from operator input; accepts int or decimal string."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid port: {value!r}", field="port")
    if isinstance(value, int):
        port = value
    else:
        text = str(value).strip()
        if not (text.isascii() and text.isdigit()):
            raise ConfigError(f"Invalid port: {value!r}", field="port")
        port = int(text)
    if not 1 <= port <= 65535:
        raise ConfigError(f"Port out of range 1-65535: {port}", field="port")
    return port


def parse_endpoint(host: str | None, port: str | int = DEFAULT_PORT) -> Endpoint:
    """Build an Endpoint from operator input. Raises ConfigError for malformed host or port."""
    h = (host or "").strip()
    if not h:
        raise ConfigError("Host cannot be empty", field="host")
    if any(c.isspace() for c in h):
        raise ConfigError(f"Invalid host: {host!r}", field="host")
    return Endpoint(host=h, port=parse_port(port))
