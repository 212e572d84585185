"""PanelDisplay: what the presentation layer renders, plus the value formatting it needs."""

from typing import Sequence

from .registermap import RELAY_COUNT

DIGITAL_INPUT_COUNT = 4
NO_DATA_TEXT = "--.--"


def format_channel(value: float | None) -> str:
    """Format an analog reading for a label; None (no data) renders as the placeholder."""
    if value is None:
        return NO_DATA_TEXT
    return f"{value:.2f}"


class PanelDisplay:
    """
    Last known analog values and on/off states. Analog channels hold None
    while there is no data; bits default to False.
    """

    def __init__(self) -> None:
        self.ch1_mA: float | None = None
        self.ch2_mA: float | None = None
        self.digital_in: list[bool] = [False] * DIGITAL_INPUT_COUNT
        self.digital_out: list[bool] = [False] * RELAY_COUNT

    def reset(self) -> None:
        self.ch1_mA = None
        self.ch2_mA = None
        self.digital_in = [False] * DIGITAL_INPUT_COUNT
        self.digital_out = [False] * RELAY_COUNT

    def set_analog(self, ch1_mA: float, ch2_mA: float) -> None:
        self.ch1_mA = ch1_mA
        self.ch2_mA = ch2_mA

    def set_inputs(self, bits: Sequence[bool]) -> None:
        self.digital_in = [bool(bits[i]) if i < len(bits) else False for i in range(DIGITAL_INPUT_COUNT)]

    def set_output(self, index: int, value: bool) -> bool:
        """Set one relay indicator and return its previous value."""
        previous = self.digital_out[index]
        self.digital_out[index] = bool(value)
        return previous

    def as_dict(self) -> dict[str, object]:
        return {
            "ch1_mA": format_channel(self.ch1_mA),
            "ch2_mA": format_channel(self.ch2_mA),
            "digital_in": list(self.digital_in),
            "digital_out": list(self.digital_out),
        }
