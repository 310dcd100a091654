"""Driver for the PCA9534 8-bit I2C GPIO expander."""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol

DEFAULT_ADDRESS = 0x38
PIN_COUNT = 8

LOW = 0
HIGH = 1

INPUT_REG = 0x00
OUTPUT_REG = 0x01
POLARITY_INVERSION_REG = 0x02
CONFIGURATION_REG = 0x03


class PinMode(IntEnum):
    """Direction of an expander pin."""

    INPUT = 0x00
    OUTPUT = 0x01
    INPUT_POLARITY_INVERSION = 0x04


class I2CBus(Protocol):
    """The I2C bus operations the driver needs."""

    def write(self, address: int, data: bytes) -> None:
        """Send ``data`` to the device at ``address``."""
        ...

    def read(self, address: int, count: int) -> bytes:
        """Read ``count`` bytes from the device at ``address``."""
        ...

    def probe(self, address: int) -> bool:
        """True if a device acknowledges at ``address``."""
        ...


class PCA9534:
    """A PCA9534 expander on an I2C bus."""

    def __init__(self, bus: I2CBus, address: int = DEFAULT_ADDRESS) -> None:
        self.bus = bus
        self.address = address
        self._port = 0
        self._state = 0
        self._polarity_inversion = 0

    @property
    def configuration(self) -> int:
        """The configuration register as last written (1 = input)."""
        return self._port

    @property
    def output_state(self) -> int:
        """The output register as last written."""
        return self._state

    @property
    def polarity_inversion(self) -> int:
        """The polarity inversion register as last written."""
        return self._polarity_inversion

    def exists(self) -> bool:
        """True if the chip answers on the bus."""
        return self.bus.probe(self.address)

    def pin_mode(self, pin: int, mode: PinMode | int) -> None:
        """Configure ``pin`` as input, output or inverted input."""
        _check_pin(pin)
        try:
            mode = PinMode(mode)
        except ValueError:
            raise ValueError(f"incorrect pin mode: {mode!r}") from None

        mask = 1 << pin
        if mode is PinMode.OUTPUT:
            self._port &= ~mask & 0xFF
        else:
            self._port |= mask
            if mode is PinMode.INPUT:
                self._polarity_inversion &= ~mask & 0xFF
            else:
                self._polarity_inversion |= mask
            self._write_register(POLARITY_INVERSION_REG, self._polarity_inversion)
        self._write_register(CONFIGURATION_REG, self._port)

    def digital_write(self, pin: int, value: int) -> None:
        """Drive ``pin`` LOW (0) or HIGH (anything else)."""
        _check_pin(pin)
        mask = 1 << pin
        if value == LOW:
            self._state &= ~mask & 0xFF
        else:
            self._state |= mask
        self._write_register(OUTPUT_REG, self._state)

    def digital_read(self, pin: int) -> int:
        """Read ``pin``, returning HIGH or LOW."""
        _check_pin(pin)
        self._write_register(INPUT_REG, self._port)
        data = self.bus.read(self.address, 1)
        if not data:
            raise OSError(f"no data read from I2C device 0x{self.address:02X}")
        return HIGH if data[0] & (1 << pin) else LOW

    def _write_register(self, register: int, value: int) -> None:
        self.bus.write(self.address, bytes((register & 0xFF, value & 0xFF)))


def _check_pin(pin: int) -> None:
    if not 0 <= pin < PIN_COUNT:
        raise ValueError(f"pin out of range: {pin}")