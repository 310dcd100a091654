import pytest

from hlmodem.pca9534 import (
    CONFIGURATION_REG,
    DEFAULT_ADDRESS,
    HIGH,
    INPUT_REG,
    LOW,
    OUTPUT_REG,
    PCA9534,
    POLARITY_INVERSION_REG,
    PinMode,
)


class FakeBus:
    def __init__(self, present=True, input_byte=0):
        self.present = present
        self.input_byte = input_byte
        self.writes = []
        self.reads = []

    def write(self, address, data):
        self.writes.append((address, bytes(data)))

    def read(self, address, count):
        self.reads.append((address, count))
        return bytes([self.input_byte])[:count]

    def probe(self, address):
        return self.present and address == DEFAULT_ADDRESS


def test_default_address_is_documented_value():
    chip = PCA9534(FakeBus())
    assert chip.address == 0x38


def test_exists_reflects_probe():
    assert PCA9534(FakeBus(present=True)).exists() is True
    assert PCA9534(FakeBus(present=False)).exists() is False
    assert PCA9534(FakeBus(present=True), address=0x20).exists() is False


def test_input_mode_writes_polarity_then_configuration():
    bus = FakeBus()
    chip = PCA9534(bus)
    chip.pin_mode(0, PinMode.INPUT)
    assert bus.writes == [
        (DEFAULT_ADDRESS, bytes([POLARITY_INVERSION_REG, 0])),
        (DEFAULT_ADDRESS, bytes([CONFIGURATION_REG, 1])),
    ]


def test_output_mode_writes_configuration_only():
    bus = FakeBus()
    chip = PCA9534(bus)
    chip.pin_mode(0, PinMode.INPUT)
    bus.writes.clear()
    chip.pin_mode(0, PinMode.OUTPUT)
    assert bus.writes == [(DEFAULT_ADDRESS, bytes([CONFIGURATION_REG, 0]))]
    assert chip.configuration == 0


def test_inverted_input_sets_polarity_bit():
    chip = PCA9534(FakeBus())
    chip.pin_mode(3, PinMode.INPUT_POLARITY_INVERSION)
    assert chip.polarity_inversion == chip.configuration
    chip.pin_mode(3, PinMode.INPUT)
    assert chip.polarity_inversion == 0
    assert chip.configuration != 0


def test_all_inputs_then_all_outputs():
    chip = PCA9534(FakeBus())
    for pin in range(8):
        chip.pin_mode(pin, PinMode.INPUT)
    assert chip.configuration == 0xFF
    for pin in range(8):
        chip.pin_mode(pin, PinMode.OUTPUT)
    assert chip.configuration == 0


def test_mode_accepts_plain_int():
    chip = PCA9534(FakeBus())
    chip.pin_mode(1, 0x04)
    assert chip.polarity_inversion == chip.configuration


@pytest.mark.parametrize("mode", [2, 3, 99])
def test_incorrect_mode_raises(mode):
    bus = FakeBus()
    with pytest.raises(ValueError):
        PCA9534(bus).pin_mode(0, mode)
    assert bus.writes == []


@pytest.mark.parametrize("pin", [8, 255, -1])
def test_pin_out_of_range_raises(pin):
    chip = PCA9534(FakeBus())
    with pytest.raises(ValueError):
        chip.pin_mode(pin, PinMode.OUTPUT)
    with pytest.raises(ValueError):
        chip.digital_write(pin, HIGH)
    with pytest.raises(ValueError):
        chip.digital_read(pin)


def test_digital_write_sets_and_clears_bits():
    bus = FakeBus()
    chip = PCA9534(bus)
    for pin in range(8):
        chip.digital_write(pin, HIGH)
    assert bus.writes[-1] == (DEFAULT_ADDRESS, bytes([OUTPUT_REG, 0xFF]))
    for pin in range(8):
        chip.digital_write(pin, LOW)
    assert bus.writes[-1] == (DEFAULT_ADDRESS, bytes([OUTPUT_REG, 0]))
    assert chip.output_state == 0


def test_digital_write_nonzero_counts_as_high():
    chip = PCA9534(FakeBus())
    chip.digital_write(2, 7)
    chip.digital_write(2, LOW)
    chip.digital_write(2, True)
    assert chip.output_state != 0
    chip.digital_write(2, 0)
    assert chip.output_state == 0


def test_digital_read_returns_bit_of_input_byte():
    bus = FakeBus(input_byte=0b00000100)
    chip = PCA9534(bus)
    assert chip.digital_read(2) == HIGH
    assert chip.digital_read(1) == LOW
    assert bus.reads == [(DEFAULT_ADDRESS, 1), (DEFAULT_ADDRESS, 1)]


def test_digital_read_writes_input_register_first():
    bus = FakeBus(input_byte=0)
    chip = PCA9534(bus)
    chip.pin_mode(5, PinMode.OUTPUT)
    bus.writes.clear()
    chip.digital_read(5)
    assert bus.writes == [(DEFAULT_ADDRESS, bytes([INPUT_REG, chip.configuration]))]


def test_digital_read_without_data_raises():
    class EmptyBus(FakeBus):
        def read(self, address, count):
            return b""

    with pytest.raises(OSError):
        PCA9534(EmptyBus()).digital_read(0)