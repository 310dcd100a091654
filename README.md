# hlmodem

Control an HL7812 cellular modem through its AT command interface, open TCP
connections through the modem's own IP stack, and drive a PCA9534 8-bit I2C
GPIO expander.

The package has four modules:

- `hlmodem.at` parses AT responses. `ATParser` splits a response frame into
  `ATLine` objects. Each `ATLine` splits `+KEY: a,b,c` lines into `ATValue`
  items.
- `hlmodem.base` holds `HL7812Base`, which sends general modem commands:
  echo, ping, reset, IMSI/IMEI/manufacturer/firmware, CCID, clock, CFUN,
  CREG/CEREG, signal quality, APN and IP address. Its `initialize` method
  waits for network registration in LTE mode and then sets the APN.
- `hlmodem.client` holds `HL7812Client`, an `HL7812Base` that adds a TCP
  client on top of the modem's `AT+KTCP*` commands: `connect`, `write`,
  `available`, `read`, `read_byte`, `stop` and `connected`.
- `hlmodem.pca9534` holds `PCA9534`, which drives the GPIO expander through
  any object that implements the `I2CBus` interface.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Parsing AT responses

```python
from hlmodem.at import ATParser

parser = ATParser("\r\n+CESQ: 99,99,255,255,20,45\r\n\r\nOK\r\n")
parser.is_ok()                      # True: the last line is OK
parser.is_success()                 # True: no line starts with ERROR
line = parser.line_by_key("+CESQ")  # last line starting with the key
len(line)                           # 6
line.get_command()                  # "+CESQ"
str(line.get_value(4))              # "20"
line.get_value(9)                   # None
```

`ATParser.parse(frame)` replaces the parsed content with a new frame, and
`ATParser.line(index)` returns a line by position, or `None` past the end.

## Talking to the modem

The modem classes do not open a port themselves. You pass in:

- a `stream`: an object connected to the modem with the methods
  `available()` (number of bytes waiting), `read()` (one byte as an int),
  `write(data)` and `flush()`; a thin wrapper around a serial port will do;
- optionally a `clock` with `millis()` and `delay(ms)`. Without one, the
  host's monotonic timer is used (`hlmodem.base.SystemClock`).

```python
from hlmodem.base import Mode
from hlmodem.client import HL7812Client

modem = HL7812Client(stream)
modem.initialize(Mode.LTE, "", True, 60000)   # empty APN selects the default
print(modem.get_imei())

signal = modem.get_signal_information()       # SignalInformation or None
if signal is not None:
    print(signal.rsrq, signal.rsrp)

try:
    session = modem.connect("server.example.com", 8080)
except ConnectionError:
    print("no connection")
else:
    modem.write(b"hello")
    if modem.available():
        print(modem.read(64))
    modem.stop()
```

Points to know:

- The getters return the value as a string, or an empty string when the
  modem does not answer with a usable response. The setters return `True`
  when the modem answers OK.
- `get_cpin()` does not query the modem and always returns an empty string.
- `connect` accepts a host name as a string and returns the session number
  (1 to 6). It deletes every configured session first. It raises
  `ConnectionError` when the session cannot be set up, and for an
  `ipaddress` object given as the host.
- `write` takes a byte value or bytes and returns the number of bytes sent,
  or 0 on failure. `read_byte` returns `None` when nothing was received.
- `peek()` always returns 0.
- `connected()` queries the socket state. If the socket is not connected,
  it discards any pending received data.
- `set_event_callback(callback)` registers `callback(type, value)`. It is
  called with `(0, 0)` on each pass of the registration wait in
  `initialize`.

Progress and the frames exchanged with the modem go to the standard
`logging` module under the `hlmodem.base` and `hlmodem.client` loggers.

## GPIO expander

```python
from hlmodem.pca9534 import HIGH, PCA9534, PinMode

expander = PCA9534(bus)            # default address 0x38
if expander.exists():
    expander.pin_mode(0, PinMode.OUTPUT)
    expander.digital_write(0, HIGH)
    expander.pin_mode(1, PinMode.INPUT_POLARITY_INVERSION)
    level = expander.digital_read(1)
```

Here `bus` is an object that provides the methods of `I2CBus`:

- `write(address, data)`
- `read(address, count)`
- `probe(address)`

A pin number outside 0 to 7, or an unknown mode, raises `ValueError`. An
empty read from the bus raises `OSError`. The `configuration`,
`output_state` and `polarity_inversion` properties show the register values
last written.

## What this package does not do

It provides no command-line tool. It does not open serial ports or I2C
buses: you supply the stream and bus objects. The TCP client handles a
single session at a time, and it cannot connect by IP address object.