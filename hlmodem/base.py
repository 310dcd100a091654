"""Core AT command handling for an HL7812 cellular modem."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Protocol

from .at import ATParser

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 2000
DEFAULT_APN = "orange.m2m.spec"
EOF_PATTERN = "--EOF--Pattern--"

_INTEGER = re.compile(r"\s*([-+]?\d+)")

EventCallback = Callable[[int, int], None]


class Mode(IntEnum):
    """Radio mode selected at initialisation."""

    LTE = 0
    GSM = 1
    GNSS = 2


@dataclass(frozen=True)
class SignalInformation:
    """Extended signal quality as reported by ``AT+CESQ``."""

    rssi: str
    ber: str
    rscp: str
    ecno: str
    rsrq: str
    rsrp: str


class Stream(Protocol):
    """A byte stream connected to the modem, such as a serial port."""

    def available(self) -> int:
        """Number of bytes waiting to be read."""
        ...

    def read(self) -> int:
        """Read one byte."""
        ...

    def write(self, data: bytes) -> None:
        """Send ``data`` to the modem."""
        ...

    def flush(self) -> None:
        """Wait until all written data has been sent."""
        ...


class Clock(Protocol):
    """Millisecond time source with a blocking delay."""

    def millis(self) -> int:
        """Current time in milliseconds."""
        ...

    def delay(self, ms: int) -> None:
        """Block for ``ms`` milliseconds."""
        ...


class SystemClock:
    """Clock backed by the host's monotonic timer."""

    def millis(self) -> int:
        return int(time.monotonic() * 1000)

    def delay(self, ms: int) -> None:
        time.sleep(ms / 1000)


def _to_int(text: str) -> int:
    """Leading integer of ``text``, or 0 if it has none."""
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else 0


class HL7812Base:
    """Basic control of the modem through AT commands."""

    def __init__(self, stream: Stream, clock: Optional[Clock] = None) -> None:
        self.stream = stream
        self.clock: Clock = clock if clock is not None else SystemClock()
        self._parser = ATParser()
        self._callback: Optional[EventCallback] = None

    def initialize(
        self,
        mode: Mode = Mode.LTE,
        apn: str = "",
        is_reset: bool = False,
        timeout: int = DEFAULT_TIMEOUT_MS,
    ) -> bool:
        """Bring the modem up and, in LTE mode, wait for registration and set the APN."""
        is_started = True
        if is_reset:
            while not self.reset():
                pass
            # Wait for the module to go down after the reset request.
            while is_started:
                is_started = self.ping()
                self.clock.delay(250)

        while not is_started:
            is_started = self.ping()

        current = self.clock.millis()
        if self.set_echo(False):
            logger.info("Set Echo OK!")

        if mode is Mode.LTE:
            registered = False
            waited = 0
            while not registered and self.clock.millis() - current <= timeout:
                creg = self.get_creg()
                if creg and _to_int(creg) == 1:
                    registered = True
                else:
                    self.clock.delay(250)
                    current = self.clock.millis()
                waited += 250
                logger.debug("Time=%d", waited)
                if self._callback is not None:
                    self._callback(0, 0)
            if not apn:
                apn = DEFAULT_APN
            self.set_apn(apn)
            self.set_gprs(apn)
        return True

    def set_echo(self, mode: bool = True) -> bool:
        """Turn command echo on or off."""
        return self._send_command("ATE" + ("1" if mode else "0")).is_ok()

    def ping(self) -> bool:
        """True if the modem answers ``AT`` with OK."""
        return self._send_command("AT", 500).is_ok()

    def reset(self) -> bool:
        """Ask the modem to restart with full functionality."""
        return self._send_command("AT+CFUN=1,1").is_ok()

    def get_imsi(self) -> str:
        """International mobile subscriber identity, or an empty string."""
        return self._information_identification("AT+CIMI")

    def get_imei(self) -> str:
        """Product serial number, or an empty string."""
        return self._information_identification("AT+GSN")

    def get_gmi(self) -> str:
        """Manufacturer identification, or an empty string."""
        return self._information_identification("AT+GMI")

    def get_gmr(self) -> str:
        """Firmware revision, or an empty string."""
        return self._information_identification("AT+GMR")

    def get_date(self) -> str:
        """Date field of the modem clock, or an empty string."""
        return self._get_clock(0)

    def get_time(self) -> str:
        """Time field of the modem clock, or an empty string."""
        return self._get_clock(1)

    def _get_clock(self, index: int) -> str:
        return self._value_from_cmd("AT+CCLK?", "+CCLK", index)

    def get_ccid(self) -> str:
        """SIM card identification, or an empty string."""
        return self._value_from_cmd("AT+CCID?", "+CCID", 0)

    def get_cfun(self) -> str:
        """Phone functionality level, or an empty string."""
        return self._value_from_cmd("AT+CFUN?", "+CFUN", 0)

    def set_cfun(self, mode: int) -> bool:
        """Set the phone functionality level (0, 1 or 4)."""
        return self._send_command(f"AT+CFUN={mode}").is_ok()

    def get_cpin(self) -> str:
        """PIN status; not queried from the modem, always empty."""
        return ""

    def get_rssi(self) -> str:
        """Signal strength from ``AT+CSQ``, or an empty string."""
        return self._value_from_cmd("AT+CSQ", "+CSQ", 0)

    def get_signal_information(self) -> Optional[SignalInformation]:
        """Extended signal quality, or None if the response is unusable."""
        parser = self._send_command("AT+CESQ")
        line = parser.line_by_key("+CESQ")
        if parser.is_ok() and line is not None and len(line) == 6:
            return SignalInformation(*(str(value) for value in line))
        return None

    def get_cops(self) -> str:
        """Selected operator name, or an empty string."""
        return self._value_from_cmd("AT+COPS?", "+COPS", 2)

    def get_creg(self) -> str:
        """Network registration state, or an empty string."""
        return self._value_from_cmd("AT+CREG?", "+CREG", 1)

    def set_creg(self, mode: int) -> bool:
        """Set the network registration reporting mode."""
        return self._send_command(f"AT+CREG={mode}").is_ok()

    def get_cereg(self) -> str:
        """EPS network registration status, or an empty string."""
        return self._value_from_cmd("AT+CEREG", "+CEREG", 1)

    def set_cereg(self, mode: int) -> bool:
        """Set the EPS registration reporting mode."""
        return self._send_command(f"AT+CEREG={mode}").is_ok()

    def set_apn(self, apn: str) -> bool:
        """Define the PDP context with ``apn``."""
        return self._send_command(f'AT+CGDCONT=1,"IPV4V6","{apn}"').is_ok()

    def set_gprs(self, apn: str) -> bool:
        """Define the GPRS connection configuration with ``apn``."""
        return self._send_command(f'AT+KCNXCFG=1,"GPRS","{apn}"').is_ok()

    def get_apn(self) -> str:
        """The active APN, or an empty string."""
        return self._value_from_cmd("AT+CGCONTRDP", "+CGCONTRDP", 2)

    def get_ip_address(self) -> str:
        """The assigned IP address, or an empty string."""
        return self._value_from_cmd("AT+CGCONTRDP", "+CGCONTRDP", 3)

    def set_event_callback(self, callback: Optional[EventCallback]) -> None:
        """Register ``callback(type, value)`` for modem events."""
        self._callback = callback

    # Helpers shared with subclasses.

    def _information_identification(self, request: str) -> str:
        parser = self._send_command(request)
        if parser.is_ok() and len(parser) >= 2:
            line = parser.line(len(parser) - 2)
            if line is not None:
                return line.line
        return ""

    def _value_from_cmd(self, request: str, key: str, index: int) -> str:
        parser = self._send_command(request)
        line = parser.line_by_key(key)
        if parser.is_ok() and line is not None and len(line) > index:
            return str(line.values[index])
        return ""

    def _value_from_notif(self, command: str, index: int, timeout: int) -> str:
        parser = self._get_notification(command, timeout)
        line = parser.line_by_key(command)
        if line is not None and len(line) > index:
            return str(line.values[index])
        return ""

    def _write_text(self, text: str) -> None:
        self.stream.write(text.encode("latin-1"))

    def _send_command(self, cmd: str, timeout: int = DEFAULT_TIMEOUT_MS) -> ATParser:
        self._flush_data()
        logger.debug("-> %s", cmd)
        self._write_text(cmd + "\r\n")
        frame = self._get_frame(timeout)
        if frame:
            logger.debug("<- %r", frame)
        else:
            logger.debug("<- TIMEOUT")
        self._parser.parse(frame)
        return self._parser

    def _get_frame(self, timeout: int) -> str:
        current = self.clock.millis()
        frame = ""
        started = False
        finish = False
        while not finish and self.clock.millis() - current <= timeout:
            if not self.stream.available():
                continue
            char = chr(self.stream.read())
            if started:
                frame += char
            elif char not in "\r\n":
                frame += char
                started = True
            if frame:
                current = self.clock.millis()
                timeout = 100
            finish = frame.endswith("OK\r\n")
        return frame

    def _get_binary_frame(self, length: int, timeout: int) -> bytes:
        current = self.clock.millis()
        frame = ""
        data = bytearray()
        reading = False
        data_done = False
        finish = False
        while not finish and self.clock.millis() - current <= timeout:
            if not self.stream.available():
                continue
            byte = self.stream.read()
            if not reading:
                frame += chr(byte)
                if frame.endswith("CONNECT\r\n"):
                    reading = True
                    frame = ""
            elif not data_done:
                data.append(byte)
                data_done = len(data) >= length
            else:
                frame += chr(byte)
                finish = frame.endswith(EOF_PATTERN + "\r\nOK\r\n")
            current = self.clock.millis()
            timeout = 100
        return bytes(data)

    def _get_notification(self, received_cmd: str, timeout: int) -> ATParser:
        initial_timeout = timeout
        current = self.clock.millis()
        frame = ""
        started = False
        finish = False
        while not finish and self.clock.millis() - current <= timeout:
            if not self.stream.available():
                continue
            char = chr(self.stream.read())
            if started:
                frame += char
            elif char not in "\r\n":
                frame += char
                started = True
            if started:
                current = self.clock.millis()
                timeout = 100
            if frame.endswith("\r\n"):
                if frame.startswith(received_cmd):
                    finish = True
                    logger.debug("Found=%r", frame)
                else:
                    logger.debug("Ignore=%r", frame)
                    frame = ""
                    timeout = initial_timeout
        self._parser.parse(frame)
        return self._parser

    def _flush_data(self) -> None:
        self._parser.clear()
        while self.stream.available():
            self.stream.read()
        self.stream.flush()