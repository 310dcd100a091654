"""TCP client running over the modem's internal IP stack."""

from __future__ import annotations

import ipaddress
import logging
from typing import Optional, Union

from .at import ATParser
from .base import EOF_PATTERN, Clock, HL7812Base, Stream, _to_int

logger = logging.getLogger(__name__)

RX_BUFFER_LENGTH = 512
MAX_SESSIONS = 6
CONNECT_TIMEOUT_MS = 5000
RECEIVE_TIMEOUT_MS = 1000
SEND_ACK_TIMEOUT_MS = 250

_STATE_CONNECTED = 3
_STATE_INDEX = 0
_RECEIVE_LENGTH_INDEX = 3


class HL7812Client(HL7812Base):
    """A single TCP session opened through ``AT+KTCP*`` commands."""

    def __init__(self, stream: Stream, clock: Optional[Clock] = None) -> None:
        super().__init__(stream, clock)
        self._session: Optional[int] = None
        self._rx = b""
        self._rx_index = 0
        self._available_called = False

    @property
    def session(self) -> Optional[int]:
        """The current session number, or None when none is configured."""
        return self._session

    def connect(
        self,
        host: Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address],
        port: int,
    ) -> int:
        """Open a TCP connection and return the session number (1 to 6).

        Raises ConnectionError if the session cannot be set up.
        """
        if not isinstance(host, str):
            raise ConnectionError("connecting by address object is not supported")
        logger.info("Connect to server")
        self._delete_all_sessions()
        session = self._configure_session(host, port)
        if session is not None:
            if self._send_command(f"AT+KTCPCNX={session}").is_ok():
                state = self._value_from_notif(
                    f"+KTCP_IND: {session}", 1, CONNECT_TIMEOUT_MS
                )
                if state and _to_int(state) == 1:
                    return session
        raise ConnectionError(f"cannot connect to {host}:{port}")

    def write(self, data: Union[int, bytes, bytearray, memoryview]) -> int:
        """Send ``data`` (a byte value or bytes); return the count sent, 0 on failure."""
        payload = bytes([data]) if isinstance(data, int) else bytes(data)
        if self._session is None or not payload:
            return 0
        parser = self._send_command(f"AT+KTCPSND={self._session},{len(payload)}")
        first = parser.line(0)
        if len(parser) != 1 or first is None or first.line != "CONNECT":
            return 0
        self.stream.write(payload)
        self._write_text(EOF_PATTERN + "\r\n")
        parser.parse(self._get_frame(SEND_ACK_TIMEOUT_MS))
        return len(payload) if parser.is_ok() else 0

    def available(self) -> bool:
        """True if received data is waiting, fetching it from the modem if needed."""
        length = 0
        if self._rx_index == 0 or self._rx_index >= len(self._rx):
            length = self._receive_length()
        if length > 0:
            self._rx = self._read_receive_frame(min(length, RX_BUFFER_LENGTH))
            self._rx_index = 0
        self._available_called = True
        return len(self._rx) > 0

    def read_byte(self) -> Optional[int]:
        """The next received byte, or None if nothing was received."""
        if not self._available_called:
            self.available()
        self._available_called = False
        if self._rx_index >= len(self._rx):
            return None
        byte = self._rx[self._rx_index]
        self._rx_index += 1
        if self._rx_index >= len(self._rx):
            self._rx = b""
            self._rx_index = 0
        return byte

    def read(self, size: int) -> bytes:
        """Up to ``size`` received bytes; fewer if the data runs out."""
        out = bytearray()
        while len(out) < size:
            byte = self.read_byte()
            if byte is None:
                break
            out.append(byte)
        return bytes(out)

    def peek(self) -> int:
        """Always 0: looking ahead is not offered by this client."""
        return 0

    def flush(self) -> None:
        """Drop the parsed response and wait for pending output to be sent."""
        self._parser.clear()
        self.stream.flush()

    def stop(self) -> None:
        """Close the TCP connection of the current session."""
        if self._session is None:
            return
        self._send_command(f"AT+KTCPCLOSE={self._session}")

    def connected(self) -> bool:
        """True if the socket is connected; otherwise discard any pending data."""
        state = self._socket_state() & 0xFF
        if state == _STATE_CONNECTED:
            return True
        self._flush_data_buffer()
        return False

    def __bool__(self) -> bool:
        return True

    # Session management.

    def _configure_session(self, host: str, port: int) -> Optional[int]:
        if self._session is None:
            value = self._value_from_cmd(
                f'AT+KTCPCFG=1,0,"{host}",{port}', "+KTCPCFG", 0
            )
            self._session = _to_int(value) if value else None
        return self._session

    def _list_sessions(self) -> ATParser:
        return self._send_command("AT+KTCPCFG?")

    def _session_count(self) -> int:
        return len(self._list_sessions()) - 1

    def _session_exists(self, session: int) -> bool:
        return self._list_sessions().line_by_key(f"+KTCPCFG: {session}") is not None

    def _delete_session(self, session: int) -> bool:
        return self._send_command(f"AT+KTCPDEL={session}").is_ok()

    def _delete_all_sessions(self) -> None:
        parser = self._list_sessions()
        sessions = [
            number
            for number in range(1, MAX_SESSIONS + 1)
            if parser.line_by_key(f"+KTCPCFG: {number}") is not None
        ]
        for number in sessions:
            logger.debug("deleteSession: %d", number)
            if self._delete_session(number) and number == self._session:
                self._session = None

    # Socket state and reception.

    def _tcp_state(self, index: int) -> int:
        if self._session is None:
            return -1
        value = self._value_from_cmd(
            f"AT+KTCPSTAT={self._session}", "+KTCPSTAT", index
        )
        return _to_int(value)

    def _receive_length(self) -> int:
        return self._tcp_state(_RECEIVE_LENGTH_INDEX)

    def _socket_state(self) -> int:
        return self._tcp_state(_STATE_INDEX)

    def _read_receive_frame(self, size: int) -> bytes:
        if self._session is None or size <= 0:
            return b""
        self.flush()
        command = f"AT+KTCPRCV={self._session},{size}"
        logger.debug("-> %s", command)
        self._write_text(command + "\r\n")
        return self._get_binary_frame(size, RECEIVE_TIMEOUT_MS)

    def _flush_data_buffer(self) -> None:
        while self.available():
            self.read_byte()