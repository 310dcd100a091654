"""Parsing of AT command responses into lines and comma-separated values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class ATValue:
    """One comma-separated field of an AT response line."""

    value: str

    def __str__(self) -> str:
        return self.value


class ATLine:
    """A single line of an AT response.

    Lines of the form ``+KEY: a,b,c`` are split into values; other lines
    carry no values.
    """

    def __init__(self, line: str) -> None:
        self.line = line
        self.values: tuple[ATValue, ...] = tuple(self._split_values())

    def _split_values(self) -> Iterator[ATValue]:
        if self.is_ok() or not self.line.startswith("+"):
            return
        colon = self.line.find(":")
        if colon == -1:
            return
        pos = colon + 2
        while pos < len(self.line):
            end = self.line.find(",", pos)
            if end == -1:
                end = len(self.line)
            yield ATValue(self.line[pos:end])
            pos = end + 1

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[ATValue]:
        return iter(self.values)

    def __str__(self) -> str:
        return self.line

    def __repr__(self) -> str:
        return f"ATLine({self.line!r})"

    def is_ok(self) -> bool:
        """True if the line is an ``OK`` result."""
        return self.line.startswith("OK")

    def is_success(self) -> bool:
        """False if the line is an ``ERROR`` result."""
        return not self.line.startswith("ERROR")

    def is_data(self) -> bool:
        """True if the line is neither ``OK`` nor a ``+`` command line."""
        return not self.is_ok() and not self.is_command()

    def is_command(self) -> bool:
        """True if the line starts with ``+``."""
        return self.line.startswith("+")

    def get_command(self) -> str:
        """The ``+KEY`` part before the colon, or an empty string."""
        if not self.is_command():
            return ""
        colon = self.line.find(":")
        if colon <= 0:
            return ""
        return self.line[:colon]

    def get_value(self, index: int) -> Optional[ATValue]:
        """The value at ``index``, or None past the last value."""
        if index < 0:
            raise IndexError(f"negative value index: {index}")
        if index >= len(self.values):
            return None
        return self.values[index]


def _split_lines(frame: str) -> Iterator[str]:
    pos = 0
    while pos < len(frame):
        end = frame.find("\r\n", pos)
        while end == pos:
            pos += 2
            end = frame.find("\r\n", pos)
        step = 2
        if end == -1:
            end = frame.find("\n", pos)
            if end == -1:
                end = len(frame)
            step = 1
        yield frame[pos:end]
        pos = end + step


class ATParser:
    """A parsed AT response frame made of lines."""

    def __init__(self, frame: str = "") -> None:
        self.frame = ""
        self.lines: list[ATLine] = []
        self.parse(frame)

    def parse(self, frame: str) -> None:
        """Replace the current content with the lines of ``frame``."""
        self.clear()
        self.frame = frame
        self.lines = [ATLine(text) for text in _split_lines(frame)]

    def clear(self) -> None:
        """Drop all parsed lines."""
        self.lines = []

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[ATLine]:
        return iter(self.lines)

    def __str__(self) -> str:
        return "".join(f"{line.line}\r\n" for line in self.lines)

    def line(self, index: int) -> Optional[ATLine]:
        """The line at ``index``, or None past the last line."""
        if index < 0:
            raise IndexError(f"negative line index: {index}")
        if index >= len(self.lines):
            return None
        return self.lines[index]

    def line_by_key(self, key: str) -> Optional[ATLine]:
        """The last line starting with ``key``, or None."""
        return next(
            (line for line in reversed(self.lines) if line.line.startswith(key)),
            None,
        )

    def is_ok(self) -> bool:
        """True if the last line is an ``OK`` result."""
        return bool(self.lines) and self.lines[-1].is_ok()

    def is_success(self) -> bool:
        """True if no line is an ``ERROR`` result."""
        return all(line.is_success() for line in self.lines)