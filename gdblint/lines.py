# gdblint/lines.py
"""
Logical line reconstruction.

gdb joins a physical line ending in a backslash with the line that follows
it.  ``LineReader`` replays that joining over a text stream and tags each
logical line with the number of the physical line it started on, so that
findings point at the line a user would look at first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, TextIO

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH: int = 1024

CONTINUATION: str = "\\"


@dataclass(frozen=True)
class LogicalLine:
    text: str
    line_number: int


class LineReader:
    """
    Single-pass iterator of ``LogicalLine``s over *stream*.

    Logical lines longer than *max_length* characters are cut short without
    any diagnostic.  A reader is an explicit cursor: make a new one to
    start over.
    """

    def __init__(self, stream: Iterable[str], max_length: int = MAX_LINE_LENGTH) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self._lines = iter(stream)
        self.max_length = max_length
        self.physical_line = 0
        self._buffer: List[str] = []
        self._start: Optional[int] = None
        self._exhausted = False

    def __iter__(self) -> "LineReader":
        return self

    def __next__(self) -> LogicalLine:
        while not self._exhausted:
            raw = next(self._lines, None)
            if raw is None:
                self._exhausted = True
                break

            self.physical_line += 1
            if self._start is None:
                self._start = self.physical_line

            content = _strip_terminator(raw)
            if content.endswith(CONTINUATION):
                self._buffer.append(content[:-1])
                continue

            self._buffer.append(content)
            return self._emit()

        if self._buffer and any(self._buffer):
            return self._emit()
        raise StopIteration

    def _emit(self) -> LogicalLine:
        text = "".join(self._buffer)
        if len(text) > self.max_length:
            logger.debug(
                "line %d truncated from %d to %d characters",
                self._start, len(text), self.max_length,
            )
            text = text[: self.max_length]
        line = LogicalLine(text=text, line_number=self._start or self.physical_line)
        self._buffer = []
        self._start = None
        return line


def _strip_terminator(raw: str) -> str:
    if raw.endswith("\r\n"):
        return raw[:-2]
    if raw.endswith("\n") or raw.endswith("\r"):
        return raw[:-1]
    return raw


@dataclass
class LineMap:
    """Append-only sequence of logical lines."""

    lines: List[LogicalLine] = field(default_factory=list)
    max_line_number: int = 0

    def append(self, line: LogicalLine) -> None:
        if line.line_number <= 0:
            return
        self.lines.append(line)
        if line.line_number > self.max_line_number:
            self.max_line_number = line.line_number

    def extend(self, lines: Iterable[LogicalLine]) -> None:
        for line in lines:
            self.append(line)

    @property
    def width(self) -> int:
        """Zero-padding width for rendering line numbers."""
        return len(str(self.max_line_number)) + 1 if self.max_line_number else 1

    def clear(self) -> None:
        self.lines.clear()
        self.max_line_number = 0

    def __iter__(self) -> Iterator[LogicalLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> LogicalLine:
        return self.lines[index]


def read_lines(stream: TextIO, max_length: int = MAX_LINE_LENGTH) -> LineMap:
    """Reconstruct every logical line of *stream* into a new ``LineMap``."""
    linemap = LineMap()
    linemap.extend(LineReader(stream, max_length=max_length))
    logger.debug(
        "read %d logical lines (last physical line %d)",
        len(linemap), linemap.max_line_number,
    )
    return linemap
