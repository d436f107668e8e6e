"""A logging handler that writes aligned, optionally coloured lines for a terminal."""

from __future__ import annotations

import logging
import traceback
from datetime import datetime
from typing import Any, Optional, TextIO

_BOLD = "1"
_BOLD_RED = "1;31"

# Thresholds in descending order: label and colour for each level.
_LEVELS = (
    (logging.CRITICAL, "FATAL", "31"),
    (logging.ERROR, "ERROR", "31"),
    (logging.WARNING, " WARN", "33"),
    (logging.INFO, " INFO", "34"),
    (logging.DEBUG, "DEBUG", "37"),
)


def _level_entry(level: int) -> tuple[str, str]:
    for threshold, label, color in _LEVELS:
        if level >= threshold:
            return label, color
    return _LEVELS[-1][1], _LEVELS[-1][2]


def level_label(level: int) -> str:
    """Return the fixed-width label printed for a logging level."""
    return _level_entry(level)[0]


def _timestamp(now: datetime) -> str:
    return f"{now:%b} {now.day:>2} {now:%H:%M:%S}.{now.microsecond // 1000:03d}"


def _is_stack_end(lines: list[str], index: int) -> bool:
    line = lines[index]
    if not line or line[0].isspace() or index == 0:
        return False
    return lines[index - 1][:1].isspace()


def format_stacktrace(text: str) -> str:
    """Separate the sections of a chained stack trace with a blank line.

    A section ends at the exception line that follows its indented frames;
    a blank line is inserted after it unless one is already there.
    """
    lines = text.split("\n")
    out: list[str] = []
    for index, line in enumerate(lines):
        out.append(line)
        following = lines[index + 1] if index + 1 < len(lines) else ""
        if _is_stack_end(lines, index) and following.strip():
            out.append("")
    return "\n".join(out)


def _describe(err: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(err), err, err.__traceback__)
    ).rstrip("\n")


class CliHandler(logging.StreamHandler):
    """Writes each record as a level, timestamp, padded message and sorted fields.

    Structured fields are taken from a ``fields`` mapping on the record (pass
    ``extra={"fields": {...}}``). A ``source`` field is not printed; an
    ``error`` field holding an exception is followed by its stack trace.
    """

    def __init__(self, stream: Optional[TextIO] = None, use_colors: bool = True) -> None:
        super().__init__(stream)
        self.padding = 2
        self.use_colors = use_colors and self._stream_is_tty()

    def _stream_is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        if not callable(isatty):
            return False
        try:
            return bool(isatty())
        except (OSError, ValueError):
            return False

    def _paint(self, text: str, code: str) -> str:
        if not self.use_colors:
            return text
        return f"\x1b[{code}m{text}\x1b[0m"

    def _render(self, record: logging.LogRecord) -> str:
        label, color = _level_entry(record.levelno)
        fields: dict[str, Any] = getattr(record, "fields", None) or {}

        level_text = self._paint(f"{label:>{self.padding + 1}}", _BOLD)
        head = self._paint(
            f"{level_text}: [{_timestamp(datetime.now())}] {record.getMessage():<25}",
            color,
        )
        parts = [head]
        parts.extend(
            f" {self._paint(name, color)}={fields[name]}"
            for name in sorted(fields)
            if name != "source"
        )
        out = "".join(parts) + "\n"

        err = fields.get("error")
        if isinstance(err, BaseException):
            formatted = (
                f"\n{self._paint('Stacktrace:', _BOLD_RED)}\n{_describe(err)}\n\n"
            )
            out += format_stacktrace(formatted)
        return out

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.stream.write(self._render(record))
            self.flush()
        except Exception:
            self.handleError(record)