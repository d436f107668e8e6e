"""Readers and writers that count the bytes passing through them."""

from __future__ import annotations

import threading
from typing import Any, BinaryIO, Optional

_CHUNK_SIZE = 32 * 1024


class CountedReader:
    """Wraps a reader and counts the bytes read from it.

    After the underlying reader fails, the error is recorded and every
    further read reports end of stream.
    """

    def __init__(self, reader: Any) -> None:
        self._reader = reader
        self._count = 0
        self._err: Optional[BaseException] = None
        self._lock = threading.Lock()

    def bytes_read(self) -> int:
        with self._lock:
            return self._count

    def error(self) -> Optional[BaseException]:
        """Return the recorded error, or ``None`` if the reader only hit end of stream."""
        if isinstance(self._err, EOFError):
            return None
        return self._err

    def read(self, size: int = -1) -> bytes:
        if self._err is not None:
            return b""
        try:
            data = self._reader.read(size)
        except OSError as err:
            self._err = err
            return b""
        data = data or b""
        with self._lock:
            self._count += len(data)
        if not data and size != 0:
            self._err = EOFError()
        return data


class CountedWriter:
    """Wraps a file and counts the bytes written to it."""

    def __init__(self, file: BinaryIO) -> None:
        self.file = file
        self._count = 0
        self._err: Optional[BaseException] = None
        self._lock = threading.Lock()

    def _add(self, n: int) -> None:
        with self._lock:
            self._count += n

    def bytes_written(self) -> int:
        with self._lock:
            return self._count

    def error(self) -> Optional[BaseException]:
        """Return the recorded error, or ``None`` if it was only end of stream."""
        if isinstance(self._err, EOFError):
            return None
        return self._err

    def write(self, data: bytes) -> int:
        """Write ``data``; once a write has failed, further writes raise EOFError."""
        if self._err is not None:
            raise EOFError("writer has already failed")
        try:
            written = self.file.write(data)
        except EOFError as err:
            self._err = err
            raise
        except OSError as err:
            self._err = err
            return 0
        n = len(data) if written is None else written
        self._add(n)
        return n

    def read_from(self, reader: Any) -> int:
        """Copy everything from ``reader`` into the file, returning the byte count."""
        source = CountedReader(reader)
        total = 0
        try:
            while chunk := source.read(_CHUNK_SIZE):
                written = self.file.write(chunk)
                total += len(chunk) if written is None else written
        finally:
            self._add(total)
        return total