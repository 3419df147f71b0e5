from __future__ import annotations

import io
import os
from collections.abc import Iterator
from typing import BinaryIO, Protocol

from .errors import SourceReadError
from .types import ByteRange, ChunkWindow
from .windows import plan_windows


class ContentSource(Protocol):
    """Sequentially readable bytes of known length."""

    @property
    def size(self) -> int:  # pragma: no cover - Protocol
        ...

    def open(self) -> BinaryIO:  # pragma: no cover - Protocol
        ...


class FileSource:
    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = os.fspath(path)

    @property
    def size(self) -> int:
        return os.stat(self.path).st_size

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def open(self) -> BinaryIO:
        return open(self.path, "rb")


class BytesSource:
    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    def open(self) -> BinaryIO:
        return io.BytesIO(self._data)


def _read_exactly(stream: BinaryIO, length: int) -> bytes:
    buffer = bytearray()
    while len(buffer) < length:
        chunk = stream.read(length - len(buffer))
        if not chunk:
            break
        buffer.extend(chunk)
    return bytes(buffer)


def measure_source(source: ContentSource) -> int:
    """Return the size of ``source``, mapping stat failures to SourceReadError."""
    try:
        return source.size
    except OSError as exc:
        raise SourceReadError(ByteRange(0, 0, 0), "Failed to determine source size", exc) from exc


def read_windows(stream: BinaryIO, total_size: int, part_size: int) -> Iterator[ChunkWindow]:
    """Yield the windows of ``stream`` in offset order, one read per window."""
    for index, window in enumerate(plan_windows(total_size, part_size)):
        try:
            data = _read_exactly(stream, window.length)
        except OSError as exc:
            raise SourceReadError(window, cause=exc) from exc
        if len(data) != window.length:
            raise SourceReadError(
                window,
                f"Source ended at byte {window.start + len(data)}, expected {total_size} bytes",
            )
        yield ChunkWindow(index=index, start=window.start, data=data)

    try:
        trailing = stream.read(1)
    except OSError as exc:
        raise SourceReadError(ByteRange(total_size, total_size, total_size), cause=exc) from exc
    if trailing:
        raise SourceReadError(
            ByteRange(total_size, total_size, total_size),
            f"Source is longer than the declared {total_size} bytes",
        )


__all__ = ["ContentSource", "FileSource", "BytesSource", "measure_source", "read_windows"]
