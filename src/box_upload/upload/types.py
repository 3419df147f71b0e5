from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Inclusive byte range ``[start, end]`` out of ``total`` bytes."""

    start: int
    end: int
    total: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total}"

    def __str__(self) -> str:
        return f"{self.start}-{self.end}/{self.total}"


@dataclass(frozen=True, slots=True)
class UploadSession:
    id: str
    folder_id: str
    file_name: str
    total_size: int
    part_size: int | None = None
    total_parts: int | None = None
    endpoints: Mapping[str, str] = field(default_factory=dict)
    expires_at: str | None = None


@dataclass(frozen=True, slots=True)
class PartDescriptor:
    part_id: str
    offset: int
    size: int
    sha1: str

    @property
    def end(self) -> int:
        return self.offset + self.size - 1

    def to_manifest(self) -> dict[str, Any]:
        return {
            "part_id": self.part_id,
            "offset": self.offset,
            "size": self.size,
            "sha1": self.sha1,
        }


@dataclass(slots=True)
class ChunkWindow:
    index: int
    start: int
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    def byte_range(self, total: int) -> ByteRange:
        return ByteRange(start=self.start, end=self.start + self.length - 1, total=total)


@dataclass(slots=True)
class UploadConfirmation:
    file_id: str
    name: str
    size: int | None
    sha1: str | None
    raw: dict[str, Any] = field(default_factory=dict)
