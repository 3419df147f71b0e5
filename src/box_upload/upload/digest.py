"""Content digests for part and whole-file integrity checks.

Box expects an RFC 3230 style ``digest`` header, ``sha=<base64 SHA-1>``, on
every part upload and on commit. The single request endpoint takes a hex
SHA-1 in ``content-md5`` instead.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Any

_ENCODINGS = ("base64", "hex")


class DigestAccumulator:
    """Streaming digest; ``value()`` can be read any number of times."""

    def __init__(self, hasher: Any, encoding: str, prefix: str) -> None:
        self._hasher = hasher
        self._encoding = encoding
        self._prefix = prefix

    def update(self, data: bytes) -> None:
        self._hasher.update(data)

    def value(self) -> str:
        raw = self._hasher.copy().digest()
        if self._encoding == "hex":
            encoded = raw.hex()
        else:
            encoded = base64.b64encode(raw).decode("ascii")
        return f"{self._prefix}{encoded}"


class DigestEngine:
    def __init__(
        self,
        algorithm: str = "sha1",
        encoding: str = "base64",
        prefix: str = "sha=",
    ) -> None:
        if encoding not in _ENCODINGS:
            raise ValueError(f"encoding must be one of {_ENCODINGS}, got {encoding!r}")
        try:
            hashlib.new(algorithm)
        except ValueError as exc:
            raise ValueError(f"Unsupported digest algorithm: {algorithm!r}") from exc
        self.algorithm = algorithm
        self.encoding = encoding
        self.prefix = prefix

    def new(self) -> DigestAccumulator:
        return DigestAccumulator(hashlib.new(self.algorithm), self.encoding, self.prefix)

    def compute(self, data: bytes) -> str:
        acc = self.new()
        acc.update(data)
        return acc.value()

    def __repr__(self) -> str:
        return (
            f"DigestEngine(algorithm={self.algorithm!r}, encoding={self.encoding!r}, "
            f"prefix={self.prefix!r})"
        )


def sha1_hex(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


__all__ = ["DigestEngine", "DigestAccumulator", "sha1_hex"]
