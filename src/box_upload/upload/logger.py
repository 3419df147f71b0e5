from __future__ import annotations

import os
import sys
from typing import Any, Protocol


class UploadLogger(Protocol):
    """Anything with ``info``/``error``; a ``logging.Logger`` qualifies."""

    def info(self, message: str, *args: Any) -> None:  # pragma: no cover - Protocol
        ...

    def error(self, message: str, *args: Any) -> None:  # pragma: no cover - Protocol
        ...


def _debug_enabled() -> bool:
    debug_env = os.getenv("DEBUG", "")
    return "box-upload" in debug_env or debug_env.strip() == "*"


class DebugLogger:
    """Print ``box-upload:`` lines to stderr when ``DEBUG`` asks for them."""

    def __init__(self, enabled: bool | None = None) -> None:
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        if self._enabled is not None:
            return self._enabled
        return _debug_enabled()

    def _emit(self, level: str, message: str, args: tuple[Any, ...], *, always: bool = False) -> None:
        if not (always or self.enabled):
            return
        if args:
            message = message % args
        print(f"box-upload: [{level}] {message}", file=sys.stderr)

    def info(self, message: str, *args: Any) -> None:
        self._emit("info", message, args)

    def error(self, message: str, *args: Any) -> None:
        # Errors print unless the logger was explicitly disabled.
        self._emit("error", message, args, always=self._enabled is not False)


__all__ = ["UploadLogger", "DebugLogger"]
