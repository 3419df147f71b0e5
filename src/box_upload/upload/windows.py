from __future__ import annotations

from .errors import InvalidUploadArgumentsError
from .types import ByteRange


def validate_sizes(total_size: int, part_size: int) -> None:
    if total_size <= 0:
        raise InvalidUploadArgumentsError(f"total_size must be positive, got {total_size}")
    if part_size <= 0:
        raise InvalidUploadArgumentsError(f"part_size must be positive, got {part_size}")


def count_windows(total_size: int, part_size: int) -> int:
    validate_sizes(total_size, part_size)
    return -(-total_size // part_size)


def plan_windows(total_size: int, part_size: int) -> list[ByteRange]:
    """Split ``[0, total_size)`` into consecutive windows of at most ``part_size`` bytes.

    Only the last window can be shorter than ``part_size``.
    """
    validate_sizes(total_size, part_size)
    windows: list[ByteRange] = []
    start = 0
    while start < total_size:
        length = min(part_size, total_size - start)
        windows.append(ByteRange(start=start, end=start + length - 1, total=total_size))
        start += length
    return windows


__all__ = ["validate_sizes", "count_windows", "plan_windows"]
