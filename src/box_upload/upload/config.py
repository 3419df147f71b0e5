"""Upload sizing constants."""

DEFAULT_PART_SIZE = 8 * 1024 * 1024  # 8MiB
# Upload sessions are only accepted above this size; smaller content goes
# through the single request endpoint.
SMALL_FILE_THRESHOLD = 20_000_000
DEFAULT_MAX_CONCURRENCY = 1
MAX_CONCURRENCY = 6


__all__ = [
    "DEFAULT_PART_SIZE",
    "SMALL_FILE_THRESHOLD",
    "DEFAULT_MAX_CONCURRENCY",
    "MAX_CONCURRENCY",
]
