"""Shared HTTP infrastructure for the Box upload clients."""

from .config import (
    DEFAULT_TIMEOUT,
    DEFAULT_UPLOAD_BASE_URL,
    HTTPConfig,
    require_token,
)
from .iter_coroutine import iter_coroutine
from .transport import (
    AsyncTransport,
    BaseTransport,
    BlockingTransport,
    BytesBody,
    FormBody,
    JSONBody,
    RequestBody,
)

__all__ = [
    "DEFAULT_UPLOAD_BASE_URL",
    "DEFAULT_TIMEOUT",
    "HTTPConfig",
    "require_token",
    "iter_coroutine",
    "BaseTransport",
    "BlockingTransport",
    "AsyncTransport",
    "JSONBody",
    "BytesBody",
    "FormBody",
    "RequestBody",
]
