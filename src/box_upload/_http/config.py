"""HTTP configuration for the Box upload API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_UPLOAD_BASE_URL = "https://upload.box.com/api/2.0"
DEFAULT_TIMEOUT = 60.0


def _env_or(name: str, default: str) -> str:
    return os.getenv(name) or default


@dataclass
class HTTPConfig:
    """Configuration for HTTP requests to the Box API.

    The upload host defaults to the public Box endpoint and can be pointed
    elsewhere with ``BOX_UPLOAD_BASE_URL``.
    """

    upload_base_url: str = field(
        default_factory=lambda: _env_or("BOX_UPLOAD_BASE_URL", DEFAULT_UPLOAD_BASE_URL)
    )
    timeout: float = DEFAULT_TIMEOUT
    token: str | None = None
    default_headers: dict[str, str] = field(default_factory=dict)

    def get_headers(self, bearer: str) -> dict[str, str]:
        """Build request headers with authorization."""
        return {
            "authorization": f"Bearer {bearer}",
            "accept": "application/json",
            **self.default_headers,
        }


def require_token(token: str | None) -> str:
    """Resolve token from argument or environment, raising if not found."""
    resolved = token or os.getenv("BOX_TOKEN")
    if not resolved:
        raise RuntimeError("Missing Box API token. Pass token=... or set BOX_TOKEN.")
    return resolved


__all__ = [
    "HTTPConfig",
    "DEFAULT_UPLOAD_BASE_URL",
    "DEFAULT_TIMEOUT",
    "require_token",
]
