"""HTTP transport implementations for sync and async clients."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import HTTPConfig, require_token


@dataclass(frozen=True, slots=True)
class JSONBody:
    """JSON request body - automatically sets Content-Type to application/json."""

    data: Any


@dataclass(frozen=True, slots=True)
class BytesBody:
    """Raw bytes request body with explicit content type."""

    data: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class FormBody:
    """multipart/form-data body; httpx picks the boundary."""

    data: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes]] = field(default_factory=dict)


RequestBody = JSONBody | BytesBody | FormBody | None


def _is_absolute(path: str) -> bool:
    return path.startswith(("http://", "https://"))


class BaseTransport(abc.ABC):
    """Abstract base class for HTTP transports."""

    def __init__(self, config: HTTPConfig) -> None:
        self._config = config

    @property
    def config(self) -> HTTPConfig:
        return self._config

    def _require_token(self) -> str:
        """Resolve and validate the API token."""
        return require_token(self._config.token)

    def _build_url(self, path: str) -> str:
        # Session endpoints come back from the service as absolute URLs.
        if _is_absolute(path):
            return path
        return self._config.upload_base_url.rstrip("/") + path

    def _build_request(
        self,
        path: str,
        *,
        body: RequestBody,
        headers: dict[str, str] | None,
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        bearer = self._require_token()
        request_headers = self._config.get_headers(bearer)
        if headers:
            request_headers.update(headers)

        # Unpack content based on type
        kwargs: dict[str, Any] = {}
        if isinstance(body, JSONBody):
            kwargs["json"] = body.data
            request_headers["content-type"] = "application/json"
        elif isinstance(body, BytesBody):
            kwargs["content"] = body.data
            request_headers["content-type"] = body.content_type
        elif isinstance(body, FormBody):
            kwargs["data"] = body.data
            kwargs["files"] = body.files
            request_headers.pop("content-type", None)

        return self._build_url(path), request_headers, kwargs

    @abc.abstractmethod
    async def send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send an HTTP request and return the response."""
        ...

    @abc.abstractmethod
    def close(self) -> None:
        """Close any underlying resources."""
        ...


class BlockingTransport(BaseTransport):
    """
    Synchronous HTTP transport using httpx.Client.

    Methods are declared async but don't actually await anything,
    allowing them to be executed via iter_coroutine().
    """

    def __init__(self, config: HTTPConfig, client: httpx.Client | None = None) -> None:
        super().__init__(config)
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=httpx.Timeout(self._config.timeout))
        return self._client

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send a synchronous HTTP request (wrapped as async for iter_coroutine)."""
        url, request_headers, kwargs = self._build_request(path, body=body, headers=headers)
        effective_timeout = timeout if timeout is not None else self._config.timeout
        return self._get_client().request(
            method,
            url,
            params=params or None,
            headers=request_headers,
            timeout=httpx.Timeout(effective_timeout),
            **kwargs,
        )

    def close(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None


class AsyncTransport(BaseTransport):
    """Asynchronous HTTP transport using httpx.AsyncClient."""

    def __init__(self, config: HTTPConfig, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(config)
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout))
        return self._client

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send an asynchronous HTTP request."""
        url, request_headers, kwargs = self._build_request(path, body=body, headers=headers)
        effective_timeout = timeout if timeout is not None else self._config.timeout
        return await self._get_client().request(
            method,
            url,
            params=params or None,
            headers=request_headers,
            timeout=httpx.Timeout(effective_timeout),
            **kwargs,
        )

    def close(self) -> None:
        """Drop the client reference; use aclose() to release connections."""
        if self._owns_client:
            self._client = None

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


__all__ = [
    "BaseTransport",
    "BlockingTransport",
    "AsyncTransport",
    "JSONBody",
    "BytesBody",
    "FormBody",
    "RequestBody",
]
