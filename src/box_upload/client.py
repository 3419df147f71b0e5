from __future__ import annotations

import os
from typing import Literal

import httpx

from ._http import (
    DEFAULT_TIMEOUT,
    AsyncTransport,
    BlockingTransport,
    HTTPConfig,
    iter_coroutine,
    require_token,
)
from .upload.config import DEFAULT_MAX_CONCURRENCY, DEFAULT_PART_SIZE, SMALL_FILE_THRESHOLD
from .upload.digest import DigestEngine, sha1_hex
from .upload.errors import PartUploadError, SourceReadError, UploadError
from .upload.logger import DebugLogger, UploadLogger
from .upload.orchestrator import AsyncChunkedUploadOrchestrator, CancelToken, ChunkedUploadOrchestrator
from .upload.result import Err, Ok, UploadResult
from .upload.source import BytesSource, ContentSource, FileSource, measure_source
from .upload.transport import BoxUploadTransport
from .upload.types import ByteRange, UploadSession
from .upload.windows import validate_sizes

UploadStrategy = Literal["auto", "manual", "chunked"]
UploadMode = Literal["single", "session"]


def plan_upload(
    total_size: int,
    *,
    strategy: UploadStrategy = "auto",
    part_size: int | None = None,
    small_file_threshold: int = SMALL_FILE_THRESHOLD,
) -> tuple[UploadMode, int | None]:
    """Decide between a single request and a chunked session.

    Content above ``small_file_threshold`` always goes through a session.
    The strategy only decides who picks the part size: the service
    (``"auto"``) or the caller (``"manual"``). ``"chunked"`` forces a session
    for content of any size.

    Returns:
        The upload mode and the part size to pass to the orchestrator
        (``None`` means "use the session's part size").
    """
    validate_sizes(total_size, part_size if part_size is not None else 1)
    if strategy not in ("auto", "manual", "chunked"):
        raise ValueError(f"Unknown upload strategy: {strategy!r}")

    if strategy != "chunked" and total_size <= small_file_threshold:
        return "single", None
    if strategy == "manual":
        return "session", part_size or DEFAULT_PART_SIZE
    if strategy == "chunked":
        return "session", part_size
    return "session", None


class _BaseBoxUploadClient:
    _transport: BoxUploadTransport
    _logger: UploadLogger
    _small_file_threshold: int
    _closed: bool

    def _ensure_open(self) -> None:
        if self._closed:
            raise UploadError("Client is closed")

    @property
    def transport(self) -> BoxUploadTransport:
        return self._transport

    async def _upload_single(
        self, source: ContentSource, total_size: int, folder_id: str, file_name: str
    ) -> UploadResult:
        whole_range = ByteRange(0, total_size - 1, total_size)
        try:
            try:
                with source.open() as stream:
                    data = stream.read()
            except OSError as exc:
                raise SourceReadError(whole_range, cause=exc) from exc
            if len(data) != total_size:
                raise SourceReadError(
                    whole_range, f"Source has {len(data)} bytes, expected {total_size}"
                )
            try:
                confirmation = await self._transport.upload_file(
                    folder_id, file_name, data, sha1_hex(data)
                )
            except Exception as exc:
                raise PartUploadError(whole_range, cause=exc) from exc
        except UploadError as exc:
            self._logger.error("upload of %s failed: %s", file_name, exc)
            return Err(exc)
        self._logger.info("uploaded %s in a single request as file %s", file_name, confirmation.file_id)
        return Ok(confirmation)


def _resolve_file_name(path: str | os.PathLike[str], file_name: str | None) -> str:
    return file_name or os.path.basename(os.fspath(path))


class BoxUploadClient(_BaseBoxUploadClient):
    """Blocking client for uploading content into a Box folder."""

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        logger: UploadLogger | None = None,
        digest: DigestEngine | None = None,
        small_file_threshold: int = SMALL_FILE_THRESHOLD,
        client: httpx.Client | None = None,
    ) -> None:
        config = HTTPConfig(token=require_token(token), timeout=timeout)
        self._http = BlockingTransport(config, client)
        self._transport = BoxUploadTransport(self._http)
        self._logger = logger or DebugLogger()
        self._orchestrator = ChunkedUploadOrchestrator(
            self._transport,
            digest=digest,
            logger=self._logger,
            max_concurrency=max_concurrency,
        )
        self._small_file_threshold = small_file_threshold
        self._closed = False

    def upload(
        self,
        source: ContentSource,
        folder_id: str,
        file_name: str,
        *,
        strategy: UploadStrategy = "auto",
        part_size: int | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        self._ensure_open()
        try:
            total_size = measure_source(source)
        except SourceReadError as exc:
            self._logger.error("upload of %s failed: %s", file_name, exc)
            return Err(exc)
        mode, effective_part_size = plan_upload(
            total_size,
            strategy=strategy,
            part_size=part_size,
            small_file_threshold=self._small_file_threshold,
        )
        if mode == "single":
            return iter_coroutine(self._upload_single(source, total_size, folder_id, file_name))
        return self._orchestrator.upload(
            source,
            total_size,
            effective_part_size,
            folder_id=folder_id,
            file_name=file_name,
            cancel=cancel,
        )

    def upload_path(
        self,
        path: str | os.PathLike[str],
        folder_id: str,
        file_name: str | None = None,
        *,
        strategy: UploadStrategy = "auto",
        part_size: int | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        return self.upload(
            FileSource(path),
            folder_id,
            _resolve_file_name(path, file_name),
            strategy=strategy,
            part_size=part_size,
            cancel=cancel,
        )

    def upload_bytes(
        self,
        data: bytes,
        folder_id: str,
        file_name: str,
        *,
        strategy: UploadStrategy = "auto",
        part_size: int | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        return self.upload(
            BytesSource(data),
            folder_id,
            file_name,
            strategy=strategy,
            part_size=part_size,
            cancel=cancel,
        )

    def abort(self, session: UploadSession) -> None:
        """Abort an open upload session, discarding its uploaded parts."""
        self._ensure_open()
        iter_coroutine(self._transport.abort(session))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._http.close()

    def __enter__(self) -> BoxUploadClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class AsyncBoxUploadClient(_BaseBoxUploadClient):
    """Async client for uploading content into a Box folder."""

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        logger: UploadLogger | None = None,
        digest: DigestEngine | None = None,
        small_file_threshold: int = SMALL_FILE_THRESHOLD,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        config = HTTPConfig(token=require_token(token), timeout=timeout)
        self._http = AsyncTransport(config, client)
        self._transport = BoxUploadTransport(self._http)
        self._logger = logger or DebugLogger()
        self._orchestrator = AsyncChunkedUploadOrchestrator(
            self._transport,
            digest=digest,
            logger=self._logger,
            max_concurrency=max_concurrency,
        )
        self._small_file_threshold = small_file_threshold
        self._closed = False

    async def upload(
        self,
        source: ContentSource,
        folder_id: str,
        file_name: str,
        *,
        strategy: UploadStrategy = "auto",
        part_size: int | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        self._ensure_open()
        try:
            total_size = measure_source(source)
        except SourceReadError as exc:
            self._logger.error("upload of %s failed: %s", file_name, exc)
            return Err(exc)
        mode, effective_part_size = plan_upload(
            total_size,
            strategy=strategy,
            part_size=part_size,
            small_file_threshold=self._small_file_threshold,
        )
        if mode == "single":
            return await self._upload_single(source, total_size, folder_id, file_name)
        return await self._orchestrator.upload(
            source,
            total_size,
            effective_part_size,
            folder_id=folder_id,
            file_name=file_name,
            cancel=cancel,
        )

    async def upload_path(
        self,
        path: str | os.PathLike[str],
        folder_id: str,
        file_name: str | None = None,
        *,
        strategy: UploadStrategy = "auto",
        part_size: int | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        return await self.upload(
            FileSource(path),
            folder_id,
            _resolve_file_name(path, file_name),
            strategy=strategy,
            part_size=part_size,
            cancel=cancel,
        )

    async def upload_bytes(
        self,
        data: bytes,
        folder_id: str,
        file_name: str,
        *,
        strategy: UploadStrategy = "auto",
        part_size: int | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        return await self.upload(
            BytesSource(data),
            folder_id,
            file_name,
            strategy=strategy,
            part_size=part_size,
            cancel=cancel,
        )

    async def abort(self, session: UploadSession) -> None:
        """Abort an open upload session, discarding its uploaded parts."""
        self._ensure_open()
        await self._transport.abort(session)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._http.aclose()

    async def __aenter__(self) -> AsyncBoxUploadClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


__all__ = ["BoxUploadClient", "AsyncBoxUploadClient", "plan_upload", "UploadStrategy"]
