from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import BinaryIO

import anyio

from .._http import iter_coroutine
from .config import DEFAULT_MAX_CONCURRENCY, MAX_CONCURRENCY
from .digest import DigestEngine
from .errors import (
    CommitError,
    InvalidUploadArgumentsError,
    PartUploadError,
    SessionCreationError,
    SourceReadError,
    UploadCancelledError,
    UploadError,
)
from .logger import DebugLogger, UploadLogger
from .result import Err, Ok, UploadResult
from .source import ContentSource, measure_source, read_windows
from .transport import UploadTransport
from .types import ByteRange, ChunkWindow, PartDescriptor, UploadConfirmation, UploadSession
from .windows import validate_sizes

WindowsUploader = Callable[
    [BinaryIO, UploadSession, int, int, "CancelToken | None"],
    Awaitable[tuple[list[PartDescriptor], str]],
]


class CancelToken:
    """Caller-side cancellation, checked before each part upload starts."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def order_parts(parts: Sequence[PartDescriptor]) -> list[PartDescriptor]:
    ordered = list(parts)
    ordered.sort(key=lambda part: part.offset)
    return ordered


def _check_cancelled(cancel: CancelToken | None, window: ChunkWindow) -> None:
    if cancel is not None and cancel.cancelled:
        raise UploadCancelledError(window.start)


class _BaseChunkedUploadOrchestrator:
    """
    Shared upload steps for the sync and async orchestrators.

    Every step is a coroutine; the sync orchestrator runs them through
    iter_coroutine() over a transport that never suspends.
    """

    def __init__(
        self,
        transport: UploadTransport,
        *,
        digest: DigestEngine | None = None,
        logger: UploadLogger | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if not 1 <= max_concurrency <= MAX_CONCURRENCY:
            raise InvalidUploadArgumentsError(
                f"max_concurrency must be between 1 and {MAX_CONCURRENCY}, got {max_concurrency}"
            )
        self._transport = transport
        self._digest = digest or DigestEngine()
        self._logger = logger or DebugLogger()
        self._max_concurrency = max_concurrency

    @property
    def transport(self) -> UploadTransport:
        return self._transport

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    async def _create_session(self, folder_id: str, file_name: str, total_size: int) -> UploadSession:
        try:
            session = await self._transport.create_session(folder_id, file_name, total_size)
        except SessionCreationError:
            raise
        except Exception as exc:
            raise SessionCreationError("Failed to create upload session", exc) from exc
        self._logger.info(
            "created upload session %s for %s (%d bytes)", session.id, file_name, total_size
        )
        return session

    async def _upload_window(
        self, session: UploadSession, window: ChunkWindow, total_size: int
    ) -> PartDescriptor:
        byte_range = window.byte_range(total_size)
        digest = self._digest.compute(window.data)
        try:
            part = await self._transport.upload_part(session, byte_range, digest, window.data)
        except Exception as exc:
            raise PartUploadError(byte_range, cause=exc) from exc
        self._logger.info("uploaded part %s (%s)", part.part_id, byte_range)
        return part

    async def _commit(
        self, session: UploadSession, parts: list[PartDescriptor], whole_file_digest: str
    ) -> UploadConfirmation:
        try:
            confirmation = await self._transport.commit(session, parts, whole_file_digest)
        except CommitError:
            raise
        except Exception as exc:
            raise CommitError(cause=exc) from exc
        self._logger.info("committed upload session %s as file %s", session.id, confirmation.file_id)
        return confirmation

    async def _upload_sequential(
        self,
        stream: BinaryIO,
        session: UploadSession,
        total_size: int,
        part_size: int,
        cancel: CancelToken | None,
    ) -> tuple[list[PartDescriptor], str]:
        whole = self._digest.new()
        parts: list[PartDescriptor] = []
        for window in read_windows(stream, total_size, part_size):
            whole.update(window.data)
            _check_cancelled(cancel, window)
            parts.append(await self._upload_window(session, window, total_size))
        return parts, whole.value()

    async def _run(
        self,
        source: ContentSource,
        total_size: int | None,
        part_size: int | None,
        *,
        folder_id: str,
        file_name: str,
        upload_windows: WindowsUploader,
        cancel: CancelToken | None,
    ) -> UploadResult:
        if total_size is None:
            try:
                total_size = measure_source(source)
            except SourceReadError as exc:
                self._logger.error("upload of %s failed: %s", file_name, exc)
                return Err(exc)
        validate_sizes(total_size, part_size if part_size is not None else 1)

        try:
            session = await self._create_session(folder_id, file_name, total_size)
            effective_part_size = part_size or session.part_size
            if not effective_part_size or effective_part_size <= 0:
                raise SessionCreationError(
                    f"Upload session {session.id} did not report a usable part size"
                )

            try:
                stream = source.open()
            except OSError as exc:
                raise SourceReadError(
                    ByteRange(0, total_size - 1, total_size), "Failed to open source", exc
                ) from exc
            with stream:
                parts, whole_file_digest = await upload_windows(
                    stream, session, total_size, effective_part_size, cancel
                )

            confirmation = await self._commit(session, order_parts(parts), whole_file_digest)
        except UploadError as exc:
            self._logger.error("upload of %s failed: %s", file_name, exc)
            return Err(exc)
        return Ok(confirmation)


class ChunkedUploadOrchestrator(_BaseChunkedUploadOrchestrator):
    """Blocking orchestrator; parts upload on a thread pool when max_concurrency > 1."""

    def upload(
        self,
        source: ContentSource,
        total_size: int | None = None,
        part_size: int | None = None,
        *,
        folder_id: str,
        file_name: str,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        uploader = self._upload_sequential if self._max_concurrency == 1 else self._upload_threaded
        return iter_coroutine(
            self._run(
                source,
                total_size,
                part_size,
                folder_id=folder_id,
                file_name=file_name,
                upload_windows=uploader,
                cancel=cancel,
            )
        )

    async def _upload_threaded(
        self,
        stream: BinaryIO,
        session: UploadSession,
        total_size: int,
        part_size: int,
        cancel: CancelToken | None,
    ) -> tuple[list[PartDescriptor], str]:
        whole = self._digest.new()
        slots: list[PartDescriptor | None] = []
        failures: list[UploadError] = []

        def upload_one(window: ChunkWindow) -> PartDescriptor:
            return iter_coroutine(self._upload_window(session, window, total_size))

        def collect(done: set[Future[PartDescriptor]], inflight: dict[Future[PartDescriptor], int]) -> None:
            for future in done:
                index = inflight.pop(future)
                try:
                    slots[index] = future.result()
                except UploadError as exc:
                    failures.append(exc)

        with ThreadPoolExecutor(max_workers=self._max_concurrency) as executor:
            inflight: dict[Future[PartDescriptor], int] = {}
            try:
                for window in read_windows(stream, total_size, part_size):
                    whole.update(window.data)
                    # pick up parts that failed since the last dispatch
                    done, _ = wait(inflight, timeout=0)
                    collect(done, inflight)
                    if failures:
                        break
                    _check_cancelled(cancel, window)
                    slots.append(None)
                    inflight[executor.submit(upload_one, window)] = window.index
                    if len(inflight) >= self._max_concurrency:
                        done, _ = wait(inflight, return_when=FIRST_COMPLETED)
                        collect(done, inflight)
            finally:
                # in-flight parts always run to completion
                if inflight:
                    done, _ = wait(inflight)
                    collect(done, inflight)

        if failures:
            raise failures[0]
        return [slot for slot in slots if slot is not None], whole.value()


class AsyncChunkedUploadOrchestrator(_BaseChunkedUploadOrchestrator):
    """Async orchestrator; at most max_concurrency part uploads are in flight."""

    async def upload(
        self,
        source: ContentSource,
        total_size: int | None = None,
        part_size: int | None = None,
        *,
        folder_id: str,
        file_name: str,
        cancel: CancelToken | None = None,
    ) -> UploadResult:
        uploader = (
            self._upload_sequential if self._max_concurrency == 1 else self._upload_concurrent
        )
        return await self._run(
            source,
            total_size,
            part_size,
            folder_id=folder_id,
            file_name=file_name,
            upload_windows=uploader,
            cancel=cancel,
        )

    async def _upload_concurrent(
        self,
        stream: BinaryIO,
        session: UploadSession,
        total_size: int,
        part_size: int,
        cancel: CancelToken | None,
    ) -> tuple[list[PartDescriptor], str]:
        whole = self._digest.new()
        slots: list[PartDescriptor | None] = []
        failures: list[UploadError] = []
        semaphore = anyio.Semaphore(self._max_concurrency)
        windows = read_windows(stream, total_size, part_size)

        async def run_limited_upload(window: ChunkWindow) -> None:
            try:
                slots[window.index] = await self._upload_window(session, window, total_size)
            except UploadError as exc:
                failures.append(exc)
            finally:
                semaphore.release()

        async with anyio.create_task_group() as task_group:
            while True:
                # Acquire before reading so at most max_concurrency windows are held.
                await semaphore.acquire()
                try:
                    window = next(windows, None)
                    if window is not None:
                        whole.update(window.data)
                        _check_cancelled(cancel, window)
                except UploadError as exc:
                    failures.append(exc)
                    window = None
                if window is None or failures:
                    semaphore.release()
                    break
                slots.append(None)
                task_group.start_soon(run_limited_upload, window)

        if failures:
            raise failures[0]
        return [slot for slot in slots if slot is not None], whole.value()


__all__ = [
    "CancelToken",
    "ChunkedUploadOrchestrator",
    "AsyncChunkedUploadOrchestrator",
    "order_parts",
]
