from __future__ import annotations

import io
import threading
import time
from collections.abc import Sequence
from unittest.mock import MagicMock

import anyio
import pytest

from box_upload.upload.digest import DigestEngine
from box_upload.upload.errors import (
    CommitError,
    InvalidUploadArgumentsError,
    PartUploadError,
    SessionCreationError,
    SourceReadError,
    UploadCancelledError,
)
from box_upload.upload.orchestrator import (
    AsyncChunkedUploadOrchestrator,
    CancelToken,
    ChunkedUploadOrchestrator,
    order_parts,
)
from box_upload.upload.result import Err, Ok
from box_upload.upload.source import BytesSource, FileSource
from box_upload.upload.types import ByteRange, PartDescriptor, UploadConfirmation, UploadSession

PART = 8_388_608


class _FakeTransport:
    """In-memory upload service recording every call."""

    def __init__(
        self,
        *,
        part_size: int | None = None,
        fail_at: int | None = None,
        session_error: Exception | None = None,
        commit_error: Exception | None = None,
        on_part=None,
    ) -> None:
        self.part_size = part_size
        self.fail_at = fail_at
        self.session_error = session_error
        self.commit_error = commit_error
        self.on_part = on_part
        self.calls: list[str] = []
        self.ranges: list[ByteRange] = []
        self.digests: list[str] = []
        self.received = bytearray()
        self.committed: tuple[list[PartDescriptor], str] | None = None

    async def create_session(self, folder_id: str, file_name: str, total_size: int) -> UploadSession:
        self.calls.append("create_session")
        if self.session_error is not None:
            raise self.session_error
        return UploadSession(
            id="session-1",
            folder_id=folder_id,
            file_name=file_name,
            total_size=total_size,
            part_size=self.part_size,
        )

    async def upload_part(
        self, session: UploadSession, byte_range: ByteRange, digest: str, data: bytes
    ) -> PartDescriptor:
        self.calls.append("upload_part")
        self.ranges.append(byte_range)
        self.digests.append(digest)
        if self.on_part is not None:
            await self.on_part(byte_range)
        if byte_range.start == self.fail_at:
            raise RuntimeError("connection reset")
        self.received.extend(data)
        return PartDescriptor(
            part_id=f"part-{byte_range.start}",
            offset=byte_range.start,
            size=byte_range.length,
            sha1=digest,
        )

    async def commit(
        self, session: UploadSession, parts: Sequence[PartDescriptor], whole_file_digest: str
    ) -> UploadConfirmation:
        self.calls.append("commit")
        if self.commit_error is not None:
            raise self.commit_error
        self.committed = (list(parts), whole_file_digest)
        return UploadConfirmation(
            file_id="file-1", name=session.file_name, size=session.total_size, sha1=None
        )

    async def abort(self, session: UploadSession) -> None:
        self.calls.append("abort")

    async def upload_file(self, folder_id, file_name, data, sha1):  # pragma: no cover - unused
        raise AssertionError("single uploads are not orchestrated")


def _upload(orchestrator: ChunkedUploadOrchestrator, data: bytes, part_size: int | None, **kwargs):
    return orchestrator.upload(
        BytesSource(data), len(data), part_size, folder_id="0", file_name="test.zip", **kwargs
    )


class _SlowStream(io.BytesIO):
    def __init__(self, data: bytes, delay: float) -> None:
        super().__init__(data)
        self._delay = delay

    def read(self, size: int | None = -1) -> bytes:
        time.sleep(self._delay)
        return super().read(size)


class _SlowSource:
    """Bytes source whose every read takes ``delay`` seconds."""

    def __init__(self, data: bytes, delay: float = 0.05) -> None:
        self._data = data
        self._delay = delay

    @property
    def size(self) -> int:
        return len(self._data)

    def open(self) -> _SlowStream:
        return _SlowStream(self._data, self._delay)


class TestChunkedUploadOrchestrator:
    def test_twenty_megabyte_upload_commits_three_ordered_parts(self):
        data = bytes(range(256)) * (20_000_000 // 256) + b"\x01" * (20_000_000 % 256)
        transport = _FakeTransport()
        result = _upload(ChunkedUploadOrchestrator(transport), data, PART)

        assert isinstance(result, Ok)
        assert result.value.file_id == "file-1"
        assert transport.calls == ["create_session", "upload_part", "upload_part", "upload_part", "commit"]
        assert [r.length for r in transport.ranges] == [8388608, 8388608, 3222784]
        assert transport.ranges[2].content_range == "bytes 16777216-19999999/20000000"
        assert bytes(transport.received) == data

        parts, whole_digest = transport.committed
        assert [p.offset for p in parts] == [0, 8388608, 16777216]
        assert whole_digest == DigestEngine().compute(data)

    def test_part_digests_match_window_content(self):
        data = b"abc" + b"def"
        transport = _FakeTransport()
        _upload(ChunkedUploadOrchestrator(transport), data, 3).unwrap()

        engine = DigestEngine()
        assert transport.digests == [engine.compute(b"abc"), engine.compute(b"def")]
        assert transport.committed[1] == engine.compute(data)

    def test_exact_part_size_upload_is_single_window(self):
        data = b"z" * PART
        transport = _FakeTransport()
        _upload(ChunkedUploadOrchestrator(transport), data, PART).unwrap()

        assert transport.ranges == [ByteRange(0, PART - 1, PART)]

    def test_failed_second_part_returns_part_upload_error_and_skips_commit(self):
        data = b"\x00" * 20_000_000
        transport = _FakeTransport(fail_at=PART)
        result = _upload(ChunkedUploadOrchestrator(transport), data, PART)

        assert isinstance(result, Err)
        assert isinstance(result.error, PartUploadError)
        assert result.error.offset_range.start == 8388608
        assert result.error.offset_range.end == 16777215
        assert isinstance(result.error.cause, RuntimeError)
        assert "commit" not in transport.calls
        assert "abort" not in transport.calls
        assert transport.calls.count("upload_part") == 2

    def test_unwrap_raises_the_error(self):
        transport = _FakeTransport(fail_at=0)
        result = _upload(ChunkedUploadOrchestrator(transport), b"abc", 2)

        with pytest.raises(PartUploadError):
            result.unwrap()

    def test_session_rejection_returns_session_creation_error(self):
        transport = _FakeTransport(session_error=RuntimeError("file too large"))
        result = _upload(ChunkedUploadOrchestrator(transport), b"abc", 2)

        assert isinstance(result, Err)
        assert isinstance(result.error, SessionCreationError)
        assert transport.calls == ["create_session"]

    def test_missing_part_size_without_session_hint_fails(self):
        transport = _FakeTransport(part_size=None)
        result = _upload(ChunkedUploadOrchestrator(transport), b"abc", None)

        assert isinstance(result.error, SessionCreationError)
        assert "upload_part" not in transport.calls

    def test_session_part_size_used_when_caller_gives_none(self):
        transport = _FakeTransport(part_size=4)
        _upload(ChunkedUploadOrchestrator(transport), b"0123456789", None).unwrap()

        assert [r.length for r in transport.ranges] == [4, 4, 2]

    def test_commit_failure_is_reported_once(self):
        transport = _FakeTransport(commit_error=RuntimeError("digest mismatch"))
        result = _upload(ChunkedUploadOrchestrator(transport), b"abcdef", 3)

        assert isinstance(result.error, CommitError)
        assert transport.calls.count("commit") == 1

    def test_commit_error_from_transport_passes_through(self):
        error = CommitError("still processing", retry_after=5)
        transport = _FakeTransport(commit_error=error)
        result = _upload(ChunkedUploadOrchestrator(transport), b"abcdef", 3)

        assert result.error is error
        assert result.error.retry_after == 5

    def test_source_shorter_than_declared_size(self):
        transport = _FakeTransport()
        result = ChunkedUploadOrchestrator(transport).upload(
            BytesSource(b"abc"), 6, 3, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result.error, SourceReadError)
        assert result.error.offset_range == ByteRange(3, 5, 6)
        assert "commit" not in transport.calls

    def test_missing_file_is_a_source_read_error(self, tmp_path):
        transport = _FakeTransport()
        result = ChunkedUploadOrchestrator(transport).upload(
            FileSource(tmp_path / "missing.zip"), 10, 5, folder_id="0", file_name="missing.zip"
        )

        assert isinstance(result.error, SourceReadError)

    def test_total_size_defaults_to_source_size(self, tmp_path):
        path = tmp_path / "test.zip"
        path.write_bytes(b"x" * 11)
        transport = _FakeTransport()
        ChunkedUploadOrchestrator(transport).upload(
            FileSource(path), part_size=5, folder_id="0", file_name="test.zip"
        ).unwrap()

        assert [r.length for r in transport.ranges] == [5, 5, 1]

    @pytest.mark.parametrize("total_size,part_size", [(0, 5), (5, 0)])
    def test_preconditions_raise_eagerly(self, total_size: int, part_size: int):
        transport = _FakeTransport()
        with pytest.raises(InvalidUploadArgumentsError):
            ChunkedUploadOrchestrator(transport).upload(
                BytesSource(b""), total_size, part_size, folder_id="0", file_name="empty"
            )
        assert transport.calls == []

    def test_cancel_before_next_part(self):
        cancel = CancelToken()

        async def cancel_after_first(byte_range: ByteRange) -> None:
            cancel.cancel()

        transport = _FakeTransport(on_part=cancel_after_first)
        result = _upload(ChunkedUploadOrchestrator(transport), b"abcdefghi", 3, cancel=cancel)

        assert isinstance(result.error, UploadCancelledError)
        assert result.error.next_offset == 3
        # the in-flight part completed, nothing after it started
        assert transport.calls == ["create_session", "upload_part"]

    def test_logger_is_injected(self):
        logger = MagicMock()
        transport = _FakeTransport(fail_at=0)
        ChunkedUploadOrchestrator(transport, logger=logger).upload(
            BytesSource(b"abc"), 3, 3, folder_id="0", file_name="test.zip"
        )

        logger.info.assert_called()
        logger.error.assert_called_once()

    def test_invalid_concurrency_rejected(self):
        with pytest.raises(InvalidUploadArgumentsError):
            ChunkedUploadOrchestrator(_FakeTransport(), max_concurrency=0)

    def test_threaded_upload_bounds_inflight_and_orders_manifest(self):
        lock = threading.Lock()
        inflight = 0
        peak = 0

        class _SlowTransport(_FakeTransport):
            async def upload_part(self, session, byte_range, digest, data):
                nonlocal inflight, peak
                with lock:
                    inflight += 1
                    peak = max(peak, inflight)
                # earlier parts finish later
                time.sleep(0.02 * (5 - byte_range.start // 2))
                with lock:
                    inflight -= 1
                return PartDescriptor(
                    part_id=f"part-{byte_range.start}",
                    offset=byte_range.start,
                    size=byte_range.length,
                    sha1=digest,
                )

        transport = _SlowTransport()
        data = b"0123456789"
        result = _upload(ChunkedUploadOrchestrator(transport, max_concurrency=3), data, 2)

        assert isinstance(result, Ok)
        assert peak <= 3
        parts, whole_digest = transport.committed
        assert [p.offset for p in parts] == [0, 2, 4, 6, 8]
        assert whole_digest == DigestEngine().compute(data)

    def test_threaded_upload_failure_skips_commit(self):
        transport = _FakeTransport(fail_at=0)
        result = _upload(ChunkedUploadOrchestrator(transport, max_concurrency=2), b"0123456789", 2)

        assert isinstance(result.error, PartUploadError)
        assert "commit" not in transport.calls

    def test_threaded_upload_stops_dispatch_after_failure(self):
        transport = _FakeTransport(fail_at=0)
        data = b"0123456789"
        result = ChunkedUploadOrchestrator(transport, max_concurrency=4).upload(
            _SlowSource(data), len(data), 1, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result.error, PartUploadError)
        assert result.error.offset_range.start == 0
        # the failure is seen while the next window is read, before it is sent
        assert transport.calls == ["create_session", "upload_part"]

    def test_threaded_upload_cancelled_before_first_part(self):
        cancel = CancelToken()
        cancel.cancel()
        transport = _FakeTransport()
        result = _upload(
            ChunkedUploadOrchestrator(transport, max_concurrency=3), b"0123456789", 2, cancel=cancel
        )

        assert isinstance(result.error, UploadCancelledError)
        assert result.error.next_offset == 0
        assert transport.calls == ["create_session"]

    def test_threaded_upload_cancelled_after_first_part(self):
        cancel = CancelToken()

        async def cancel_on_first(byte_range: ByteRange) -> None:
            if byte_range.start == 0:
                cancel.cancel()

        transport = _FakeTransport(on_part=cancel_on_first)
        data = b"0123456789"
        result = ChunkedUploadOrchestrator(transport, max_concurrency=3).upload(
            _SlowSource(data), len(data), 1, folder_id="0", file_name="test.zip", cancel=cancel
        )

        assert isinstance(result.error, UploadCancelledError)
        assert result.error.next_offset == 1
        assert "commit" not in transport.calls
        # the in-flight part ran to completion
        assert bytes(transport.received) == b"0"

    def test_threaded_upload_short_source_drains_inflight_parts(self):
        transport = _FakeTransport()
        result = ChunkedUploadOrchestrator(transport, max_concurrency=3).upload(
            BytesSource(b"0123"), 10, 2, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result.error, SourceReadError)
        assert result.error.offset_range == ByteRange(4, 5, 10)
        assert "commit" not in transport.calls
        assert sorted(r.start for r in transport.ranges) == [0, 2]
        assert sorted(bytes(transport.received)) == sorted(b"0123")

    def test_missing_file_without_total_size_is_a_source_read_error(self, tmp_path):
        transport = _FakeTransport()
        result = ChunkedUploadOrchestrator(transport).upload(
            FileSource(tmp_path / "missing.zip"), part_size=5, folder_id="0", file_name="missing.zip"
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, SourceReadError)
        assert isinstance(result.error.cause, FileNotFoundError)
        assert transport.calls == []


class TestAsyncChunkedUploadOrchestrator:
    @pytest.mark.asyncio
    async def test_sequential_upload(self):
        transport = _FakeTransport()
        result = await AsyncChunkedUploadOrchestrator(transport).upload(
            BytesSource(b"abcdefgh"), 8, 3, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result, Ok)
        assert [r.length for r in transport.ranges] == [3, 3, 2]
        assert transport.calls[-1] == "commit"

    @pytest.mark.asyncio
    async def test_failed_second_part(self):
        transport = _FakeTransport(fail_at=PART)
        result = await AsyncChunkedUploadOrchestrator(transport).upload(
            BytesSource(b"\x00" * 20_000_000), 20_000_000, PART, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result.error, PartUploadError)
        assert result.error.offset_range == ByteRange(8388608, 16777215, 20_000_000)
        assert "commit" not in transport.calls

    @pytest.mark.asyncio
    async def test_concurrent_upload_bounds_inflight_and_orders_manifest(self):
        inflight = 0
        peak = 0

        async def slow_part(byte_range: ByteRange) -> None:
            nonlocal inflight, peak
            inflight += 1
            peak = max(peak, inflight)
            await anyio.sleep(0.01 * (10 - byte_range.start))
            inflight -= 1

        transport = _FakeTransport(on_part=slow_part)
        data = b"0123456789"
        result = await AsyncChunkedUploadOrchestrator(transport, max_concurrency=2).upload(
            BytesSource(data), len(data), 1, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result, Ok)
        assert peak == 2
        parts, whole_digest = transport.committed
        assert [p.offset for p in parts] == list(range(10))
        assert whole_digest == DigestEngine().compute(data)

    @pytest.mark.asyncio
    async def test_concurrent_failure_stops_dispatch(self):
        transport = _FakeTransport(fail_at=0)
        result = await AsyncChunkedUploadOrchestrator(transport, max_concurrency=2).upload(
            BytesSource(b"0123456789"), 10, 1, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result.error, PartUploadError)
        assert result.error.offset_range.start == 0
        assert "commit" not in transport.calls
        assert transport.calls.count("upload_part") < 10

    @pytest.mark.asyncio
    async def test_concurrent_cancel(self):
        cancel = CancelToken()
        cancel.cancel()
        transport = _FakeTransport()
        result = await AsyncChunkedUploadOrchestrator(transport, max_concurrency=3).upload(
            BytesSource(b"0123456789"), 10, 2, folder_id="0", file_name="test.zip", cancel=cancel
        )

        assert isinstance(result.error, UploadCancelledError)
        assert result.error.next_offset == 0
        assert "upload_part" not in transport.calls

    @pytest.mark.asyncio
    async def test_concurrent_short_source(self):
        transport = _FakeTransport()
        result = await AsyncChunkedUploadOrchestrator(transport, max_concurrency=2).upload(
            BytesSource(b"0123"), 10, 2, folder_id="0", file_name="test.zip"
        )

        assert isinstance(result.error, SourceReadError)
        assert "commit" not in transport.calls

    @pytest.mark.asyncio
    async def test_missing_file_without_total_size(self, tmp_path):
        transport = _FakeTransport()
        result = await AsyncChunkedUploadOrchestrator(transport).upload(
            FileSource(tmp_path / "missing.zip"), part_size=5, folder_id="0", file_name="missing.zip"
        )

        assert isinstance(result.error, SourceReadError)
        assert transport.calls == []


def test_order_parts_sorts_by_offset():
    parts = [
        PartDescriptor(part_id="b", offset=10, size=10, sha1="x"),
        PartDescriptor(part_id="a", offset=0, size=10, sha1="y"),
    ]
    assert [p.part_id for p in order_parts(parts)] == ["a", "b"]
