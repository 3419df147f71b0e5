from .config import DEFAULT_PART_SIZE, MAX_CONCURRENCY, SMALL_FILE_THRESHOLD
from .digest import DigestAccumulator, DigestEngine, sha1_hex
from .errors import (
    BoxAPIError,
    CommitError,
    InvalidUploadArgumentsError,
    PartUploadError,
    SessionCreationError,
    SourceReadError,
    UploadCancelledError,
    UploadError,
)
from .logger import DebugLogger, UploadLogger
from .orchestrator import (
    AsyncChunkedUploadOrchestrator,
    CancelToken,
    ChunkedUploadOrchestrator,
    order_parts,
)
from .result import Err, Ok, UploadResult
from .source import BytesSource, ContentSource, FileSource, measure_source, read_windows
from .transport import BoxUploadTransport, UploadTransport
from .types import ByteRange, ChunkWindow, PartDescriptor, UploadConfirmation, UploadSession
from .windows import count_windows, plan_windows, validate_sizes

__all__ = [
    "DEFAULT_PART_SIZE",
    "MAX_CONCURRENCY",
    "SMALL_FILE_THRESHOLD",
    "DigestEngine",
    "DigestAccumulator",
    "sha1_hex",
    "UploadError",
    "InvalidUploadArgumentsError",
    "SessionCreationError",
    "PartUploadError",
    "CommitError",
    "SourceReadError",
    "UploadCancelledError",
    "BoxAPIError",
    "UploadLogger",
    "DebugLogger",
    "CancelToken",
    "ChunkedUploadOrchestrator",
    "AsyncChunkedUploadOrchestrator",
    "order_parts",
    "Ok",
    "Err",
    "UploadResult",
    "ContentSource",
    "FileSource",
    "BytesSource",
    "measure_source",
    "read_windows",
    "UploadTransport",
    "BoxUploadTransport",
    "ByteRange",
    "ChunkWindow",
    "PartDescriptor",
    "UploadConfirmation",
    "UploadSession",
    "plan_windows",
    "count_windows",
    "validate_sizes",
]
