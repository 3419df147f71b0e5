"""Chunked uploads to Box: windowed parts, SHA-1 digests, ordered commit."""

from .client import AsyncBoxUploadClient, BoxUploadClient, plan_upload
from .upload import (
    AsyncChunkedUploadOrchestrator,
    BoxAPIError,
    BoxUploadTransport,
    ByteRange,
    BytesSource,
    CancelToken,
    ChunkedUploadOrchestrator,
    CommitError,
    DebugLogger,
    DigestEngine,
    Err,
    FileSource,
    InvalidUploadArgumentsError,
    Ok,
    PartDescriptor,
    PartUploadError,
    SessionCreationError,
    SourceReadError,
    UploadCancelledError,
    UploadConfirmation,
    UploadError,
    UploadResult,
    UploadSession,
    plan_windows,
)

__version__ = "0.1.0"

__all__ = [
    "BoxUploadClient",
    "AsyncBoxUploadClient",
    "plan_upload",
    "ChunkedUploadOrchestrator",
    "AsyncChunkedUploadOrchestrator",
    "BoxUploadTransport",
    "CancelToken",
    "DigestEngine",
    "DebugLogger",
    "FileSource",
    "BytesSource",
    "ByteRange",
    "PartDescriptor",
    "UploadSession",
    "UploadConfirmation",
    "Ok",
    "Err",
    "UploadResult",
    "UploadError",
    "InvalidUploadArgumentsError",
    "SessionCreationError",
    "PartUploadError",
    "CommitError",
    "SourceReadError",
    "UploadCancelledError",
    "BoxAPIError",
    "plan_windows",
]
