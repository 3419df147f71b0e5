from __future__ import annotations

from typing import Any

import httpx

from .types import ByteRange


class UploadError(Exception):
    def __init__(self, message: str, cause: BaseException | None = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause


class InvalidUploadArgumentsError(UploadError, ValueError):
    pass


class SessionCreationError(UploadError):
    pass


class PartUploadError(UploadError):
    """A single part failed; earlier parts stay stored in the open session."""

    def __init__(
        self,
        offset_range: ByteRange,
        message: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(
            message or f"Failed to upload part {offset_range.start}-{offset_range.end}",
            cause,
        )
        self.offset_range = offset_range


class CommitError(UploadError):
    def __init__(
        self,
        message: str = "Failed to commit upload session",
        cause: BaseException | None = None,
        *,
        retry_after: int | None = None,
    ):
        super().__init__(message, cause)
        self.retry_after = retry_after


class SourceReadError(UploadError):
    def __init__(
        self,
        offset_range: ByteRange,
        message: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(
            message or f"Failed to read bytes {offset_range.start}-{offset_range.end}",
            cause,
        )
        self.offset_range = offset_range


class UploadCancelledError(UploadError):
    def __init__(self, next_offset: int):
        super().__init__(f"Upload cancelled before part at offset {next_offset}")
        self.next_offset = next_offset


class BoxAPIError(Exception):
    """Error response from the Box API."""

    def __init__(
        self,
        response: httpx.Response,
        message: str,
        *,
        code: str | None = None,
        request_id: str | None = None,
        data: Any | None = None,
    ):
        super().__init__(message)
        self.response = response
        self.status_code = response.status_code
        self.code = code
        self.request_id = request_id
        self.data = data


def parse_box_error(response: httpx.Response) -> BoxAPIError:
    """Decode a Box error body (``type``/``status``/``code``/``message``)."""
    message = f"HTTP {response.status_code}"
    code: str | None = None
    request_id: str | None = None
    parsed: Any | None = None
    try:
        parsed = response.json()
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        code = parsed.get("code")
        request_id = parsed.get("request_id")
        if isinstance(parsed.get("message"), str):
            message = f"{message}: {parsed['message']}"
        if code:
            message = f"{message} (code={code})"
    elif response.text:
        text = response.text
        snippet = text if len(text) <= 500 else text[:500] + "..."
        message = f"{message}: {snippet}"

    return BoxAPIError(response, message, code=code, request_id=request_id, data=parsed)


__all__ = [
    "UploadError",
    "InvalidUploadArgumentsError",
    "SessionCreationError",
    "PartUploadError",
    "CommitError",
    "SourceReadError",
    "UploadCancelledError",
    "BoxAPIError",
    "parse_box_error",
]
