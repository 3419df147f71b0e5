"""Box upload session API: create, upload part, commit, abort, single upload."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from .._http import BaseTransport, BytesBody, FormBody, JSONBody
from .digest import sha1_hex
from .errors import CommitError, SessionCreationError, parse_box_error
from .types import ByteRange, PartDescriptor, UploadConfirmation, UploadSession

SESSIONS_PATH = "/files/upload_sessions"
CONTENT_PATH = "/files/content"


class UploadTransport(Protocol):
    async def create_session(
        self, folder_id: str, file_name: str, total_size: int
    ) -> UploadSession:  # pragma: no cover - Protocol
        ...

    async def upload_part(
        self, session: UploadSession, byte_range: ByteRange, digest: str, data: bytes
    ) -> PartDescriptor:  # pragma: no cover - Protocol
        ...

    async def commit(
        self, session: UploadSession, parts: Sequence[PartDescriptor], whole_file_digest: str
    ) -> UploadConfirmation:  # pragma: no cover - Protocol
        ...

    async def abort(self, session: UploadSession) -> None:  # pragma: no cover - Protocol
        ...

    async def upload_file(
        self, folder_id: str, file_name: str, data: bytes, sha1: str
    ) -> UploadConfirmation:  # pragma: no cover - Protocol
        ...


def _raise_for_status(response: httpx.Response) -> None:
    if not 200 <= response.status_code < 300:
        raise parse_box_error(response)


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def build_session(
    raw: dict[str, Any], *, folder_id: str, file_name: str, total_size: int
) -> UploadSession:
    session_id = raw.get("id")
    if not session_id:
        raise SessionCreationError("Upload session response did not include an id")
    return UploadSession(
        id=str(session_id),
        folder_id=folder_id,
        file_name=file_name,
        total_size=total_size,
        part_size=raw.get("part_size"),
        total_parts=raw.get("total_parts"),
        endpoints=dict(raw.get("session_endpoints") or {}),
        expires_at=raw.get("session_expires_at"),
    )


def build_part_descriptor(raw: dict[str, Any], byte_range: ByteRange, data: bytes) -> PartDescriptor:
    # The manifest carries bare hex SHA-1s, not the sha=<base64> request digest.
    part = raw.get("part") or {}
    return PartDescriptor(
        part_id=str(part["part_id"]),
        offset=int(part.get("offset", byte_range.start)),
        size=int(part.get("size", byte_range.length)),
        sha1=str(part.get("sha1") or sha1_hex(data)),
    )


def build_confirmation(raw: dict[str, Any]) -> UploadConfirmation:
    entries = raw.get("entries") or []
    if not entries:
        raise CommitError("Upload response did not include the created file")
    entry = entries[0]
    return UploadConfirmation(
        file_id=str(entry["id"]),
        name=entry.get("name", ""),
        size=entry.get("size"),
        sha1=entry.get("sha1"),
        raw=raw,
    )


class BoxUploadTransport:
    """Box chunked upload endpoints on top of a sync or async HTTP transport.

    The methods are coroutines in both cases. With a ``BlockingTransport``
    they never suspend, so the sync client can run them via ``iter_coroutine``.
    """

    def __init__(self, http: BaseTransport) -> None:
        self._http = http

    @property
    def http(self) -> BaseTransport:
        return self._http

    def _endpoint(self, session: UploadSession, name: str, fallback: str) -> str:
        return session.endpoints.get(name) or fallback

    async def create_session(self, folder_id: str, file_name: str, total_size: int) -> UploadSession:
        response = await self._http.send(
            "POST",
            SESSIONS_PATH,
            body=JSONBody({"folder_id": folder_id, "file_size": total_size, "file_name": file_name}),
        )
        _raise_for_status(response)
        return build_session(
            response.json(), folder_id=folder_id, file_name=file_name, total_size=total_size
        )

    async def upload_part(
        self, session: UploadSession, byte_range: ByteRange, digest: str, data: bytes
    ) -> PartDescriptor:
        url = self._endpoint(session, "upload_part", f"{SESSIONS_PATH}/{session.id}")
        response = await self._http.send(
            "PUT",
            url,
            body=BytesBody(data),
            headers={"digest": digest, "content-range": byte_range.content_range},
        )
        _raise_for_status(response)
        return build_part_descriptor(response.json(), byte_range, data)

    async def commit(
        self, session: UploadSession, parts: Sequence[PartDescriptor], whole_file_digest: str
    ) -> UploadConfirmation:
        url = self._endpoint(session, "commit", f"{SESSIONS_PATH}/{session.id}/commit")
        response = await self._http.send(
            "POST",
            url,
            body=JSONBody({"parts": [part.to_manifest() for part in parts]}),
            headers={"digest": whole_file_digest},
        )
        if response.status_code == 202:
            # Parts are still being processed server-side; the caller decides
            # whether and when to commit again.
            raise CommitError(
                "Upload session is still processing parts",
                retry_after=_parse_retry_after(response.headers.get("retry-after")),
            )
        _raise_for_status(response)
        return build_confirmation(response.json())

    async def abort(self, session: UploadSession) -> None:
        url = self._endpoint(session, "abort", f"{SESSIONS_PATH}/{session.id}")
        response = await self._http.send("DELETE", url)
        _raise_for_status(response)

    async def upload_file(
        self, folder_id: str, file_name: str, data: bytes, sha1: str
    ) -> UploadConfirmation:
        attributes = json.dumps({"name": file_name, "parent": {"id": folder_id}})
        response = await self._http.send(
            "POST",
            CONTENT_PATH,
            body=FormBody(data={"attributes": attributes}, files={"file": (file_name, data)}),
            headers={"content-md5": sha1},
        )
        _raise_for_status(response)
        return build_confirmation(response.json())


__all__ = [
    "UploadTransport",
    "BoxUploadTransport",
    "build_session",
    "build_part_descriptor",
    "build_confirmation",
]
