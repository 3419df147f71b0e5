"""Shared fixtures for all tests."""

from collections.abc import Generator

import pytest

UPLOAD_API_BASE = "https://upload.box.com/api/2.0"


@pytest.fixture
def mock_env_clear(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear Box-related environment variables for testing.

    This ensures tests don't accidentally use real credentials from the environment.
    """
    for var in ("BOX_TOKEN", "BOX_UPLOAD_BASE_URL", "DEBUG"):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def mock_token() -> str:
    """Mock Box developer token for testing."""
    return "box_test_token_123456789"


@pytest.fixture
def mock_session_response() -> dict:
    """Mock response for creating an upload session."""
    return {
        "id": "F971964745A5CD0C001BBE4E58196BFD",
        "type": "upload_session",
        "num_parts_processed": 0,
        "part_size": 8388608,
        "total_parts": 3,
        "session_expires_at": "2026-10-26T10:53:43-08:00",
        "session_endpoints": {
            "upload_part": f"{UPLOAD_API_BASE}/files/upload_sessions/F971964745A5CD0C001BBE4E58196BFD",
            "commit": f"{UPLOAD_API_BASE}/files/upload_sessions/F971964745A5CD0C001BBE4E58196BFD/commit",
            "abort": f"{UPLOAD_API_BASE}/files/upload_sessions/F971964745A5CD0C001BBE4E58196BFD",
            "list_parts": f"{UPLOAD_API_BASE}/files/upload_sessions/F971964745A5CD0C001BBE4E58196BFD/parts",
            "status": f"{UPLOAD_API_BASE}/files/upload_sessions/F971964745A5CD0C001BBE4E58196BFD",
        },
    }


@pytest.fixture
def mock_file_entry() -> dict:
    """Mock file object returned by commit and single uploads."""
    return {
        "id": "12345",
        "type": "file",
        "name": "test.zip",
        "size": 20000000,
        "sha1": "85136c79cbf9fe36bb9d05d0639c70c265c18d37",
    }


@pytest.fixture
def mock_error_conflict() -> dict:
    """Mock 409 item_name_in_use error body."""
    return {
        "type": "error",
        "status": 409,
        "code": "item_name_in_use",
        "message": "Item with the same name already exists",
        "request_id": "abcdef123456",
    }
