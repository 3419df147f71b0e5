"""
Example uploading a local file to a Box folder.

Files up to 20 MB go up in a single request. Larger files are split into
parts of the size the upload session asks for, each part is sent with its
SHA-1 digest, and the session is committed with the digest of the whole file.

Usage:
    python examples/chunked_upload.py path/to/file.bin [folder_id]
"""

import asyncio
import os
import sys

from dotenv import load_dotenv

from box_upload import AsyncBoxUploadClient, BoxUploadClient, CancelToken, Err

load_dotenv()

token = os.getenv("BOX_TOKEN")
assert token, "Set BOX_TOKEN"


def sync_example(path: str, folder_id: str) -> None:
    print("=== Sync Upload Example ===\n")

    with BoxUploadClient(token) as client:
        result = client.upload_path(path, folder_id)

    if isinstance(result, Err):
        print(f"Upload failed: {result.error}")
        return
    confirmation = result.value
    print(f"Uploaded {confirmation.name} as file {confirmation.file_id}")
    print(f"  Size: {confirmation.size} bytes")
    print(f"  SHA-1: {confirmation.sha1}")


async def async_example(path: str, folder_id: str) -> None:
    print("\n\n=== Async Chunked Upload Example ===\n")

    cancel = CancelToken()
    async with AsyncBoxUploadClient(token, max_concurrency=4) as client:
        # Force a session even for small files and pick the part size ourselves
        result = await client.upload_path(
            path,
            folder_id,
            f"copy-of-{os.path.basename(path)}",
            strategy="chunked",
            part_size=8 * 1024 * 1024,
            cancel=cancel,
        )

    if isinstance(result, Err):
        print(f"Upload failed: {result.error}")
        return
    print(f"Uploaded {result.value.name} as file {result.value.file_id}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    file_path = sys.argv[1]
    target_folder = sys.argv[2] if len(sys.argv) > 2 else "0"

    sync_example(file_path, target_folder)
    asyncio.run(async_example(file_path, target_folder))
