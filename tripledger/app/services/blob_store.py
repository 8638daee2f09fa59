"""
Blob Store for receipt images.

The ledger only persists opaque paths; access goes through time-limited URLs
signed with the application's JWT key.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from tripledger.app.core.config import settings
from tripledger.app.core.exceptions import NotFoundError, ValidationError
from tripledger.app.core.jwt import create_blob_token, decode_blob_token

logger = logging.getLogger("tripledger.blobs")


def image_path(trip_id: str, expense_id: str, image_id: str, mime_type: str) -> str:
    """Trip/expense-scoped storage path for a receipt image."""
    extension = {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
        "image/gif": "gif",
        "image/heic": "heic",
    }.get(mime_type, "bin")
    return f"{trip_id}/{expense_id}/{image_id}.{extension}"


class LocalBlobStore:
    """
    Filesystem-backed blob store.

    Usage:
        store = LocalBlobStore("/var/lib/tripledger/blobs")
        await store.put("trip/expense/img.jpg", data, "image/jpeg")
        url = store.signed_url("trip/expense/img.jpg")
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        candidate = (self.root / path).resolve()
        if self.root.resolve() not in candidate.parents:
            raise ValidationError("blob path escapes the store root", entity="blob", entity_id=path)
        return candidate

    async def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.info("Stored blob %s (%d bytes, %s)", path, len(data), content_type)
        return path

    async def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError("blob", path)
        return await asyncio.to_thread(target.read_bytes)

    async def delete(self, path: str):
        target = self._resolve(path)
        if target.is_file():
            await asyncio.to_thread(target.unlink)

    def signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        """
        Issue a time-limited download URL for ``path``.

        Args:
            path: Opaque blob path
            expires_in: Lifetime in seconds (default: settings.blob_url_expire_seconds)
        """
        seconds = expires_in if expires_in is not None else settings.blob_url_expire_seconds
        token = create_blob_token(path, seconds)
        return f"/{settings.api_version}/blobs/{path}?token={token}"

    def verify_token(self, path: str, token: str) -> bool:
        return decode_blob_token(token) == path


blob_store = LocalBlobStore(settings.blob_root)


def get_blob_store() -> LocalBlobStore:
    """FastAPI dependency; overridden in tests."""
    return blob_store
