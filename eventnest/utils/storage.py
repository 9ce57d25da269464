"""Blob storage for photo bytes, addressed by opaque URL."""

import logging
import secrets
import time
from pathlib import Path
from typing import Protocol

from eventnest.config import settings
from eventnest.errors import BlobStoreError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put(self, data: bytes, content_type: str, filename: str) -> str: ...

    def delete(self, url: str) -> None: ...


class LocalBlobStore:
    """Stores blobs on local disk under ``<root>/photos/``.

    URLs look like ``<base_url>/photos/<key>``. Deleting a blob that is already
    gone is not an error.
    """

    prefix = "photos"

    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, url: str) -> Path:
        expected = f"{self.base_url}/{self.prefix}/"
        if not url.startswith(expected):
            raise BlobStoreError(f"Not a blob URL of this store: {url}")
        key = url[len(expected):]
        if not key or "/" in key or key.startswith("."):
            raise BlobStoreError(f"Malformed blob key in URL: {url}")
        return self.root / self.prefix / key

    def put(self, data: bytes, content_type: str, filename: str) -> str:
        ext = Path(filename).suffix.lower() or ".bin"
        key = f"{int(time.time() * 1000)}-{secrets.token_hex(16)}{ext}"
        path = self.root / self.prefix / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("Failed to store blob %s: %s", key, e)
            raise BlobStoreError("Failed to store photo")
        logger.debug("Stored blob %s (%s, %d bytes)", key, content_type, len(data))
        return f"{self.base_url}/{self.prefix}/{key}"

    def delete(self, url: str) -> None:
        path = self._path_for(url)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete blob %s: %s", path.name, e)
            raise BlobStoreError("Failed to delete photo")


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency: the process-wide blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore(settings.storage_dir, settings.blob_base_url)
    return _blob_store
