"""Filesystem blob store — files under a root directory, served as file URLs."""

from pathlib import Path
from urllib.parse import unquote, urlparse
from uuid import uuid4

import structlog

from fulfillment.storage.port import BlobStoreError, BlobStorePort

logger = structlog.get_logger(__name__)


class LocalBlobStore(BlobStorePort):
    def __init__(self, root: str):
        self.root = Path(root)

    def put(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        target = self.root / f"{uuid4().hex}-{Path(filename).name}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            logger.error("Blob write failed", path=str(target), error=str(exc))
            raise BlobStoreError(f"Could not store {filename}") from exc
        return target.resolve().as_uri()

    def delete(self, url: str) -> None:
        if not url.startswith("file://"):
            return
        path = Path(unquote(urlparse(url).path))
        if path.is_relative_to(self.root.resolve()):
            path.unlink(missing_ok=True)
