"""In-memory blob store for tests and local development."""

from uuid import uuid4

from fulfillment.storage.port import BlobStoreError, BlobStorePort


class FakeBlobStore(BlobStorePort):
    """Keeps blobs in a dict. Can be told to fail after N successful puts."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.fail_after: int | None = None
        self.failure_reason = "Storage unavailable"

    def configure(self, fail_after: int | None = None, failure_reason: str = "Storage unavailable"):
        self.fail_after = fail_after
        self.failure_reason = failure_reason

    def put(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        if self.fail_after is not None and len(self.blobs) >= self.fail_after:
            raise BlobStoreError(self.failure_reason)

        url = f"memory://evidence/{uuid4().hex}-{filename}"
        self.blobs[url] = content
        return url

    def delete(self, url: str) -> None:
        self.blobs.pop(url, None)
