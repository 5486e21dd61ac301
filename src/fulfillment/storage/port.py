"""Blob storage port — where evidence and delivery files live.

Domain code stores a file and keeps only the URL it gets back. Adapters
are selected through configuration.
"""

from abc import ABC, abstractmethod


class BlobStoreError(RuntimeError):
    """A file could not be stored."""


class BlobStorePort(ABC):
    @abstractmethod
    def put(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        """Store ``content`` and return the URL it can be fetched from.

        Raises:
            BlobStoreError: when the store rejects or loses the file.
        """
        ...

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove a stored blob. Unknown URLs are ignored."""
        ...
