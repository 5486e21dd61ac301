"""Blob storage abstraction — pluggable file storage for uploads."""

import os

_blob_store_instance = None


def get_blob_store():
    """Return the configured blob store (singleton).

    ``BLOB_STORE_ADAPTER`` selects ``fake`` (default) or ``local``; the
    local adapter writes under ``BLOB_STORE_ROOT``.
    """
    global _blob_store_instance
    if _blob_store_instance is None:
        adapter = os.environ.get("BLOB_STORE_ADAPTER", "fake")
        if adapter == "fake":
            from fulfillment.storage.fake_adapter import FakeBlobStore

            _blob_store_instance = FakeBlobStore()
        elif adapter == "local":
            from fulfillment.storage.local_adapter import LocalBlobStore

            _blob_store_instance = LocalBlobStore(os.environ.get("BLOB_STORE_ROOT", "uploads"))
        else:
            raise ValueError(f"Unknown blob store adapter: {adapter}")
    return _blob_store_instance


def reset_blob_store():
    global _blob_store_instance
    _blob_store_instance = None
