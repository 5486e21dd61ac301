import pytest
from fulfillment.storage import get_blob_store, reset_blob_store
from fulfillment.storage.fake_adapter import FakeBlobStore
from fulfillment.storage.local_adapter import LocalBlobStore
from fulfillment.storage.port import BlobStoreError


class TestFakeBlobStore:
    def test_put_and_delete(self):
        store = FakeBlobStore()
        url = store.put("photo.jpg", b"bytes")
        assert url.startswith("memory://evidence/")
        assert store.blobs[url] == b"bytes"
        store.delete(url)
        assert store.blobs == {}

    def test_configured_failure(self):
        store = FakeBlobStore()
        store.configure(fail_after=1, failure_reason="Disk full")
        store.put("a.jpg", b"a")
        with pytest.raises(BlobStoreError, match="Disk full"):
            store.put("b.jpg", b"b")


class TestLocalBlobStore:
    def test_writes_under_root(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "uploads"))
        url = store.put("../../receipt.pdf", b"%PDF")
        assert url.startswith("file://")
        [stored] = list((tmp_path / "uploads").iterdir())
        assert stored.name.endswith("-receipt.pdf")
        assert stored.read_bytes() == b"%PDF"

        store.delete(url)
        assert list((tmp_path / "uploads").iterdir()) == []

    def test_deletes_filename_with_space(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "uploads"))
        url = store.put("my photo.jpg", b"\xff\xd8\xff")
        assert "%20" in url

        store.delete(url)
        assert list((tmp_path / "uploads").iterdir()) == []

    def test_ignores_foreign_urls(self, tmp_path):
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")
        store = LocalBlobStore(str(tmp_path / "uploads"))
        store.delete(outside.as_uri())
        store.delete("memory://evidence/x")
        assert outside.exists()


class TestAdapterSelection:
    def test_local_adapter_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BLOB_STORE_ADAPTER", "local")
        monkeypatch.setenv("BLOB_STORE_ROOT", str(tmp_path))
        reset_blob_store()
        assert isinstance(get_blob_store(), LocalBlobStore)

    def test_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("BLOB_STORE_ADAPTER", "s3")
        reset_blob_store()
        with pytest.raises(ValueError):
            get_blob_store()
