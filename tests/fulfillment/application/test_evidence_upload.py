"""Application tests for evidence upload through blob storage."""

import pytest
from fulfillment.dispute.dispute import Dispute
from fulfillment.dispute.evidence import EvidenceFile, upload_evidence
from fulfillment.dispute.resolution import ResolveDispute
from fulfillment.errors import Forbidden, NotFound, Unprocessable
from fulfillment.storage import get_blob_store
from fulfillment.storage.port import BlobStoreError
from protean import current_domain
from protean.exceptions import ValidationError

BUYER = "buyer-001"
SELLER = "seller-001"


def _files(*names):
    return [EvidenceFile(filename=name, content=b"evidence-bytes") for name in names]


@pytest.fixture()
def dispute_id(order, dispute_factory):
    return dispute_factory(order)


class TestUploadEvidence:
    def test_files_are_stored_and_attached(self, dispute_id):
        entries = upload_evidence(dispute_id, _files("front.jpg", "receipt.pdf"), BUYER, "buyer", notes="Damage")

        assert [e["type"] for e in entries] == ["photo", "document"]
        assert all(e["url"] in get_blob_store().blobs for e in entries)

        dispute = current_domain.repository_for(Dispute).get(dispute_id)
        assert [e.url for e in dispute.ordered_evidence] == [e["url"] for e in entries]
        assert all(e.description == "Damage" for e in dispute.evidence)
        assert all(e.uploaded_by_role == "buyer" for e in dispute.evidence)

    def test_seller_may_upload(self, dispute_id):
        upload_evidence(dispute_id, _files("unboxing.mp4"), SELLER, "seller")
        [evidence] = current_domain.repository_for(Dispute).get(dispute_id).evidence
        assert evidence.evidence_type == "video"

    def test_storage_failure_leaves_nothing_behind(self, dispute_id):
        get_blob_store().configure(fail_after=1)

        with pytest.raises(BlobStoreError):
            upload_evidence(dispute_id, _files("a.jpg", "b.jpg"), BUYER, "buyer")

        assert get_blob_store().blobs == {}
        assert current_domain.repository_for(Dispute).get(dispute_id).evidence == []

    def test_invalid_batch_stores_nothing(self, dispute_id):
        with pytest.raises(ValidationError):
            upload_evidence(dispute_id, _files("a.jpg", "script.sh"), BUYER, "buyer")
        assert get_blob_store().blobs == {}

    def test_terminal_dispute_stores_nothing(self, dispute_id):
        current_domain.process(
            ResolveDispute(
                dispute_id=dispute_id,
                decision="rejected",
                resolution="Outside policy",
                actor_id="admin-001",
                actor_role="admin",
            ),
            asynchronous=False,
        )
        with pytest.raises(Unprocessable):
            upload_evidence(dispute_id, _files("a.jpg"), BUYER, "buyer")
        assert get_blob_store().blobs == {}

    def test_admin_cannot_upload(self, dispute_id):
        with pytest.raises(Forbidden):
            upload_evidence(dispute_id, _files("a.jpg"), "admin-001", "admin")

    def test_non_party_cannot_upload(self, dispute_id):
        with pytest.raises(NotFound):
            upload_evidence(dispute_id, _files("a.jpg"), "buyer-999", "buyer")
        assert get_blob_store().blobs == {}
