"""Integration tests for the DisputeQueue projection and the sweeps it feeds."""

from datetime import timedelta

from fulfillment.dispute.dispute import Dispute
from fulfillment.dispute.resolution import ResolveDispute
from fulfillment.dispute.responses import SubmitSellerResponse
from fulfillment.escalation.sweep import overdue_disputes, seller_action_items
from fulfillment.projections.dispute_queue import DisputeQueue
from fulfillment.utils.clock import as_utc
from protean import current_domain

SELLER = "seller-001"


def _queue_entry(dispute_id):
    return current_domain.repository_for(DisputeQueue).get(dispute_id)


class TestDisputeQueueProjection:
    def test_opened_dispute_is_queued(self, order, dispute_factory):
        dispute_id = dispute_factory(order)
        entry = _queue_entry(dispute_id)
        dispute = current_domain.repository_for(Dispute).get(dispute_id)
        assert entry.status == "new"
        assert entry.seller_id == SELLER
        assert as_utc(entry.response_deadline) == as_utc(dispute.response_deadline)

    def test_seller_response_clears_deadline(self, order, dispute_factory):
        dispute_id = dispute_factory(order)
        current_domain.process(
            SubmitSellerResponse(dispute_id=dispute_id, response="Refund sent", actor_id=SELLER, actor_role="seller"),
            asynchronous=False,
        )
        entry = _queue_entry(dispute_id)
        assert entry.status == "seller_response"
        assert entry.response_deadline is None

    def test_resolved_dispute_leaves_queue(self, order, dispute_factory):
        dispute_id = dispute_factory(order)
        current_domain.process(
            ResolveDispute(
                dispute_id=dispute_id,
                decision="resolved",
                resolution="Settled",
                actor_id="admin-001",
                actor_role="admin",
            ),
            asynchronous=False,
        )
        assert current_domain.repository_for(DisputeQueue)._dao.query.filter(dispute_id=dispute_id).all().total == 0


class TestSweeps:
    def test_fresh_disputes_need_no_immediate_action(self, order, dispute_factory):
        dispute_factory(order)
        assert seller_action_items(SELLER) == []
        assert overdue_disputes() == []

    def test_disputes_near_deadline_become_action_items(self, order_factory, dispute_factory):
        first = dispute_factory(order_factory())
        second = dispute_factory(order_factory())
        deadline = as_utc(_queue_entry(first).response_deadline)

        items = seller_action_items(SELLER, now=deadline - timedelta(hours=1))
        [item] = items
        assert item["title"] == "Respond to open disputes"
        assert item["meta"] == "2 disputes require immediate response"
        assert item["priority"] == "High"
        assert item["due"] == "Due in 2 hours"
        assert set(item["dispute_ids"]) == {first, second}

        assert seller_action_items("seller-002", now=deadline) == []

    def test_overdue_sweep_flags_without_changing_status(self, order, dispute_factory):
        dispute_id = dispute_factory(order)
        deadline = as_utc(_queue_entry(dispute_id).response_deadline)

        [flag] = overdue_disputes(now=deadline + timedelta(hours=3))
        assert flag["dispute_id"] == dispute_id
        assert flag["overdue_hours"] == 3.0
        assert current_domain.repository_for(Dispute).get(dispute_id).status == "new"
