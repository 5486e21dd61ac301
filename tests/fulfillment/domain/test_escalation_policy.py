"""Tests for deadline and escalation rules."""

from datetime import UTC, datetime, timedelta

from fulfillment.dispute.dispute import Dispute, DisputeStatus
from fulfillment.escalation.policy import (
    deadline_expired,
    due_soon,
    next_action,
    overdue_shipments,
    repeated_failures,
    sweep_disputes,
)
from fulfillment.shipment.shipment import Shipment

NOW = datetime(2026, 5, 10, 12, 0, tzinfo=UTC)


def _dispute(number="DSP-00000001-001", deadline=None):
    dispute = Dispute.open(
        dispute_number=number,
        order_id="ord-1",
        buyer_id="buyer-1",
        seller_id="seller-1",
        dispute_type="delivery",
        reason="Never arrived",
        description="Tracking says delivered but nothing came",
    )
    dispute.response_deadline = deadline
    return dispute


def _shipment(estimated_delivery=None):
    return Shipment.open(
        tracking_number="TRK000000010001",
        order_id="ord-1",
        seller_id="seller-1",
        estimated_delivery=estimated_delivery,
    )


class TestDeadlines:
    def test_expired_when_deadline_passed(self):
        assert deadline_expired(_dispute(deadline=NOW - timedelta(minutes=1)), NOW) is True

    def test_not_expired_before_deadline(self):
        assert deadline_expired(_dispute(deadline=NOW + timedelta(days=1)), NOW) is False

    def test_terminal_disputes_never_expire(self):
        dispute = _dispute(deadline=NOW - timedelta(days=1))
        dispute.resolve(DisputeStatus.RESOLVED, "Settled", admin_id="admin-1")
        dispute.response_deadline = NOW - timedelta(days=1)
        assert deadline_expired(dispute, NOW) is False

    def test_expiry_does_not_change_status(self):
        dispute = _dispute(deadline=NOW - timedelta(days=3))
        sweep_disputes([dispute], NOW)
        next_action(dispute, NOW)
        assert dispute.status == "new"


class TestNextAction:
    def test_new_dispute_requires_seller_action(self):
        action = next_action(_dispute(deadline=NOW + timedelta(days=2)), NOW)
        assert action.action_required is True
        assert action.deadline_expired is False

    def test_expired_deadline_is_flagged(self):
        action = next_action(_dispute(deadline=NOW - timedelta(hours=1)), NOW)
        assert action.deadline_expired is True
        assert "deadline passed" in action.prompt

    def test_waiting_on_buyer_needs_no_seller_action(self):
        dispute = _dispute(deadline=NOW + timedelta(days=2))
        dispute.submit_seller_response("Refund offered", seller_id="seller-1")
        action = next_action(dispute, NOW)
        assert action.action_required is False
        assert action.deadline_expired is False


class TestSweeps:
    def test_sweep_orders_by_most_overdue(self):
        slightly = _dispute("DSP-1", NOW - timedelta(hours=1))
        badly = _dispute("DSP-2", NOW - timedelta(days=2))
        fine = _dispute("DSP-3", NOW + timedelta(days=1))
        flags = sweep_disputes([slightly, fine, badly], NOW)
        assert [f.dispute_number for f in flags] == ["DSP-2", "DSP-1"]
        assert flags[0].overdue_by == timedelta(days=2)

    def test_due_soon_includes_overdue_and_two_hour_window(self):
        overdue = _dispute("DSP-1", NOW - timedelta(hours=1))
        within = _dispute("DSP-2", NOW + timedelta(minutes=90))
        later = _dispute("DSP-3", NOW + timedelta(hours=5))
        assert [d.dispute_number for d in due_soon([overdue, within, later], NOW)] == ["DSP-1", "DSP-2"]

    def test_due_soon_ignores_disputes_waiting_on_buyer(self):
        dispute = _dispute(deadline=NOW + timedelta(minutes=30))
        dispute.submit_seller_response("Done", seller_id="seller-1")
        dispute.response_deadline = NOW + timedelta(minutes=30)
        assert due_soon([dispute], NOW) == []


class TestShipmentRules:
    def test_overdue_when_in_flight_past_estimate(self):
        late = _shipment(NOW - timedelta(days=1))
        on_time = _shipment(NOW + timedelta(days=1))
        assert overdue_shipments([late, on_time], NOW) == [late]

    def test_delivered_shipments_are_never_overdue(self):
        shipment = _shipment(NOW - timedelta(days=1))
        shipment.status = "delivered"
        assert overdue_shipments([shipment], NOW) == []

    def test_repeated_failures(self):
        shipment = _shipment()
        for _ in range(3):
            shipment.record_failed_attempt(None)
        once = _shipment()
        once.record_failed_attempt(None)
        assert repeated_failures([shipment, once]) == [shipment]
