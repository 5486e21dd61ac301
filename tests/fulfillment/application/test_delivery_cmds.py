"""Application tests for location pings and delivery outcomes."""

from datetime import UTC, datetime, timedelta

import pytest
from fulfillment.errors import Forbidden, NotFound
from fulfillment.order.order import Order
from fulfillment.shipment.delivery import ConfirmDelivery, RecordFailedDelivery
from fulfillment.shipment.location import UpdateShipmentLocation
from fulfillment.shipment.recording import RecordTrackingEvent
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.tracking_event import TrackingEvent
from fulfillment.utils.clock import as_utc
from protean import current_domain

SELLER = "seller-001"

T0 = datetime(2026, 6, 1, 9, 0, tzinfo=UTC)


@pytest.fixture()
def shipment(order):
    current_domain.process(
        RecordTrackingEvent(
            order_id=str(order.id),
            status="shipped",
            location="Lagos Hub",
            description="Handed to courier",
            courier="GIG Logistics",
            timestamp=T0,
            actor_id=SELLER,
            actor_role="seller",
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Shipment).latest_for_order(str(order.id))


def _report_ahead_of_clock(order):
    """Out for delivery, stamped by a courier device whose clock runs an hour fast."""
    ahead = datetime.now(UTC) + timedelta(hours=1)
    current_domain.process(
        RecordTrackingEvent(
            order_id=str(order.id),
            status="out_for_delivery",
            location="Ikeja",
            description="Out for delivery",
            timestamp=ahead,
            actor_id=SELLER,
            actor_role="seller",
        ),
        asynchronous=False,
    )
    return ahead


def _reload(shipment):
    return current_domain.repository_for(Shipment).get(shipment.id)


def _ping(shipment, at, lat=6.5, lon=3.4, address="Ikeja"):
    return current_domain.process(
        UpdateShipmentLocation(
            shipment_id=str(shipment.id),
            latitude=lat,
            longitude=lon,
            address=address,
            recorded_at=at,
            actor_id=SELLER,
            actor_role="seller",
        ),
        asynchronous=False,
    )


class TestLocationUpdates:
    def test_ping_moves_shipment_without_changing_status(self, shipment):
        assert _ping(shipment, T0 + timedelta(hours=1)) is True

        shipment = _reload(shipment)
        assert shipment.status == "shipped"
        assert shipment.current_location.address == "Ikeja"
        assert shipment.current_location.latitude == 6.5
        assert len(shipment.tracking_event_ids) == 2

    def test_older_ping_is_ignored(self, shipment):
        _ping(shipment, T0 + timedelta(hours=2), address="Ikeja")
        assert _ping(shipment, T0 + timedelta(hours=1), address="Yaba") is False

        shipment = _reload(shipment)
        assert shipment.current_location.address == "Ikeja"
        assert len(shipment.tracking_event_ids) == 2

    def test_unknown_shipment(self):
        with pytest.raises(NotFound):
            current_domain.process(
                UpdateShipmentLocation(
                    shipment_id="missing",
                    latitude=0.0,
                    longitude=0.0,
                    address="Nowhere",
                    actor_id=SELLER,
                    actor_role="seller",
                ),
                asynchronous=False,
            )


def _confirm(shipment, **proof):
    return current_domain.process(
        ConfirmDelivery(shipment_id=str(shipment.id), actor_id=SELLER, actor_role="seller", **proof),
        asynchronous=False,
    )


class TestConfirmDelivery:
    def test_confirmation_delivers_shipment_and_order(self, shipment, order):
        assert _confirm(shipment, delivery_person="Tunde", delivery_signature="sig-data") is True

        shipment = _reload(shipment)
        assert shipment.status == "delivered"
        assert shipment.actual_delivery is not None
        assert shipment.delivery_proof.person == "Tunde"
        assert current_domain.repository_for(Order).get(order.id).status == "delivered"

    def test_resubmission_only_fills_missing_proof(self, shipment):
        _confirm(shipment, delivery_person="Tunde")
        first_delivery = _reload(shipment).actual_delivery

        assert _confirm(shipment, delivery_person="Someone else", delivery_image="https://img/1.jpg") is False

        shipment = _reload(shipment)
        assert shipment.delivery_proof.person == "Tunde"
        assert shipment.delivery_proof.image == "https://img/1.jpg"
        assert shipment.actual_delivery == first_delivery
        events = current_domain.repository_for(TrackingEvent).for_shipment(str(shipment.id))
        assert [e.status for e in events].count("delivered") == 1

    def test_confirmation_after_report_ahead_of_clock(self, shipment, order):
        ahead = _report_ahead_of_clock(order)

        assert _confirm(shipment) is True

        shipment = _reload(shipment)
        assert shipment.status == "delivered"
        assert shipment.actual_delivery is not None
        assert as_utc(shipment.last_event_at) >= ahead
        assert current_domain.repository_for(Order).get(order.id).status == "delivered"

    def test_other_seller_cannot_confirm(self, shipment):
        with pytest.raises(Forbidden):
            current_domain.process(
                ConfirmDelivery(shipment_id=str(shipment.id), actor_id="seller-999", actor_role="seller"),
                asynchronous=False,
            )
        assert _reload(shipment).status == "shipped"


class TestFailedDelivery:
    def _fail(self, shipment, reason=None):
        current_domain.process(
            RecordFailedDelivery(shipment_id=str(shipment.id), reason=reason, actor_id=SELLER, actor_role="seller"),
            asynchronous=False,
        )

    def test_failed_attempt_is_recorded(self, shipment, order):
        self._fail(shipment, "Gate locked")

        shipment = _reload(shipment)
        assert shipment.status == "failed_delivery"
        assert shipment.failed_delivery_reason == "Gate locked"
        assert shipment.failed_delivery_attempts == 1
        assert current_domain.repository_for(Order).get(order.id).status == "shipped"

    def test_default_reason_and_attempt_count(self, shipment):
        self._fail(shipment)
        self._fail(shipment)

        shipment = _reload(shipment)
        assert shipment.failed_delivery_reason == "Recipient not available"
        assert shipment.failed_delivery_attempts == 2

    def test_delivery_after_failed_attempt(self, shipment):
        self._fail(shipment)
        _confirm(shipment)
        assert _reload(shipment).status == "delivered"

    def test_failed_attempt_after_report_ahead_of_clock(self, shipment, order):
        _report_ahead_of_clock(order)

        self._fail(shipment, "Gate locked")

        shipment = _reload(shipment)
        assert shipment.status == "failed_delivery"
        assert shipment.failed_delivery_attempts == 1
        events = current_domain.repository_for(TrackingEvent).for_shipment(str(shipment.id))
        assert [e.status for e in events].count("failed_delivery") == 1
