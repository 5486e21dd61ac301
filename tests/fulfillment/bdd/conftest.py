"""Shared BDD fixtures and step definitions for tracking and disputes."""

from datetime import UTC, datetime, timedelta

import pytest
from fulfillment.dispute.dispute import Dispute
from fulfillment.dispute.events import (
    BuyerResponded,
    DisputeEscalated,
    DisputeOpened,
    DisputeResolved,
    EvidenceAdded,
    SellerResponded,
)
from fulfillment.errors import FulfillmentError
from fulfillment.order.order import Order
from fulfillment.shipment.events import (
    DeliveryAttemptFailed,
    DeliveryConfirmed,
    ShipmentLocationUpdated,
    ShipmentStatusChanged,
)
from fulfillment.shipment.shipment import Shipment
from pytest_bdd import given, parsers, then

_EVENT_CLASSES = {
    "ShipmentStatusChanged": ShipmentStatusChanged,
    "ShipmentLocationUpdated": ShipmentLocationUpdated,
    "DeliveryConfirmed": DeliveryConfirmed,
    "DeliveryAttemptFailed": DeliveryAttemptFailed,
    "DisputeOpened": DisputeOpened,
    "SellerResponded": SellerResponded,
    "BuyerResponded": BuyerResponded,
    "EvidenceAdded": EvidenceAdded,
    "DisputeEscalated": DisputeEscalated,
    "DisputeResolved": DisputeResolved,
}

_DEFAULT_ITEMS = [
    {"product_id": "prod-kb", "name": "Mechanical Keyboard", "quantity": 1, "price": 89.0},
]

START = datetime(2026, 4, 1, 8, 0, tzinfo=UTC)


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@pytest.fixture()
def clock():
    """Hands out strictly increasing event times, one hour apart."""
    ticks = iter(START + timedelta(hours=n) for n in range(1000))
    return lambda: next(ticks)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a placed order", target_fixture="order")
def placed_order():
    order = Order.place(
        order_number="ORD-00000001-0001",
        buyer_id="buyer-bdd",
        seller_id="seller-bdd",
        items_data=_DEFAULT_ITEMS,
        total_amount=89.0,
    )
    order._events.clear()
    return order


@given("an open shipment for the order", target_fixture="shipment")
def open_shipment(order):
    shipment = Shipment.open(
        tracking_number="TRK000000010001",
        order_id=str(order.id),
        seller_id=str(order.seller_id),
        courier_name="GIG Logistics",
    )
    shipment._events.clear()
    return shipment


@given("an open dispute", target_fixture="dispute")
def open_dispute():
    dispute = Dispute.open(
        dispute_number="DSP-00000001-001",
        order_id="ord-bdd-001",
        buyer_id="buyer-bdd",
        seller_id="seller-bdd",
        dispute_type="quality",
        reason="Item damaged",
        description="Keyboard arrived with broken keys",
    )
    dispute._events.clear()
    return dispute


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the action is rejected")
def action_rejected(error):
    assert error["exc"] is not None, "Expected a rejection but none was raised"
    assert isinstance(error["exc"], FulfillmentError)


@then(parsers.cfparse("the action is rejected as {kind}"))
def action_rejected_as(error, kind):
    assert error["exc"] is not None, "Expected a rejection but none was raised"
    assert type(error["exc"]).__name__ == kind


@then(parsers.cfparse("a {event_type} event is raised on the {target}"))
def event_raised(request, event_type, target):
    aggregate = request.getfixturevalue(target)
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in aggregate._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in aggregate._events]}"
