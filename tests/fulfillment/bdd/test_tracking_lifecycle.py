"""BDD tests for the shipment tracking lifecycle."""

from datetime import timedelta

from fulfillment.errors import FulfillmentError
from fulfillment.shipment.status_bridge import bridge
from fulfillment.shipment.tracking_event import TrackingEvent
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/tracking_lifecycle.feature")


def _record(order, shipment, status, location, at):
    event = TrackingEvent.record(
        order_id=str(order.id),
        shipment_id=str(shipment.id),
        status=status,
        location=location,
        description=f"Package {status}",
        timestamp=at,
    )
    if shipment.apply_event(event):
        bridge(order, shipment.status)


@when(parsers.cfparse('a "{status}" tracking event is recorded at "{location}"'))
def record_event(order, shipment, clock, status, location):
    _record(order, shipment, status, location, clock())


@when(parsers.cfparse('an older "{status}" tracking event arrives from "{location}"'))
def record_older_event(order, shipment, status, location):
    _record(order, shipment, status, location, shipment.last_event_at - timedelta(hours=6))


@when(parsers.cfparse('a "{status}" tracking event is attempted at "{location}"'))
def attempt_event(order, shipment, clock, error, status, location):
    try:
        _record(order, shipment, status, location, clock())
    except FulfillmentError as exc:
        error["exc"] = exc


@when(parsers.cfparse('a delivery attempt fails with reason "{reason}"'))
def fail_delivery(shipment, reason):
    shipment.record_failed_attempt(reason)


@when("a delivery attempt fails without a reason")
def fail_delivery_without_reason(shipment):
    shipment.record_failed_attempt(None)


@then(parsers.cfparse('the shipment status is "{status}"'))
def shipment_status_is(shipment, status):
    assert shipment.status == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the order timeline reads "{statuses}"'))
def order_timeline_reads(order, statuses):
    assert [e.status for e in order.ordered_timeline] == [s.strip() for s in statuses.split(",")]


@then(parsers.cfparse("the shipment references {count:d} tracking events"))
def shipment_references_events(shipment, count):
    assert len(shipment.tracking_event_ids) == count


@then("the shipment has an actual delivery time")
def shipment_has_actual_delivery(shipment):
    assert shipment.actual_delivery is not None


@then(parsers.cfparse("the shipment has {count:d} failed delivery attempts"))
def shipment_failed_attempts(shipment, count):
    assert shipment.failed_delivery_attempts == count


@then(parsers.cfparse('the failed delivery reason is "{reason}"'))
def failed_delivery_reason_is(shipment, reason):
    assert shipment.failed_delivery_reason == reason
