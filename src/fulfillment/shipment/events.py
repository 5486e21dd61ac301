"""Shipment domain events."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Shipment")
class ShipmentOpened:
    """The first tracking report for an order opened a shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    order_id = Identifier(required=True)
    seller_id = Identifier()
    courier_name = String()
    opened_at = DateTime(required=True)


@fulfillment.event(part_of="Shipment")
class ShipmentStatusChanged:
    """A newer tracking event moved the shipment to a different status."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    tracking_event_id = Identifier(required=True)
    occurred_at = DateTime(required=True)


@fulfillment.event(part_of="Shipment")
class ShipmentLocationUpdated:
    __version__ = 1

    shipment_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    address = String()
    recorded_at = DateTime(required=True)


@fulfillment.event(part_of="Shipment")
class DeliveryConfirmed:
    """The shipment reached the buyer."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@fulfillment.event(part_of="Shipment")
class DeliveryAttemptFailed:
    """A delivery attempt failed; the shipment stays in flight."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    attempts = Integer(required=True)
    failed_at = DateTime(required=True)
