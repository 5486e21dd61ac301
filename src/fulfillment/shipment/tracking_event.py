"""TrackingEvent — one immutable fact in a shipment's tracking log.

Each reported fact is its own aggregate so that the log is append-only by
construction: there is no operation that edits or deletes an event once it
has been stored. A shipment's status is derived from the latest of these
facts by timestamp, not by arrival order.
"""

from datetime import datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from fulfillment.domain import fulfillment
from fulfillment.utils.clock import as_utc, utcnow


class TrackingStatus(Enum):
    PENDING = "pending"
    PAYMENT_VERIFIED = "payment_verified"
    SELLER_CONFIRMED = "seller_confirmed"
    PACKED = "packed"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED_DELIVERY = "failed_delivery"
    RETURNED = "returned"


TERMINAL_TRACKING_STATUSES = frozenset({TrackingStatus.DELIVERED, TrackingStatus.RETURNED})


@fulfillment.aggregate
class TrackingEvent:
    order_id = Identifier(required=True)
    shipment_id = Identifier()
    status = String(required=True, choices=TrackingStatus)
    location = String(max_length=255)
    description = String(max_length=500)
    courier = String(max_length=100)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)
    timestamp = DateTime(required=True)
    recorded_by = Identifier()

    @classmethod
    def record(
        cls,
        order_id: str,
        status: str,
        shipment_id: str | None = None,
        location: str | None = None,
        description: str | None = None,
        courier: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        timestamp: datetime | None = None,
        recorded_by: str | None = None,
    ):
        return cls(
            order_id=order_id,
            shipment_id=shipment_id,
            status=status,
            location=location,
            description=description,
            courier=courier,
            latitude=latitude,
            longitude=longitude,
            timestamp=as_utc(timestamp) or utcnow(),
            recorded_by=recorded_by,
        )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
