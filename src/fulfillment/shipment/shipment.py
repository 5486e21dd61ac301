"""Shipment aggregate (CQRS) — a physical package in flight for an order.

The shipment never sets its own status directly. Every change comes from a
stored TrackingEvent folded in through ``apply_event``, so the current
status is always that of the latest event by timestamp.

State Machine (fine-grained tracking vocabulary):
    PENDING → PAYMENT_VERIFIED → SELLER_CONFIRMED → PACKED → SHIPPED
        → IN_TRANSIT → OUT_FOR_DELIVERY → DELIVERED
    any in-flight status → FAILED_DELIVERY → (retry, moves forward again)
    any non-terminal → RETURNED
    DELIVERED, RETURNED → (terminal)
"""

import json
from datetime import datetime
from enum import Enum

import structlog
from protean.fields import (
    DateTime,
    Float,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from fulfillment.domain import fulfillment
from fulfillment.errors import Unprocessable
from fulfillment.shipment.events import (
    DeliveryAttemptFailed,
    DeliveryConfirmed,
    ShipmentLocationUpdated,
    ShipmentOpened,
    ShipmentStatusChanged,
)
from fulfillment.shipment.tracking_event import (
    TERMINAL_TRACKING_STATUSES,
    TrackingEvent,
    TrackingStatus,
)
from fulfillment.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)

DEFAULT_FAILED_DELIVERY_REASON = "Recipient not available"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    PRIORITY = "priority"


class PackageType(Enum):
    STANDARD_BOX = "Standard Box"
    ENVELOPE = "Envelope"
    LARGE_BOX = "Large Box"
    PALLET = "Pallet"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@fulfillment.value_object(part_of="Shipment")
class PackageDimensions:
    """Outer dimensions in centimetres."""

    length = Float(min_value=0.0)
    width = Float(min_value=0.0)
    height = Float(min_value=0.0)


@fulfillment.value_object(part_of="Shipment")
class GeoPoint:
    """Last known position of the package."""

    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    address = String(max_length=255)
    recorded_at = DateTime(required=True)


@fulfillment.value_object(part_of="Shipment")
class DeliveryProof:
    person = String(max_length=200)
    image = String(max_length=1000)
    signature = Text()


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Shipment:
    tracking_number = String(required=True, max_length=50, unique=True)
    order_id = Identifier(required=True)
    seller_id = Identifier()
    courier_name = String(max_length=100)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    package_type = String(choices=PackageType, default=PackageType.STANDARD_BOX.value)
    weight = Float(min_value=0.0)
    dimensions = ValueObject(PackageDimensions)
    status = String(choices=TrackingStatus, default=TrackingStatus.PENDING.value)
    last_event_at = DateTime()
    current_location = ValueObject(GeoPoint)
    estimated_delivery = DateTime()
    actual_delivery = DateTime()
    delivery_proof = ValueObject(DeliveryProof)
    failed_delivery_reason = String(max_length=500)
    failed_delivery_attempts = Integer(default=0)
    event_ids = Text()  # JSON array of TrackingEvent ids, in arrival order
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(
        cls,
        tracking_number: str,
        order_id: str,
        seller_id: str | None = None,
        courier_name: str | None = None,
        estimated_delivery: datetime | None = None,
    ):
        now = utcnow()
        shipment = cls(
            tracking_number=tracking_number,
            order_id=order_id,
            seller_id=seller_id,
            courier_name=courier_name,
            estimated_delivery=as_utc(estimated_delivery),
            status=TrackingStatus.PENDING.value,
            event_ids=json.dumps([]),
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentOpened(
                shipment_id=str(shipment.id),
                tracking_number=tracking_number,
                order_id=str(order_id),
                seller_id=str(seller_id) if seller_id else None,
                courier_name=courier_name,
                opened_at=now,
            )
        )
        return shipment

    @property
    def tracking_event_ids(self) -> list[str]:
        return json.loads(self.event_ids) if self.event_ids else []

    @property
    def is_terminal(self) -> bool:
        return TrackingStatus(self.status) in TERMINAL_TRACKING_STATUSES

    def is_stale(self, moment: datetime) -> bool:
        """True when ``moment`` is older than the latest event already folded in."""
        return self.last_event_at is not None and as_utc(moment) < as_utc(self.last_event_at)

    def next_event_time(self) -> datetime:
        """Now, unless an earlier report was stamped ahead of the server clock."""
        now = utcnow()
        if self.last_event_at is None:
            return now
        return max(now, as_utc(self.last_event_at))

    def is_older_than_location(self, moment: datetime) -> bool:
        location = self.current_location
        return location is not None and as_utc(moment) < as_utc(location.recorded_at)

    # -------------------------------------------------------------------
    # Event folding
    # -------------------------------------------------------------------
    def apply_event(self, event: TrackingEvent) -> bool:
        """Fold a newly recorded tracking event into the shipment.

        The event is always referenced from the shipment. It changes the
        status only when it is at least as recent as every event seen so
        far; its coordinates replace the current location only when they are
        newer than it. Returns True when the status changed.
        """
        at = as_utc(event.timestamp)
        new_status = TrackingStatus(event.status)
        current = TrackingStatus(self.status)
        stale = self.is_stale(at)

        if not stale and self.is_terminal and new_status != current:
            raise Unprocessable({"status": [f"Shipment is already {current.value}"]})

        self.event_ids = json.dumps([*self.tracking_event_ids, str(event.id)])
        self.updated_at = utcnow()

        if event.has_coordinates and not self.is_older_than_location(at):
            self._move_to(event.latitude, event.longitude, event.location, at)

        if stale:
            logger.info(
                "Stale tracking event stored without status change",
                shipment_id=str(self.id),
                event_id=str(event.id),
                event_status=new_status.value,
                event_at=at.isoformat(),
            )
            return False

        self.last_event_at = at
        if new_status == current:
            return False

        self.status = new_status.value
        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                order_id=str(self.order_id),
                previous_status=current.value,
                status=new_status.value,
                tracking_event_id=str(event.id),
                occurred_at=at,
            )
        )
        if new_status == TrackingStatus.DELIVERED and self.actual_delivery is None:
            self.actual_delivery = at
            self.raise_(
                DeliveryConfirmed(
                    shipment_id=str(self.id),
                    order_id=str(self.order_id),
                    delivered_at=at,
                )
            )
        return True

    def _move_to(self, latitude: float, longitude: float, address: str | None, at: datetime) -> None:
        self.current_location = GeoPoint(
            latitude=latitude,
            longitude=longitude,
            address=address,
            recorded_at=at,
        )
        self.raise_(
            ShipmentLocationUpdated(
                shipment_id=str(self.id),
                latitude=latitude,
                longitude=longitude,
                address=address,
                recorded_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Delivery outcomes
    # -------------------------------------------------------------------
    def fill_delivery_proof(
        self,
        person: str | None = None,
        image: str | None = None,
        signature: str | None = None,
    ) -> None:
        """Record proof of delivery. Fields already captured are kept."""
        existing = self.delivery_proof
        self.delivery_proof = DeliveryProof(
            person=(existing.person if existing and existing.person else person),
            image=(existing.image if existing and existing.image else image),
            signature=(existing.signature if existing and existing.signature else signature),
        )
        self.updated_at = utcnow()

    def record_failed_attempt(self, reason: str | None) -> None:
        self.failed_delivery_reason = reason or DEFAULT_FAILED_DELIVERY_REASON
        self.failed_delivery_attempts = (self.failed_delivery_attempts or 0) + 1
        self.updated_at = utcnow()
        self.raise_(
            DeliveryAttemptFailed(
                shipment_id=str(self.id),
                order_id=str(self.order_id),
                reason=self.failed_delivery_reason,
                attempts=self.failed_delivery_attempts,
                failed_at=self.updated_at,
            )
        )
