"""UpdateShipmentLocation — a position ping for a package in flight.

A ping is recorded as a tracking event that carries the shipment's current
status, so it never changes status on its own. Pings older than the last
known location are ignored.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Float, Identifier, String

from fulfillment.domain import fulfillment
from fulfillment.shipment.recording import authorize_shipment_update, load_shipment, store_event
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.tracking_event import TrackingEvent
from fulfillment.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Shipment")
class UpdateShipmentLocation:
    shipment_id = Identifier(required=True)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    address = String(required=True, max_length=255)
    recorded_at = DateTime()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Shipment)
class LocationHandler:
    @handle(UpdateShipmentLocation)
    def update_location(self, command):
        """Returns True when the ping moved the shipment."""
        shipment = load_shipment(command.shipment_id)
        order = authorize_shipment_update(shipment, command.actor_id, command.actor_role)

        at = as_utc(command.recorded_at) or utcnow()
        if shipment.is_older_than_location(at):
            logger.info(
                "Out-of-order location ping ignored",
                shipment_id=str(shipment.id),
                ping_at=at.isoformat(),
            )
            return False

        event = TrackingEvent.record(
            order_id=str(shipment.order_id),
            shipment_id=str(shipment.id),
            status=shipment.status,
            location=command.address,
            description=f"Location updated: {command.address}",
            courier=shipment.courier_name,
            latitude=command.latitude,
            longitude=command.longitude,
            timestamp=at,
            recorded_by=command.actor_id,
        )
        store_event(shipment, event, order)
        return True
