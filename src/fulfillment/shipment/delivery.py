"""Delivery outcomes — confirmation and failed attempts."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.shipment.recording import authorize_shipment_update, load_shipment, store_event
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.tracking_event import TrackingEvent, TrackingStatus

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Shipment")
class ConfirmDelivery:
    shipment_id = Identifier(required=True)
    delivery_person = String(max_length=200)
    delivery_image = String(max_length=1000)
    delivery_signature = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command(part_of="Shipment")
class RecordFailedDelivery:
    shipment_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


def _delivery_address(shipment: Shipment) -> str:
    location = shipment.current_location
    return location.address if location and location.address else "Delivery address"


@fulfillment.command_handler(part_of=Shipment)
class DeliveryHandler:
    @handle(ConfirmDelivery)
    def confirm_delivery(self, command):
        shipment = load_shipment(command.shipment_id)
        order = authorize_shipment_update(shipment, command.actor_id, command.actor_role)

        if shipment.status == TrackingStatus.DELIVERED.value:
            # Resubmission: only fill in proof that was missing
            shipment.fill_delivery_proof(
                person=command.delivery_person,
                image=command.delivery_image,
                signature=command.delivery_signature,
            )
            current_domain.repository_for(Shipment).add(shipment)
            logger.info("Delivery confirmation resubmitted", shipment_id=str(shipment.id))
            return False

        event = TrackingEvent.record(
            order_id=str(shipment.order_id),
            shipment_id=str(shipment.id),
            status=TrackingStatus.DELIVERED.value,
            location=_delivery_address(shipment),
            description="Package delivered successfully",
            courier=shipment.courier_name,
            timestamp=shipment.next_event_time(),
            recorded_by=command.actor_id,
        )
        shipment.fill_delivery_proof(
            person=command.delivery_person,
            image=command.delivery_image,
            signature=command.delivery_signature,
        )
        store_event(shipment, event, order)
        logger.info("Delivery confirmed", shipment_id=str(shipment.id))
        return True

    @handle(RecordFailedDelivery)
    def record_failed_delivery(self, command):
        shipment = load_shipment(command.shipment_id)
        order = authorize_shipment_update(shipment, command.actor_id, command.actor_role)

        shipment.record_failed_attempt(command.reason)
        event = TrackingEvent.record(
            order_id=str(shipment.order_id),
            shipment_id=str(shipment.id),
            status=TrackingStatus.FAILED_DELIVERY.value,
            location=_delivery_address(shipment),
            description=f"Delivery attempt failed: {shipment.failed_delivery_reason}",
            courier=shipment.courier_name,
            timestamp=shipment.next_event_time(),
            recorded_by=command.actor_id,
        )
        store_event(shipment, event, order)
        logger.warning(
            "Delivery attempt failed",
            shipment_id=str(shipment.id),
            reason=shipment.failed_delivery_reason,
            attempts=shipment.failed_delivery_attempts,
        )
