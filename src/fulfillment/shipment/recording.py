"""RecordTrackingEvent — ingest one tracking fact from a seller, courier or admin.

The event is stored, folded into its shipment, and when the shipment status
changes the order is moved through the Status Bridge. All three records are
written in the handler's unit of work: a rejection anywhere leaves every
record as it was.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, ensure_seller_or_admin, require_role
from fulfillment.domain import fulfillment
from fulfillment.errors import NotFound
from fulfillment.numbering import NumberGenerator, tracking_number_candidate
from fulfillment.order.order import Order
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.status_bridge import bridge
from fulfillment.shipment.tracking_event import TrackingEvent, TrackingStatus

logger = structlog.get_logger(__name__)


def find_order(order_id) -> Order | None:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        return None


def load_shipment(shipment_id) -> Shipment:
    try:
        return current_domain.repository_for(Shipment).get(shipment_id)
    except ObjectNotFoundError:
        raise NotFound({"shipment_id": ["Shipment not found"]}) from None


def authorize_shipment_update(shipment: Shipment, actor_id: str, actor_role: str) -> Order | None:
    """Return the shipment's order after checking the caller may update it."""
    order = find_order(shipment.order_id)
    seller_id = order.seller_id if order is not None else shipment.seller_id
    ensure_seller_or_admin(seller_id, actor_id, actor_role)
    return order


def store_event(shipment: Shipment, event: TrackingEvent, order: Order | None) -> bool:
    """Fold ``event`` into ``shipment``, bridge the order and persist all three.

    Returns whether the shipment status changed.
    """
    changed = shipment.apply_event(event)
    if changed and order is not None:
        if bridge(order, shipment.status):
            logger.info(
                "Order status bridged from shipment",
                order_id=str(order.id),
                status=order.status,
                shipment_status=shipment.status,
            )
        current_domain.repository_for(Order).add(order)

    current_domain.repository_for(TrackingEvent).add(event)
    current_domain.repository_for(Shipment).add(shipment)
    return changed


@fulfillment.command(part_of="Shipment")
class RecordTrackingEvent:
    order_id = Identifier(required=True)
    shipment_id = Identifier()
    status = String(required=True, choices=TrackingStatus)
    location = String(required=True, max_length=255)
    description = String(required=True, max_length=500)
    courier = String(max_length=100)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)
    timestamp = DateTime()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Shipment)
class TrackingHandler:
    @handle(RecordTrackingEvent)
    def record_tracking_event(self, command):
        role = require_role(command.actor_role, ActorRole.SELLER, ActorRole.ADMIN)

        order = find_order(command.order_id)
        if order is None:
            if role != ActorRole.ADMIN:
                raise NotFound({"order_id": ["Order not found"]})
            logger.info("Tracking reported before order exists", order_id=str(command.order_id))
        else:
            ensure_seller_or_admin(order.seller_id, command.actor_id, command.actor_role)

        shipment = self._shipment_for(command, order)
        event = TrackingEvent.record(
            order_id=command.order_id,
            shipment_id=str(shipment.id),
            status=command.status,
            location=command.location,
            description=command.description,
            courier=command.courier,
            latitude=command.latitude,
            longitude=command.longitude,
            timestamp=command.timestamp,
            recorded_by=command.actor_id,
        )
        store_event(shipment, event, order)
        logger.info(
            "Tracking event recorded",
            event_id=str(event.id),
            shipment_id=str(shipment.id),
            status=event.status,
        )
        return str(event.id)

    def _shipment_for(self, command, order: Order | None) -> Shipment:
        repo = current_domain.repository_for(Shipment)
        if command.shipment_id:
            shipment = load_shipment(command.shipment_id)
            if str(shipment.order_id) != str(command.order_id):
                raise NotFound({"shipment_id": ["Shipment not found for this order"]})
            return shipment

        shipment = repo.latest_for_order(command.order_id)
        if shipment is not None:
            return shipment

        tracking_number = NumberGenerator(tracking_number_candidate, repo.number_taken).next()
        shipment = Shipment.open(
            tracking_number=tracking_number,
            order_id=command.order_id,
            seller_id=str(order.seller_id) if order is not None else None,
            courier_name=command.courier,
        )
        logger.info(
            "Shipment opened",
            shipment_id=str(shipment.id),
            tracking_number=tracking_number,
            order_id=str(command.order_id),
        )
        return shipment
