"""Repositories for shipments and their tracking log."""

from fulfillment.domain import fulfillment
from fulfillment.escalation.policy import SWEEP_LIMIT
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.tracking_event import TrackingEvent


@fulfillment.repository(part_of=Shipment)
class ShipmentRepository:
    def find_by_tracking_number(self, tracking_number: str) -> Shipment | None:
        return self._dao.query.filter(tracking_number=tracking_number.upper()).all().first

    def number_taken(self, tracking_number: str) -> bool:
        return self.find_by_tracking_number(tracking_number) is not None

    def for_order(self, order_id: str) -> list[Shipment]:
        """All shipments of an order, oldest first."""
        return self._dao.query.filter(order_id=str(order_id)).order_by("created_at").all().items

    def latest_for_order(self, order_id: str) -> Shipment | None:
        return self._dao.query.filter(order_id=str(order_id)).order_by("-created_at").all().first

    def for_orders(self, order_ids: list[str]) -> list[Shipment]:
        if not order_ids:
            return []
        return self._dao.query.filter(order_id__in=[str(i) for i in order_ids]).all().items

    def in_flight(self) -> list[Shipment]:
        return self._dao.query.exclude(status__in=["delivered", "returned"]).limit(SWEEP_LIMIT).all().items


@fulfillment.repository(part_of=TrackingEvent)
class TrackingEventRepository:
    def for_shipment(self, shipment_id: str) -> list[TrackingEvent]:
        """The shipment's tracking log in timestamp order."""
        return self._dao.query.filter(shipment_id=str(shipment_id)).order_by("timestamp").all().items

    def for_order(self, order_id: str) -> list[TrackingEvent]:
        return self._dao.query.filter(order_id=str(order_id)).order_by("timestamp").all().items
