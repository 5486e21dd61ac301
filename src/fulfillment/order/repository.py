"""Repository for the Order aggregate."""

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order


@fulfillment.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def number_taken(self, order_number: str) -> bool:
        return self.find_by_number(order_number) is not None

    def recent_for_buyer(self, buyer_id: str, limit: int = 10) -> list[Order]:
        """Buyer's most recent orders, newest first."""
        return (
            self._dao.query.filter(buyer_id=str(buyer_id))
            .order_by("-created_at")
            .limit(limit)
            .all()
            .items
        )
