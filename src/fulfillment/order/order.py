"""Order aggregate (CQRS) — the coarse buyer/seller transaction record.

The order's status only moves through two doors: the Status Bridge, which
projects shipment tracking onto it, and buyer cancellation. Every status
change appends exactly one timeline entry; the timeline is never reordered
or trimmed.

State Machine:
    PENDING → PROCESSING → PACKED → SHIPPED → DELIVERED
    (bridged statuses may skip or repeat steps as tracking reports arrive)
    {PENDING, PROCESSING} → CANCELLED    (buyer cancellation)
    any non-terminal → CANCELLED         (shipment returned)
    DELIVERED, CANCELLED → (terminal)
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from fulfillment.domain import fulfillment
from fulfillment.errors import Unprocessable
from fulfillment.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

_CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


def display_time(moment: datetime) -> str:
    """Clock time as shown on the order timeline, e.g. ``02:45 PM``."""
    return moment.strftime("%I:%M %p")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@fulfillment.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships to, captured at checkout."""

    name = String(required=True, max_length=200)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(default=0.0, min_value=0.0)


@fulfillment.entity(part_of="Order")
class TimelineEntry:
    """One status change on the order, in the order it happened."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    occurred_at = DateTime(required=True)
    time = String(required=True, max_length=20)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    customer_email = String(max_length=255)
    customer_phone = String(max_length=50)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    total_amount = Float(default=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    timeline = HasMany(TimelineEntry)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def status_matches_latest_timeline_entry(self):
        latest = self.latest_timeline_entry
        if latest is not None and latest.status != self.status:
            raise ValidationError(
                {"timeline": [f"Order status {self.status} does not match latest timeline entry {latest.status}"]}
            )

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        buyer_id: str,
        seller_id: str,
        items_data: list[dict],
        shipping_address: dict | None = None,
        total_amount: float = 0.0,
        customer_email: str | None = None,
        customer_phone: str | None = None,
    ):
        """Create a pending order with its first timeline entry."""
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            buyer_id=buyer_id,
            seller_id=seller_id,
            customer_email=customer_email,
            customer_phone=customer_phone,
            shipping_address=ShippingAddress(**shipping_address) if shipping_address else None,
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))
        order.add_timeline(
            TimelineEntry(
                sequence=1,
                status=OrderStatus.PENDING.value,
                occurred_at=now,
                time=display_time(now),
            )
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                buyer_id=str(buyer_id),
                seller_id=str(seller_id),
                total_amount=total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Timeline
    # -------------------------------------------------------------------
    @property
    def ordered_timeline(self) -> list[TimelineEntry]:
        return sorted(self.timeline or [], key=lambda entry: entry.sequence)

    @property
    def latest_timeline_entry(self) -> TimelineEntry | None:
        entries = self.ordered_timeline
        return entries[-1] if entries else None

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    def _append_status(self, status: OrderStatus, at: datetime) -> None:
        with atomic_change(self):
            self.status = status.value
            self.add_timeline(
                TimelineEntry(
                    sequence=len(self.timeline or []) + 1,
                    status=status.value,
                    occurred_at=at,
                    time=display_time(at),
                )
            )
            self.updated_at = at

    # -------------------------------------------------------------------
    # Status Bridge entry point
    # -------------------------------------------------------------------
    def record_status(self, status: OrderStatus) -> bool:
        """Move to a bridged status. Returns False when the status is unchanged."""
        current = OrderStatus(self.status)
        if status == current:
            return False
        if current in TERMINAL_STATUSES:
            raise Unprocessable({"status": [f"Order is already {current.value}"]})

        now = datetime.now(UTC)
        self._append_status(status, now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                status=status.value,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str | None, cancelled_by: str) -> None:
        """Cancel the order. Only allowed before the seller has packed it."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATUSES:
            raise Unprocessable({"status": [f"Cannot cancel an order that is {current.value}"]})

        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self._append_status(OrderStatus.CANCELLED, now)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason or "",
                cancelled_by=str(cancelled_by),
                cancelled_at=now,
            )
        )
