"""Order domain events — immutable facts about the coarse order lifecycle."""

from protean.fields import DateTime, Float, Identifier, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderPlaced:
    """An order was created at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    total_amount = Float()
    placed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new coarse status and a timeline entry was appended."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderCancelled:
    """The buyer cancelled the order before it was packed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String()
    cancelled_by = Identifier(required=True)
    cancelled_at = DateTime(required=True)
