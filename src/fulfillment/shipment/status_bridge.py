"""Status Bridge between the fine-grained tracking vocabulary and the
coarse order status.

Both mappings are closed: every member of the source enum must have an
entry, and the module refuses to load otherwise. Adding a tracking or order
status therefore forces a decision here instead of silently falling through
at runtime.
"""

from enum import Enum

from fulfillment.order.order import Order, OrderStatus
from fulfillment.shipment.tracking_event import TrackingStatus

ORDER_STATUS_FOR_TRACKING: dict[TrackingStatus, OrderStatus] = {
    TrackingStatus.PENDING: OrderStatus.PENDING,
    TrackingStatus.PAYMENT_VERIFIED: OrderStatus.PENDING,
    TrackingStatus.SELLER_CONFIRMED: OrderStatus.PROCESSING,
    TrackingStatus.PACKED: OrderStatus.PACKED,
    TrackingStatus.SHIPPED: OrderStatus.SHIPPED,
    TrackingStatus.IN_TRANSIT: OrderStatus.SHIPPED,
    TrackingStatus.OUT_FOR_DELIVERY: OrderStatus.SHIPPED,
    TrackingStatus.DELIVERED: OrderStatus.DELIVERED,
    TrackingStatus.FAILED_DELIVERY: OrderStatus.SHIPPED,
    TrackingStatus.RETURNED: OrderStatus.CANCELLED,
}

# Only used to synthesize a package view for orders without a shipment
TRACKING_STATUS_FOR_ORDER: dict[OrderStatus, TrackingStatus] = {
    OrderStatus.PENDING: TrackingStatus.PENDING,
    OrderStatus.PROCESSING: TrackingStatus.SELLER_CONFIRMED,
    OrderStatus.PACKED: TrackingStatus.PACKED,
    OrderStatus.SHIPPED: TrackingStatus.SHIPPED,
    OrderStatus.DELIVERED: TrackingStatus.DELIVERED,
    OrderStatus.CANCELLED: TrackingStatus.RETURNED,
}


def _require_exhaustive(mapping: dict, source: type[Enum]) -> None:
    missing = [member.value for member in source if member not in mapping]
    if missing:
        raise RuntimeError(f"No mapping for {source.__name__} members: {', '.join(missing)}")


_require_exhaustive(ORDER_STATUS_FOR_TRACKING, TrackingStatus)
_require_exhaustive(TRACKING_STATUS_FOR_ORDER, OrderStatus)


def order_status_for(status: TrackingStatus | str) -> OrderStatus:
    return ORDER_STATUS_FOR_TRACKING[TrackingStatus(status)]


def tracking_status_for(status: OrderStatus | str) -> TrackingStatus:
    return TRACKING_STATUS_FOR_ORDER[OrderStatus(status)]


def bridge(order: Order, shipment_status: TrackingStatus | str) -> bool:
    """Project a shipment status onto its order.

    Appends one timeline entry when the coarse status changes. Returns
    whether it did.
    """
    return order.record_status(order_status_for(shipment_status))
