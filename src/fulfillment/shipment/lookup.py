"""Tracking lookup — the read side of shipment tracking.

Resolves a tracking number or an order number to a tracking view with one
package per shipment. An order that has no shipment yet still gets a
single package, synthesized from its own timeline through the reverse
bridge, so a lookup never comes back empty for an existing order.
"""

from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, parse_role
from fulfillment.errors import Forbidden, NotFound, Unauthenticated
from fulfillment.order.order import Order
from fulfillment.shipment.recording import find_order
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.status_bridge import tracking_status_for
from fulfillment.shipment.tracking_event import TrackingEvent
from fulfillment.utils.clock import as_utc

RECENT_ORDERS_LIMIT = 10


def _resolve(identifier: str) -> tuple[Order | None, Shipment | None]:
    shipment = current_domain.repository_for(Shipment).find_by_tracking_number(identifier.strip())
    if shipment is not None:
        return find_order(shipment.order_id), shipment
    return current_domain.repository_for(Order).find_by_number(identifier.strip()), None


def _check_access(
    order: Order | None,
    shipment: Shipment | None,
    actor_id: str | None,
    actor_role: str | None,
    email: str | None,
    phone: str | None,
) -> None:
    if actor_id:
        role = parse_role(actor_role or ActorRole.BUYER.value)
        if role == ActorRole.ADMIN:
            return
        if role == ActorRole.BUYER:
            owner = order.buyer_id if order is not None else None
        else:
            owner = order.seller_id if order is not None else shipment.seller_id
        if str(owner) != str(actor_id):
            raise Forbidden({"identifier": ["Unauthorized to view this order"]})
        return

    if not email and not phone:
        raise Unauthenticated({"identifier": ["Sign in or provide the order email or phone"]})
    if order is None:
        raise Forbidden({"identifier": ["Unauthorized to view this order"]})
    if email and (order.customer_email or "").lower() != email.strip().lower():
        raise Forbidden({"email": ["Email does not match order"]})
    if phone and (order.customer_phone or "") != phone.strip():
        raise Forbidden({"phone": ["Phone does not match order"]})


def _event_view(event: TrackingEvent) -> dict:
    return {
        "id": str(event.id),
        "timestamp": as_utc(event.timestamp),
        "status": event.status,
        "location": event.location,
        "description": event.description,
        "courier": event.courier,
    }


def _items_view(order: Order | None) -> list[dict]:
    if order is None:
        return []
    return [
        {
            "id": str(item.product_id),
            "name": item.name,
            "quantity": item.quantity,
        }
        for item in order.items or []
    ]


def _package_view(shipment: Shipment, order: Order | None, events: list[TrackingEvent]) -> dict:
    dimensions = shipment.dimensions
    location = shipment.current_location
    proof = shipment.delivery_proof
    return {
        "id": str(shipment.id),
        "tracking_number": shipment.tracking_number,
        "seller_id": str(shipment.seller_id) if shipment.seller_id else None,
        "items": _items_view(order),
        "weight": f"{shipment.weight} kg" if shipment.weight is not None else "N/A",
        "dimensions": (
            f"{dimensions.length} × {dimensions.width} × {dimensions.height} cm" if dimensions else "N/A"
        ),
        "package_type": shipment.package_type,
        "shipping_method": shipment.shipping_method,
        "courier": shipment.courier_name or "Unknown Courier",
        "status": shipment.status,
        "events": [_event_view(e) for e in sorted(events, key=lambda e: as_utc(e.timestamp))],
        "estimated_delivery": as_utc(shipment.estimated_delivery),
        "actual_delivery": as_utc(shipment.actual_delivery),
        "delivery_person": proof.person if proof else None,
        "delivery_image": proof.image if proof else None,
        "delivery_signature": proof.signature if proof else None,
        "current_location": (
            {
                "lat": location.latitude,
                "lng": location.longitude,
                "address": location.address,
            }
            if location
            else None
        ),
        "failed_delivery_reason": shipment.failed_delivery_reason,
        "failed_delivery_attempts": shipment.failed_delivery_attempts or 0,
    }


def _synthesized_package(order: Order) -> dict:
    city = order.shipping_address.city if order.shipping_address else None
    return {
        "id": "default",
        "tracking_number": order.order_number,
        "seller_id": str(order.seller_id),
        "items": _items_view(order),
        "weight": "N/A",
        "dimensions": "N/A",
        "package_type": "Standard Box",
        "shipping_method": "standard",
        "courier": "TBD",
        "status": tracking_status_for(order.status).value,
        "events": [
            {
                "id": f"event-{entry.sequence}",
                "timestamp": as_utc(entry.occurred_at),
                "status": tracking_status_for(entry.status).value,
                "location": city or "Unknown",
                "description": entry.status,
                "courier": None,
            }
            for entry in order.ordered_timeline
        ],
        "estimated_delivery": None,
        "actual_delivery": None,
        "delivery_person": None,
        "delivery_image": None,
        "delivery_signature": None,
        "current_location": None,
        "failed_delivery_reason": None,
        "failed_delivery_attempts": 0,
    }


def track(
    identifier: str,
    actor_id: str | None = None,
    actor_role: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> dict:
    """Tracking view for an order number or tracking number."""
    order, shipment = _resolve(identifier)
    if order is None and shipment is None:
        raise NotFound({"identifier": ["Order or tracking number not found"]})
    _check_access(order, shipment, actor_id, actor_role, email, phone)

    order_id = str(order.id) if order is not None else str(shipment.order_id)
    shipments = current_domain.repository_for(Shipment).for_order(order_id)
    events_repo = current_domain.repository_for(TrackingEvent)
    packages = [_package_view(s, order, events_repo.for_shipment(str(s.id))) for s in shipments]
    if not packages and order is not None:
        packages.append(_synthesized_package(order))

    address = order.shipping_address if order is not None else None
    return {
        "order_id": order_id,
        "order_number": order.order_number if order is not None else None,
        "status": order.status if order is not None else None,
        "packages": packages,
        "total_amount": order.total_amount if order is not None else None,
        "shipping_address": address.to_dict() if address else None,
    }


def my_orders(buyer_id: str) -> list[dict]:
    """The buyer's most recent orders with their first tracking number."""
    orders = current_domain.repository_for(Order).recent_for_buyer(buyer_id, limit=RECENT_ORDERS_LIMIT)
    shipments = current_domain.repository_for(Shipment).for_orders([str(o.id) for o in orders])

    tracking_by_order: dict[str, str] = {}
    for shipment in sorted(shipments, key=lambda s: as_utc(s.created_at)):
        tracking_by_order.setdefault(str(shipment.order_id), shipment.tracking_number)

    return [
        {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "status": order.status,
            "total_amount": order.total_amount,
            "has_tracking": str(order.id) in tracking_by_order,
            "tracking_number": tracking_by_order.get(str(order.id)),
            "created_at": as_utc(order.created_at),
        }
        for order in orders
    ]
