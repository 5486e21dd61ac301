"""FastAPI routes for the fulfillment core."""

import json

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.api.dependencies import Actor, current_actor, optional_actor
from fulfillment.api.schemas import (
    BuyerResponseRequest,
    CancelOrderRequest,
    ConfirmDeliveryRequest,
    CreateDisputeRequest,
    DisputeListResponse,
    DisputeResponse,
    EscalateDisputeRequest,
    EvidenceLink,
    EvidenceResponse,
    EvidenceUploadResponse,
    FailedDeliveryRequest,
    LocationResponse,
    NextActionResponse,
    OrderIdResponse,
    OrderResponse,
    PlaceOrderRequest,
    RecordTrackingEventRequest,
    ResolveDisputeRequest,
    SellerResponseRequest,
    ShipmentResponse,
    ShippingAddressSchema,
    TimelineEntryResponse,
    TrackingEventResponse,
    UpdateLocationRequest,
)
from fulfillment.dispute.access import load_for_party
from fulfillment.dispute.dispute import Dispute
from fulfillment.dispute.escalation import EscalateDispute
from fulfillment.dispute.evidence import EvidenceFile, upload_evidence
from fulfillment.dispute.opening import CreateDispute
from fulfillment.dispute.repository import DEFAULT_PAGE_SIZE
from fulfillment.dispute.resolution import ResolveDispute
from fulfillment.dispute.responses import SubmitBuyerResponse, SubmitSellerResponse
from fulfillment.errors import NotFound
from fulfillment.escalation.policy import next_action
from fulfillment.escalation.sweep import overdue_disputes, seller_action_items, shipment_alerts
from fulfillment.order.cancellation import CancelOrder
from fulfillment.order.checkout import PlaceOrder
from fulfillment.order.order import Order
from fulfillment.shipment.delivery import ConfirmDelivery, RecordFailedDelivery
from fulfillment.shipment.location import UpdateShipmentLocation
from fulfillment.shipment.lookup import my_orders, track
from fulfillment.shipment.recording import RecordTrackingEvent, find_order
from fulfillment.shipment.shipment import Shipment
from fulfillment.shipment.tracking_event import TrackingEvent


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------
def _order_response(order: Order) -> OrderResponse:
    address = order.shipping_address
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        buyer_id=str(order.buyer_id),
        seller_id=str(order.seller_id),
        status=order.status,
        total_amount=order.total_amount or 0.0,
        shipping_address=ShippingAddressSchema(**address.to_dict()) if address else None,
        timeline=[
            TimelineEntryResponse(status=e.status, occurred_at=e.occurred_at, time=e.time)
            for e in order.ordered_timeline
        ],
        cancellation_reason=order.cancellation_reason,
    )


def _shipment_response(shipment: Shipment) -> ShipmentResponse:
    return ShipmentResponse(
        shipment_id=str(shipment.id),
        tracking_number=shipment.tracking_number,
        order_id=str(shipment.order_id),
        status=shipment.status,
        actual_delivery=shipment.actual_delivery,
        failed_delivery_reason=shipment.failed_delivery_reason,
        failed_delivery_attempts=shipment.failed_delivery_attempts or 0,
    )


def _dispute_response(dispute: Dispute) -> DisputeResponse:
    action = next_action(dispute)
    return DisputeResponse(
        dispute_id=str(dispute.id),
        dispute_number=dispute.dispute_number,
        order_id=str(dispute.order_id),
        buyer_id=str(dispute.buyer_id),
        seller_id=str(dispute.seller_id),
        type=dispute.dispute_type,
        reason=dispute.reason,
        description=dispute.description,
        status=dispute.status,
        priority=dispute.priority,
        evidence=[
            EvidenceResponse(
                type=e.evidence_type,
                url=e.url,
                description=e.description,
                uploaded_by=str(e.uploaded_by),
                uploaded_by_role=e.uploaded_by_role,
                uploaded_at=e.uploaded_at,
            )
            for e in dispute.ordered_evidence
        ],
        seller_response=dispute.seller_response,
        seller_response_at=dispute.seller_response_at,
        buyer_response=dispute.buyer_response,
        buyer_response_at=dispute.buyer_response_at,
        admin_decision=dispute.admin_decision,
        resolution=dispute.resolution,
        resolved_by=str(dispute.resolved_by) if dispute.resolved_by else None,
        resolved_at=dispute.resolved_at,
        response_deadline=dispute.response_deadline,
        created_at=dispute.created_at,
        next_action=NextActionResponse(
            prompt=action.prompt,
            action_required=action.action_required,
            deadline_expired=action.deadline_expired,
        ),
    )


def _reload_dispute(dispute_id: str) -> DisputeResponse:
    return _dispute_response(current_domain.repository_for(Dispute).get(dispute_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, actor: Actor = Depends(current_actor)) -> OrderIdResponse:
    """Create an order at checkout. The caller is the buyer."""
    require_role(actor.role, ActorRole.BUYER)
    command = PlaceOrder(
        buyer_id=actor.id,
        seller_id=body.seller_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=body.shipping_address.model_dump_json() if body.shipping_address else None,
        total_amount=body.total_amount,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return OrderIdResponse(order_id=order_id, order_number=order.order_number)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    order = find_order(order_id)
    if order is None:
        raise NotFound({"order_id": ["Order not found"]})
    if actor.role != ActorRole.ADMIN.value and actor.id not in (str(order.buyer_id), str(order.seller_id)):
        raise NotFound({"order_id": ["Order not found"]})
    return _order_response(order)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, actor: Actor = Depends(current_actor)) -> OrderResponse:
    """Buyer cancels an order that has not been packed yet."""
    command = CancelOrder(order_id=order_id, reason=body.reason, actor_id=actor.id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return _order_response(current_domain.repository_for(Order).get(order_id))


# ---------------------------------------------------------------------------
# Tracking Router
# ---------------------------------------------------------------------------
tracking_router = APIRouter(prefix="/tracking", tags=["tracking"])


@tracking_router.get("/my-orders")
async def list_my_orders(actor: Actor = Depends(current_actor)) -> dict:
    require_role(actor.role, ActorRole.BUYER)
    return {"orders": my_orders(actor.id)}


@tracking_router.get("/shipments/overdue")
async def list_overdue_shipments(actor: Actor = Depends(current_actor)) -> dict:
    """Platform view of late shipments and repeated failed deliveries."""
    require_role(actor.role, ActorRole.ADMIN)
    return shipment_alerts()


@tracking_router.post("/events", status_code=201, response_model=TrackingEventResponse)
async def record_tracking_event(
    body: RecordTrackingEventRequest, actor: Actor = Depends(current_actor)
) -> TrackingEventResponse:
    """Report a tracking fact for an order's shipment (seller or admin)."""
    command = RecordTrackingEvent(
        order_id=body.order_id,
        shipment_id=body.shipment_id,
        status=body.status,
        location=body.location,
        description=body.description,
        courier=body.courier,
        latitude=body.latitude,
        longitude=body.longitude,
        timestamp=body.timestamp,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    event_id = current_domain.process(command, asynchronous=False)

    event = current_domain.repository_for(TrackingEvent).get(event_id)
    shipment = current_domain.repository_for(Shipment).get(event.shipment_id)
    order = find_order(event.order_id)
    return TrackingEventResponse(
        id=str(event.id),
        order_id=str(event.order_id),
        shipment_id=str(event.shipment_id),
        status=event.status,
        location=event.location,
        description=event.description,
        courier=event.courier,
        timestamp=event.timestamp,
        shipment_status=shipment.status,
        order_status=order.status if order is not None else None,
    )


@tracking_router.patch("/shipments/{shipment_id}/location", response_model=LocationResponse)
async def update_location(
    shipment_id: str, body: UpdateLocationRequest, actor: Actor = Depends(current_actor)
) -> LocationResponse:
    command = UpdateShipmentLocation(
        shipment_id=shipment_id,
        latitude=body.latitude,
        longitude=body.longitude,
        address=body.address,
        recorded_at=body.recorded_at,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    applied = current_domain.process(command, asynchronous=False)

    shipment = current_domain.repository_for(Shipment).get(shipment_id)
    location = shipment.current_location
    return LocationResponse(
        applied=bool(applied),
        status=shipment.status,
        latitude=location.latitude if location else None,
        longitude=location.longitude if location else None,
        address=location.address if location else None,
    )


@tracking_router.post("/shipments/{shipment_id}/confirm-delivery", response_model=ShipmentResponse)
async def confirm_delivery(
    shipment_id: str, body: ConfirmDeliveryRequest, actor: Actor = Depends(current_actor)
) -> ShipmentResponse:
    command = ConfirmDelivery(
        shipment_id=shipment_id,
        delivery_person=body.delivery_person,
        delivery_image=body.delivery_image,
        delivery_signature=body.delivery_signature,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _shipment_response(current_domain.repository_for(Shipment).get(shipment_id))


@tracking_router.post("/shipments/{shipment_id}/failed-delivery", response_model=ShipmentResponse)
async def record_failed_delivery(
    shipment_id: str, body: FailedDeliveryRequest, actor: Actor = Depends(current_actor)
) -> ShipmentResponse:
    command = RecordFailedDelivery(
        shipment_id=shipment_id,
        reason=body.reason,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _shipment_response(current_domain.repository_for(Shipment).get(shipment_id))


@tracking_router.get("/{identifier}")
async def track_order(
    identifier: str,
    email: str | None = None,
    phone: str | None = None,
    actor: Actor | None = Depends(optional_actor),
) -> dict:
    """Track by order number or tracking number. Guests verify with email or phone."""
    return track(
        identifier,
        actor_id=actor.id if actor else None,
        actor_role=actor.role if actor else None,
        email=email,
        phone=phone,
    )


# ---------------------------------------------------------------------------
# Dispute Router
# ---------------------------------------------------------------------------
dispute_router = APIRouter(prefix="/disputes", tags=["disputes"])


@dispute_router.post("", status_code=201, response_model=DisputeResponse)
async def create_dispute(body: CreateDisputeRequest, actor: Actor = Depends(current_actor)) -> DisputeResponse:
    command = CreateDispute(
        order_id=body.order_id,
        dispute_type=body.type,
        reason=body.reason,
        description=body.description,
        priority=body.priority,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    dispute_id = current_domain.process(command, asynchronous=False)
    return _reload_dispute(dispute_id)


@dispute_router.get("", response_model=DisputeListResponse)
async def list_disputes(
    status: str | None = None,
    dispute_type: str | None = Query(default=None, alias="type"),
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    actor: Actor = Depends(current_actor),
) -> DisputeListResponse:
    """The caller's disputes, newest first. Admins see every dispute."""
    party_field = {
        ActorRole.BUYER.value: "buyer_id",
        ActorRole.SELLER.value: "seller_id",
    }.get(actor.role)
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    disputes, total = current_domain.repository_for(Dispute).page_for_party(
        party_field,
        actor.id,
        status=None if status in (None, "all") else status,
        dispute_type=None if dispute_type in (None, "all") else dispute_type,
        page=page,
        limit=limit,
    )
    return DisputeListResponse(
        disputes=[_dispute_response(d) for d in disputes],
        total=total,
        page=page,
        limit=limit,
    )


@dispute_router.get("/action-items")
async def list_action_items(actor: Actor = Depends(current_actor)) -> dict:
    require_role(actor.role, ActorRole.SELLER)
    return {"action_items": seller_action_items(actor.id)}


@dispute_router.get("/overdue")
async def list_overdue_disputes(actor: Actor = Depends(current_actor)) -> dict:
    require_role(actor.role, ActorRole.ADMIN)
    return {"disputes": overdue_disputes()}


@dispute_router.get("/{dispute_id}", response_model=DisputeResponse)
async def get_dispute(dispute_id: str, actor: Actor = Depends(current_actor)) -> DisputeResponse:
    return _dispute_response(load_for_party(dispute_id, actor.id, actor.role))


@dispute_router.post("/{dispute_id}/response", response_model=DisputeResponse)
async def submit_seller_response(
    dispute_id: str, body: SellerResponseRequest, actor: Actor = Depends(current_actor)
) -> DisputeResponse:
    command = SubmitSellerResponse(
        dispute_id=dispute_id,
        response=body.response,
        evidence=json.dumps([e.model_dump() for e in body.evidence]) if body.evidence else None,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _reload_dispute(dispute_id)


@dispute_router.post("/{dispute_id}/buyer-response", response_model=DisputeResponse)
async def submit_buyer_response(
    dispute_id: str, body: BuyerResponseRequest, actor: Actor = Depends(current_actor)
) -> DisputeResponse:
    command = SubmitBuyerResponse(
        dispute_id=dispute_id,
        response=body.response,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _reload_dispute(dispute_id)


@dispute_router.post("/{dispute_id}/evidence", response_model=EvidenceUploadResponse)
async def upload_dispute_evidence(
    dispute_id: str,
    files: list[UploadFile] = File(...),
    notes: str | None = Form(default=None),
    actor: Actor = Depends(current_actor),
) -> EvidenceUploadResponse:
    """Multipart upload of evidence files (images, documents, video)."""
    uploads = [
        EvidenceFile(filename=f.filename or "upload", content=await f.read(), content_type=f.content_type)
        for f in files
    ]
    entries = upload_evidence(dispute_id, uploads, actor.id, actor.role, notes=notes)
    return EvidenceUploadResponse(dispute_id=dispute_id, evidence=[EvidenceLink(**e) for e in entries])


@dispute_router.post("/{dispute_id}/escalate", response_model=DisputeResponse)
async def escalate_dispute(
    dispute_id: str, body: EscalateDisputeRequest, actor: Actor = Depends(current_actor)
) -> DisputeResponse:
    command = EscalateDispute(
        dispute_id=dispute_id,
        reason=body.reason,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _reload_dispute(dispute_id)


@dispute_router.post("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: str, body: ResolveDisputeRequest, actor: Actor = Depends(current_actor)
) -> DisputeResponse:
    command = ResolveDispute(
        dispute_id=dispute_id,
        decision=body.decision,
        resolution=body.resolution,
        admin_decision=body.admin_decision,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _reload_dispute(dispute_id)
