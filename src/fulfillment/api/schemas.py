"""Pydantic API schemas for the fulfillment core.

These are the external API contracts, separate from domain commands. The
routes translate between them.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(ge=1)
    price: float = Field(default=0.0, ge=0.0)


class ShippingAddressSchema(BaseModel):
    name: str
    street: str
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str


class PlaceOrderRequest(BaseModel):
    seller_id: str
    items: list[OrderItemRequest]
    shipping_address: ShippingAddressSchema | None = None
    total_amount: float = Field(default=0.0, ge=0.0)
    customer_email: str | None = None
    customer_phone: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class OrderIdResponse(BaseModel):
    order_id: str
    order_number: str


class TimelineEntryResponse(BaseModel):
    status: str
    occurred_at: datetime
    time: str


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    buyer_id: str
    seller_id: str
    status: str
    total_amount: float
    shipping_address: ShippingAddressSchema | None = None
    timeline: list[TimelineEntryResponse]
    cancellation_reason: str | None = None


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------
class RecordTrackingEventRequest(BaseModel):
    order_id: str
    shipment_id: str | None = None
    status: str
    location: str
    description: str
    courier: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timestamp: datetime | None = None


class TrackingEventResponse(BaseModel):
    id: str
    order_id: str
    shipment_id: str
    status: str
    location: str | None = None
    description: str | None = None
    courier: str | None = None
    timestamp: datetime
    shipment_status: str
    order_status: str | None = None


class UpdateLocationRequest(BaseModel):
    latitude: float
    longitude: float
    address: str
    recorded_at: datetime | None = None


class LocationResponse(BaseModel):
    applied: bool
    status: str
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None


class ConfirmDeliveryRequest(BaseModel):
    delivery_person: str | None = None
    delivery_image: str | None = None
    delivery_signature: str | None = None


class FailedDeliveryRequest(BaseModel):
    reason: str | None = None


class ShipmentResponse(BaseModel):
    shipment_id: str
    tracking_number: str
    order_id: str
    status: str
    actual_delivery: datetime | None = None
    failed_delivery_reason: str | None = None
    failed_delivery_attempts: int = 0


# ---------------------------------------------------------------------------
# Disputes
# ---------------------------------------------------------------------------
class CreateDisputeRequest(BaseModel):
    order_id: str
    type: Literal["refund", "return", "quality", "delivery", "other"]
    reason: str
    description: str
    priority: Literal["low", "medium", "high", "urgent"] = "medium"


class EvidenceLink(BaseModel):
    type: Literal["photo", "document", "video", "message", "receipt", "other"] = "other"
    url: str
    description: str | None = None


class SellerResponseRequest(BaseModel):
    response: str = Field(min_length=1)
    evidence: list[EvidenceLink] = Field(default_factory=list)


class BuyerResponseRequest(BaseModel):
    response: str = Field(min_length=1)


class EscalateDisputeRequest(BaseModel):
    reason: str | None = None


class ResolveDisputeRequest(BaseModel):
    decision: Literal["approved", "rejected", "resolved"]
    resolution: str = Field(min_length=1)
    admin_decision: str | None = None


class EvidenceResponse(BaseModel):
    type: str
    url: str
    description: str | None = None
    uploaded_by: str
    uploaded_by_role: str
    uploaded_at: datetime


class NextActionResponse(BaseModel):
    prompt: str
    action_required: bool
    deadline_expired: bool


class DisputeResponse(BaseModel):
    dispute_id: str
    dispute_number: str
    order_id: str
    buyer_id: str
    seller_id: str
    type: str
    reason: str
    description: str
    status: str
    priority: str
    evidence: list[EvidenceResponse]
    seller_response: str | None = None
    seller_response_at: datetime | None = None
    buyer_response: str | None = None
    buyer_response_at: datetime | None = None
    admin_decision: str | None = None
    resolution: str | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    response_deadline: datetime | None = None
    created_at: datetime | None = None
    next_action: NextActionResponse


class DisputeListResponse(BaseModel):
    disputes: list[DisputeResponse]
    total: int
    page: int
    limit: int


class EvidenceUploadResponse(BaseModel):
    dispute_id: str
    evidence: list[EvidenceLink]
