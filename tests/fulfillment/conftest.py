"""Shared fixtures for fulfillment tests: placed orders and opened disputes."""

import json

import pytest
from fulfillment.dispute.opening import CreateDispute
from fulfillment.order.checkout import PlaceOrder
from fulfillment.order.order import Order
from protean import current_domain

BUYER = "buyer-001"
SELLER = "seller-001"
ADMIN = "admin-001"

DEFAULT_ITEMS = [
    {"product_id": "prod-kb", "name": "Mechanical Keyboard", "quantity": 1, "price": 89.0},
    {"product_id": "prod-mp", "name": "Mouse Pad XL", "quantity": 2, "price": 12.5},
]

DEFAULT_ADDRESS = {
    "name": "Ada Buyer",
    "street": "12 Harbour Road",
    "city": "Lagos",
    "state": "Lagos",
    "postal_code": "101241",
    "country": "NG",
}


def place_order(buyer_id=BUYER, seller_id=SELLER, **overrides) -> Order:
    payload = {
        "buyer_id": buyer_id,
        "seller_id": seller_id,
        "items": json.dumps(DEFAULT_ITEMS),
        "shipping_address": json.dumps(DEFAULT_ADDRESS),
        "total_amount": 114.0,
        "customer_email": "ada@example.com",
        "customer_phone": "+2348000000000",
    }
    payload.update(overrides)
    order_id = current_domain.process(PlaceOrder(**payload), asynchronous=False)
    return current_domain.repository_for(Order).get(order_id)


def open_dispute(order: Order, **overrides) -> str:
    payload = {
        "order_id": str(order.id),
        "dispute_type": "quality",
        "reason": "Item damaged",
        "description": "Two keys were broken on arrival",
        "actor_id": str(order.buyer_id),
        "actor_role": "buyer",
    }
    payload.update(overrides)
    return current_domain.process(CreateDispute(**payload), asynchronous=False)


@pytest.fixture()
def order_factory():
    return place_order


@pytest.fixture()
def dispute_factory():
    return open_dispute


@pytest.fixture()
def order():
    return place_order()
