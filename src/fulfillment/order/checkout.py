"""PlaceOrder — create an order at checkout.

Checkout itself (cart, payment) happens upstream. This handler materialises
the order record that tracking and disputes hang off, and draws its unique
order number.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.numbering import NumberGenerator, order_number_candidate
from fulfillment.order.order import Order

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    items = Text(required=True)  # JSON array of {product_id, name, quantity, price}
    shipping_address = Text()  # JSON object
    total_amount = Float(default=0.0, min_value=0.0)
    customer_email = String(max_length=255)
    customer_phone = String(max_length=50)


@fulfillment.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items)
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        address = json.loads(command.shipping_address) if command.shipping_address else None

        repo = current_domain.repository_for(Order)
        order_number = NumberGenerator(order_number_candidate, repo.number_taken).next()

        order = Order.place(
            order_number=order_number,
            buyer_id=command.buyer_id,
            seller_id=command.seller_id,
            items_data=items_data,
            shipping_address=address,
            total_amount=command.total_amount,
            customer_email=command.customer_email,
            customer_phone=command.customer_phone,
        )
        repo.add(order)
        logger.info("Order placed", order_id=str(order.id), order_number=order_number)
        return str(order.id)
