"""CancelOrder — buyer withdraws an order before it is packed."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.domain import fulfillment
from fulfillment.errors import NotFound
from fulfillment.order.order import Order

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    reason = String(max_length=500)


@fulfillment.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        require_role(command.actor_role, ActorRole.BUYER)
        order = current_domain.repository_for(Order).get(command.order_id)
        if str(order.buyer_id) != str(command.actor_id):
            raise NotFound({"order_id": ["Order not found"]})

        order.cancel(command.reason, cancelled_by=command.actor_id)
        current_domain.repository_for(Order).add(order)
        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)
