"""CreateDispute — a buyer opens a dispute on one of their orders.

At most one active dispute may exist per order. The check is a repository
query in the handler since it spans aggregate instances.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.dispute.dispute import Dispute, DisputePriority, DisputeType
from fulfillment.domain import fulfillment
from fulfillment.errors import ActiveDisputeExists, NotFound
from fulfillment.numbering import NumberGenerator, dispute_number_candidate
from fulfillment.order.order import Order

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Dispute")
class CreateDispute:
    order_id = Identifier(required=True)
    dispute_type = String(required=True, choices=DisputeType)
    reason = String(required=True, max_length=500)
    description = Text(required=True)
    priority = String(choices=DisputePriority, default=DisputePriority.MEDIUM.value)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Dispute)
class OpenDisputeHandler:
    @handle(CreateDispute)
    def create_dispute(self, command):
        require_role(command.actor_role, ActorRole.BUYER)

        try:
            order = current_domain.repository_for(Order).get(command.order_id)
        except ObjectNotFoundError:
            raise NotFound({"order_id": ["Order not found"]}) from None
        if str(order.buyer_id) != str(command.actor_id):
            raise NotFound({"order_id": ["Order not found"]})

        repo = current_domain.repository_for(Dispute)
        existing = repo.active_for_order(command.order_id)
        if existing is not None:
            logger.info(
                "Dispute rejected: order already disputed",
                order_id=str(command.order_id),
                dispute_id=str(existing.id),
            )
            raise ActiveDisputeExists(str(existing.id))

        dispute = Dispute.open(
            dispute_number=NumberGenerator(dispute_number_candidate, repo.number_taken).next(),
            order_id=command.order_id,
            buyer_id=command.actor_id,
            seller_id=str(order.seller_id),
            dispute_type=command.dispute_type,
            reason=command.reason,
            description=command.description,
            priority=command.priority,
        )
        repo.add(dispute)
        logger.info(
            "Dispute opened",
            dispute_id=str(dispute.id),
            dispute_number=dispute.dispute_number,
            order_id=str(command.order_id),
        )
        return str(dispute.id)
