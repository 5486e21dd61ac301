"""EscalateDispute — a party hands the dispute to the platform."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.dispute.access import load_for_party
from fulfillment.dispute.dispute import Dispute
from fulfillment.domain import fulfillment

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Dispute")
class EscalateDispute:
    dispute_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Dispute)
class EscalateDisputeHandler:
    @handle(EscalateDispute)
    def escalate_dispute(self, command):
        role = require_role(command.actor_role, ActorRole.BUYER, ActorRole.SELLER)
        dispute = load_for_party(command.dispute_id, command.actor_id, command.actor_role)

        dispute.escalate(command.actor_id, role.value, command.reason)
        current_domain.repository_for(Dispute).add(dispute)
        logger.info("Dispute escalated", dispute_id=str(dispute.id), by=role.value)
