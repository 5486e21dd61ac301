"""ResolveDispute — the platform's terminal decision."""

from enum import Enum

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.dispute.access import load_for_party
from fulfillment.dispute.dispute import Dispute, DisputeStatus
from fulfillment.domain import fulfillment

logger = structlog.get_logger(__name__)


class Decision(Enum):
    APPROVED = DisputeStatus.APPROVED.value
    REJECTED = DisputeStatus.REJECTED.value
    RESOLVED = DisputeStatus.RESOLVED.value


@fulfillment.command(part_of="Dispute")
class ResolveDispute:
    dispute_id = Identifier(required=True)
    decision = String(required=True, choices=Decision)
    resolution = Text(required=True)
    admin_decision = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Dispute)
class ResolveDisputeHandler:
    @handle(ResolveDispute)
    def resolve_dispute(self, command):
        require_role(command.actor_role, ActorRole.ADMIN)
        dispute = load_for_party(command.dispute_id, command.actor_id, command.actor_role)

        dispute.resolve(
            DisputeStatus(command.decision),
            resolution=command.resolution,
            admin_id=command.actor_id,
            admin_decision=command.admin_decision,
        )
        current_domain.repository_for(Dispute).add(dispute)
        logger.info("Dispute resolved", dispute_id=str(dispute.id), decision=command.decision)
