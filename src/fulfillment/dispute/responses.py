"""Seller and buyer responses — the turn-taking part of a dispute."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, require_role
from fulfillment.dispute.access import load_for_party
from fulfillment.dispute.dispute import Dispute
from fulfillment.domain import fulfillment

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Dispute")
class SubmitSellerResponse:
    dispute_id = Identifier(required=True)
    response = Text(required=True)
    evidence = Text()  # JSON array of {type, url, description}
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command(part_of="Dispute")
class SubmitBuyerResponse:
    dispute_id = Identifier(required=True)
    response = Text(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@fulfillment.command_handler(part_of=Dispute)
class DisputeResponseHandler:
    @handle(SubmitSellerResponse)
    def submit_seller_response(self, command):
        require_role(command.actor_role, ActorRole.SELLER)
        dispute = load_for_party(command.dispute_id, command.actor_id, command.actor_role)

        evidence = json.loads(command.evidence) if command.evidence else []
        dispute.submit_seller_response(command.response, seller_id=command.actor_id, evidence=evidence)
        current_domain.repository_for(Dispute).add(dispute)
        logger.info("Seller responded to dispute", dispute_id=str(dispute.id))

    @handle(SubmitBuyerResponse)
    def submit_buyer_response(self, command):
        require_role(command.actor_role, ActorRole.BUYER)
        dispute = load_for_party(command.dispute_id, command.actor_id, command.actor_role)

        dispute.submit_buyer_response(command.response, buyer_id=command.actor_id)
        current_domain.repository_for(Dispute).add(dispute)
        logger.info("Buyer responded to dispute", dispute_id=str(dispute.id))
