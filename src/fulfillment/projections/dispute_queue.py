"""DisputeQueue — open disputes with their response deadlines.

Feeds the seller's action items and the platform's overdue sweep without
loading full Dispute aggregates. Resolved disputes leave the queue.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from fulfillment.dispute.dispute import Dispute
from fulfillment.dispute.events import (
    BuyerResponded,
    DisputeEscalated,
    DisputeOpened,
    DisputeResolved,
    EvidenceAdded,
    SellerResponded,
)
from fulfillment.domain import fulfillment


@fulfillment.projection
class DisputeQueue:
    dispute_id = Identifier(identifier=True, required=True)
    dispute_number = String(required=True)
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    dispute_type = String(required=True)
    priority = String(required=True)
    status = String(required=True)
    response_deadline = DateTime()
    evidence_count = Integer(default=0)
    opened_at = DateTime()
    updated_at = DateTime()


@fulfillment.projector(projector_for=DisputeQueue, aggregates=[Dispute])
class DisputeQueueProjector:
    @on(DisputeOpened)
    def on_dispute_opened(self, event):
        current_domain.repository_for(DisputeQueue).add(
            DisputeQueue(
                dispute_id=event.dispute_id,
                dispute_number=event.dispute_number,
                order_id=event.order_id,
                buyer_id=event.buyer_id,
                seller_id=event.seller_id,
                dispute_type=event.dispute_type,
                priority=event.priority,
                status=event.status,
                response_deadline=event.response_deadline,
                evidence_count=0,
                opened_at=event.opened_at,
                updated_at=event.opened_at,
            )
        )

    def _entry(self, dispute_id):
        try:
            return current_domain.repository_for(DisputeQueue).get(dispute_id)
        except ObjectNotFoundError:
            return None

    def _move(self, dispute_id, status, deadline, at):
        entry = self._entry(dispute_id)
        if entry is None:
            return
        entry.status = status
        entry.response_deadline = deadline
        entry.updated_at = at
        current_domain.repository_for(DisputeQueue).add(entry)

    @on(SellerResponded)
    def on_seller_responded(self, event):
        self._move(event.dispute_id, event.status, None, event.responded_at)

    @on(BuyerResponded)
    def on_buyer_responded(self, event):
        self._move(event.dispute_id, event.status, event.response_deadline, event.responded_at)

    @on(DisputeEscalated)
    def on_dispute_escalated(self, event):
        self._move(event.dispute_id, event.status, None, event.escalated_at)

    @on(EvidenceAdded)
    def on_evidence_added(self, event):
        entry = self._entry(event.dispute_id)
        if entry is None:
            return
        entry.evidence_count = event.evidence_total
        entry.updated_at = event.added_at
        current_domain.repository_for(DisputeQueue).add(entry)

    @on(DisputeResolved)
    def on_dispute_resolved(self, event):
        entry = self._entry(event.dispute_id)
        if entry is not None:
            current_domain.repository_for(DisputeQueue)._dao.delete(entry)
