"""Dispute domain events — facts that feed the dispute queue projection."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Dispute")
class DisputeOpened:
    """A buyer opened a dispute on one of their orders."""

    __version__ = 1

    dispute_id = Identifier(required=True)
    dispute_number = String(required=True)
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    dispute_type = String(required=True)
    priority = String(required=True)
    status = String(required=True)
    response_deadline = DateTime()
    opened_at = DateTime(required=True)


@fulfillment.event(part_of="Dispute")
class SellerResponded:
    __version__ = 1

    dispute_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    status = String(required=True)
    late = Boolean(default=False)
    responded_at = DateTime(required=True)


@fulfillment.event(part_of="Dispute")
class BuyerResponded:
    """The buyer answered the seller; the seller has a new response window."""

    __version__ = 1

    dispute_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    status = String(required=True)
    response_deadline = DateTime(required=True)
    responded_at = DateTime(required=True)


@fulfillment.event(part_of="Dispute")
class EvidenceAdded:
    __version__ = 1

    dispute_id = Identifier(required=True)
    uploaded_by = Identifier(required=True)
    uploaded_by_role = String(required=True)
    count = Integer(required=True)
    evidence_total = Integer(required=True)
    added_at = DateTime(required=True)


@fulfillment.event(part_of="Dispute")
class DisputeEscalated:
    """A party asked the platform to decide."""

    __version__ = 1

    dispute_id = Identifier(required=True)
    escalated_by = Identifier(required=True)
    escalated_by_role = String(required=True)
    reason = String()
    status = String(required=True)
    escalated_at = DateTime(required=True)


@fulfillment.event(part_of="Dispute")
class DisputeResolved:
    """The platform recorded a terminal decision."""

    __version__ = 1

    dispute_id = Identifier(required=True)
    status = String(required=True)
    resolution = String(required=True)
    resolved_by = Identifier(required=True)
    resolved_at = DateTime(required=True)
