"""Dispute aggregate (CQRS) — a turn-based buyer/seller negotiation.

The buyer opens the dispute and the seller has seven days to respond. The
seller may respond exactly once; the buyer may answer that response, which
re-arms the seller's window. Either party can ask the platform to decide,
and only the platform sets a terminal status. Deadlines are advisory: an
expired deadline is flagged for display but never moves the dispute.

State Machine:
    NEW → SELLER_RESPONSE → BUYER_RESPONSE
    {NEW, SELLER_RESPONSE, BUYER_RESPONSE} → UNDER_REVIEW     (escalation)
    any active → APPROVED | REJECTED | RESOLVED              (platform decision)
    APPROVED, REJECTED, RESOLVED → (terminal)
"""

from datetime import datetime, timedelta
from enum import Enum

import structlog
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from fulfillment.domain import fulfillment
from fulfillment.dispute.events import (
    BuyerResponded,
    DisputeEscalated,
    DisputeOpened,
    DisputeResolved,
    EvidenceAdded,
    SellerResponded,
)
from fulfillment.errors import Conflict, Unprocessable
from fulfillment.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)

RESPONSE_WINDOW = timedelta(days=7)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DisputeStatus(Enum):
    NEW = "new"
    UNDER_REVIEW = "under_review"
    SELLER_RESPONSE = "seller_response"
    BUYER_RESPONSE = "buyer_response"
    APPROVED = "approved"
    REJECTED = "rejected"
    RESOLVED = "resolved"


class DisputeType(Enum):
    REFUND = "refund"
    RETURN = "return"
    QUALITY = "quality"
    DELIVERY = "delivery"
    OTHER = "other"


class DisputePriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class EvidenceType(Enum):
    PHOTO = "photo"
    DOCUMENT = "document"
    VIDEO = "video"
    MESSAGE = "message"
    RECEIPT = "receipt"
    OTHER = "other"


ACTIVE_STATUSES = frozenset(
    {
        DisputeStatus.NEW,
        DisputeStatus.UNDER_REVIEW,
        DisputeStatus.SELLER_RESPONSE,
        DisputeStatus.BUYER_RESPONSE,
    }
)

TERMINAL_STATUSES = frozenset({DisputeStatus.APPROVED, DisputeStatus.REJECTED, DisputeStatus.RESOLVED})

# Statuses in which the seller owes a response
AWAITING_SELLER = frozenset({DisputeStatus.NEW, DisputeStatus.BUYER_RESPONSE})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Dispute")
class Evidence:
    """One piece of supporting material. Never edited once attached."""

    sequence = Integer(required=True, min_value=1)
    evidence_type = String(required=True, choices=EvidenceType)
    url = String(required=True, max_length=1000)
    description = String(max_length=1000)
    uploaded_by = Identifier(required=True)
    uploaded_by_role = String(required=True, max_length=20)
    uploaded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Dispute:
    dispute_number = String(required=True, max_length=50, unique=True)
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    dispute_type = String(required=True, choices=DisputeType)
    reason = String(required=True, max_length=500)
    description = Text(required=True)
    status = String(choices=DisputeStatus, default=DisputeStatus.NEW.value)
    priority = String(choices=DisputePriority, default=DisputePriority.MEDIUM.value)
    evidence = HasMany(Evidence)
    seller_response = Text()
    seller_response_at = DateTime()
    buyer_response = Text()
    buyer_response_at = DateTime()
    escalated_at = DateTime()
    admin_decision = Text()
    admin_decision_at = DateTime()
    resolution = Text()
    resolved_by = Identifier()
    resolved_at = DateTime()
    response_deadline = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(
        cls,
        dispute_number: str,
        order_id: str,
        buyer_id: str,
        seller_id: str,
        dispute_type: str,
        reason: str,
        description: str,
        priority: str | None = None,
    ):
        now = utcnow()
        dispute = cls(
            dispute_number=dispute_number,
            order_id=order_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            dispute_type=dispute_type,
            reason=reason,
            description=description,
            priority=priority or DisputePriority.MEDIUM.value,
            status=DisputeStatus.NEW.value,
            response_deadline=now + RESPONSE_WINDOW,
            created_at=now,
            updated_at=now,
        )
        dispute.raise_(
            DisputeOpened(
                dispute_id=str(dispute.id),
                dispute_number=dispute_number,
                order_id=str(order_id),
                buyer_id=str(buyer_id),
                seller_id=str(seller_id),
                dispute_type=dispute.dispute_type,
                priority=dispute.priority,
                status=dispute.status,
                response_deadline=dispute.response_deadline,
                opened_at=now,
            )
        )
        return dispute

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> DisputeStatus:
        return DisputeStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.current_status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATUSES

    @property
    def ordered_evidence(self) -> list[Evidence]:
        return sorted(self.evidence or [], key=lambda e: e.sequence)

    def deadline_passed(self, now: datetime | None = None) -> bool:
        if self.response_deadline is None:
            return False
        return as_utc(self.response_deadline) < (now or utcnow())

    def _require_open(self, action: str) -> None:
        if self.is_terminal:
            raise Unprocessable({"status": [f"Cannot {action}: dispute is already {self.status}"]})

    # -------------------------------------------------------------------
    # Evidence
    # -------------------------------------------------------------------
    def attach_evidence(self, entries: list[dict], uploaded_by: str, uploaded_by_role: str) -> None:
        """Append evidence entries of the shape ``{type, url, description}``."""
        self._require_open("add evidence")
        if not entries:
            return

        now = utcnow()
        next_sequence = len(self.evidence or []) + 1
        for offset, entry in enumerate(entries):
            self.add_evidence(
                Evidence(
                    sequence=next_sequence + offset,
                    evidence_type=entry.get("type") or EvidenceType.OTHER.value,
                    url=entry["url"],
                    description=entry.get("description"),
                    uploaded_by=uploaded_by,
                    uploaded_by_role=uploaded_by_role,
                    uploaded_at=now,
                )
            )
        self.updated_at = now
        self.raise_(
            EvidenceAdded(
                dispute_id=str(self.id),
                uploaded_by=str(uploaded_by),
                uploaded_by_role=uploaded_by_role,
                count=len(entries),
                evidence_total=len(self.evidence),
                added_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Negotiation
    # -------------------------------------------------------------------
    def submit_seller_response(self, response: str, seller_id: str, evidence: list[dict] | None = None) -> None:
        self._require_open("respond")
        if self.seller_response:
            raise Conflict({"seller_response": ["Seller has already responded to this dispute"]})
        if self.current_status not in AWAITING_SELLER:
            raise Unprocessable({"status": [f"Seller cannot respond while dispute is {self.status}"]})

        now = utcnow()
        late = self.deadline_passed(now)
        if late:
            logger.warning(
                "Seller responded after deadline",
                dispute_id=str(self.id),
                deadline=as_utc(self.response_deadline).isoformat(),
            )

        self.attach_evidence(evidence or [], uploaded_by=seller_id, uploaded_by_role="seller")
        self.seller_response = response
        self.seller_response_at = now
        self.status = DisputeStatus.SELLER_RESPONSE.value
        self.response_deadline = None
        self.updated_at = now
        self.raise_(
            SellerResponded(
                dispute_id=str(self.id),
                seller_id=str(seller_id),
                status=self.status,
                late=late,
                responded_at=now,
            )
        )

    def submit_buyer_response(self, response: str, buyer_id: str) -> None:
        self._require_open("respond")
        if self.current_status != DisputeStatus.SELLER_RESPONSE:
            raise Unprocessable({"status": [f"Buyer can only respond after the seller; dispute is {self.status}"]})

        now = utcnow()
        self.buyer_response = response
        self.buyer_response_at = now
        self.status = DisputeStatus.BUYER_RESPONSE.value
        self.response_deadline = now + RESPONSE_WINDOW
        self.updated_at = now
        self.raise_(
            BuyerResponded(
                dispute_id=str(self.id),
                buyer_id=str(buyer_id),
                status=self.status,
                response_deadline=self.response_deadline,
                responded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Platform decision
    # -------------------------------------------------------------------
    def escalate(self, escalated_by: str, role: str, reason: str | None = None) -> None:
        self._require_open("escalate")
        if self.current_status == DisputeStatus.UNDER_REVIEW:
            raise Unprocessable({"status": ["Dispute is already under review"]})

        now = utcnow()
        self.status = DisputeStatus.UNDER_REVIEW.value
        self.escalated_at = now
        self.response_deadline = None
        self.updated_at = now
        self.raise_(
            DisputeEscalated(
                dispute_id=str(self.id),
                escalated_by=str(escalated_by),
                escalated_by_role=role,
                reason=reason,
                status=self.status,
                escalated_at=now,
            )
        )

    def resolve(
        self,
        outcome: DisputeStatus,
        resolution: str,
        admin_id: str,
        admin_decision: str | None = None,
    ) -> None:
        self._require_open("resolve")
        if outcome not in TERMINAL_STATUSES:
            raise Unprocessable({"status": [f"{outcome.value} is not a decision"]})

        now = utcnow()
        self.status = outcome.value
        self.admin_decision = admin_decision or outcome.value
        self.admin_decision_at = now
        self.resolution = resolution
        self.resolved_by = admin_id
        self.resolved_at = now
        self.response_deadline = None
        self.updated_at = now
        self.raise_(
            DisputeResolved(
                dispute_id=str(self.id),
                status=self.status,
                resolution=resolution,
                resolved_by=str(admin_id),
                resolved_at=now,
            )
        )
