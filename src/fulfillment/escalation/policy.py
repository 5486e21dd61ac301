"""Deadline and escalation policy.

Pure functions over disputes and shipments: they read status and deadlines
and return flags, never mutating anything. An expired deadline is only ever
reported; terminal decisions always come from the platform.

Dispute arguments may be Dispute aggregates or DisputeQueue entries; both
expose ``status``, ``response_deadline`` and ``dispute_number``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from fulfillment.dispute.dispute import (
    ACTIVE_STATUSES,
    AWAITING_SELLER,
    DisputeStatus,
)
from fulfillment.shipment.tracking_event import TERMINAL_TRACKING_STATUSES, TrackingStatus
from fulfillment.utils.clock import as_utc, utcnow

DUE_SOON_WINDOW = timedelta(hours=2)
REPEATED_FAILURE_THRESHOLD = 3

# Upper bound on records read by a single sweep
SWEEP_LIMIT = 1000

_PROMPTS = {
    DisputeStatus.NEW: "Seller must respond to the dispute",
    DisputeStatus.SELLER_RESPONSE: "Waiting for the buyer to review the seller's response",
    DisputeStatus.BUYER_RESPONSE: "Buyer replied; seller must respond",
    DisputeStatus.UNDER_REVIEW: "Under review by the platform",
    DisputeStatus.APPROVED: "Dispute approved",
    DisputeStatus.REJECTED: "Dispute rejected",
    DisputeStatus.RESOLVED: "Dispute resolved",
}


@dataclass(frozen=True)
class NextAction:
    prompt: str
    action_required: bool
    deadline_expired: bool


@dataclass(frozen=True)
class EscalationFlag:
    dispute_id: str
    dispute_number: str
    status: str
    response_deadline: datetime
    overdue_by: timedelta


def _dispute_id(dispute) -> str:
    return str(getattr(dispute, "dispute_id", None) or dispute.id)


def deadline_expired(dispute, now: datetime | None = None) -> bool:
    """True for an active dispute whose response deadline has passed."""
    if DisputeStatus(dispute.status) not in ACTIVE_STATUSES or dispute.response_deadline is None:
        return False
    return as_utc(dispute.response_deadline) < (now or utcnow())


def next_action(dispute, now: datetime | None = None) -> NextAction:
    status = DisputeStatus(dispute.status)
    expired = deadline_expired(dispute, now)
    prompt = _PROMPTS[status]
    if expired:
        prompt = f"{prompt} (response deadline passed)"
    return NextAction(
        prompt=prompt,
        action_required=status in AWAITING_SELLER,
        deadline_expired=expired,
    )


def sweep_disputes(disputes, now: datetime | None = None) -> list[EscalationFlag]:
    """Flag every active dispute whose deadline has passed, most overdue first."""
    now = now or utcnow()
    flags = [
        EscalationFlag(
            dispute_id=_dispute_id(d),
            dispute_number=d.dispute_number,
            status=d.status,
            response_deadline=as_utc(d.response_deadline),
            overdue_by=now - as_utc(d.response_deadline),
        )
        for d in disputes
        if deadline_expired(d, now)
    ]
    return sorted(flags, key=lambda f: f.overdue_by, reverse=True)


def due_soon(disputes, now: datetime | None = None, window: timedelta = DUE_SOON_WINDOW) -> list:
    """Disputes awaiting the seller whose deadline falls within ``window``.

    Deadlines already passed are included.
    """
    horizon = (now or utcnow()) + window
    return [
        d
        for d in disputes
        if DisputeStatus(d.status) in AWAITING_SELLER
        and d.response_deadline is not None
        and as_utc(d.response_deadline) <= horizon
    ]


def shipment_overdue(shipment, now: datetime | None = None) -> bool:
    """In flight past its estimated delivery."""
    if TrackingStatus(shipment.status) in TERMINAL_TRACKING_STATUSES or shipment.estimated_delivery is None:
        return False
    return as_utc(shipment.estimated_delivery) < (now or utcnow())


def overdue_shipments(shipments, now: datetime | None = None) -> list:
    now = now or utcnow()
    return sorted(
        (s for s in shipments if shipment_overdue(s, now)),
        key=lambda s: as_utc(s.estimated_delivery),
    )


def repeated_failures(shipments, threshold: int = REPEATED_FAILURE_THRESHOLD) -> list:
    """In-flight shipments with at least ``threshold`` failed delivery attempts."""
    return [
        s
        for s in shipments
        if TrackingStatus(s.status) not in TERMINAL_TRACKING_STATUSES
        and (s.failed_delivery_attempts or 0) >= threshold
    ]
