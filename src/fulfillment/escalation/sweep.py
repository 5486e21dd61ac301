"""Store-backed sweeps over open disputes and in-flight shipments.

Read on demand by the API; nothing here changes state.
"""

from datetime import datetime

from protean.utils.globals import current_domain

from fulfillment.escalation.policy import (
    DUE_SOON_WINDOW,
    SWEEP_LIMIT,
    due_soon,
    overdue_shipments,
    repeated_failures,
    sweep_disputes,
)
from fulfillment.projections.dispute_queue import DisputeQueue
from fulfillment.shipment.shipment import Shipment
from fulfillment.utils.clock import as_utc, utcnow


def _queue(seller_id: str | None = None) -> list[DisputeQueue]:
    query = current_domain.repository_for(DisputeQueue)._dao.query
    if seller_id:
        query = query.filter(seller_id=str(seller_id))
    return query.limit(SWEEP_LIMIT).all().items


def seller_action_items(seller_id: str, now: datetime | None = None) -> list[dict]:
    """Operational to-do list for a seller's dashboard."""
    now = now or utcnow()
    urgent = due_soon(_queue(seller_id), now)
    if not urgent:
        return []
    hours = int(DUE_SOON_WINDOW.total_seconds() // 3600)
    return [
        {
            "title": "Respond to open disputes",
            "meta": f"{len(urgent)} disputes require immediate response",
            "priority": "High",
            "due": f"Due in {hours} hours",
            "dispute_ids": sorted(str(d.dispute_id) for d in urgent),
        }
    ]


def overdue_disputes(now: datetime | None = None) -> list[dict]:
    """Platform view of disputes past their response deadline."""
    return [
        {
            "dispute_id": flag.dispute_id,
            "dispute_number": flag.dispute_number,
            "status": flag.status,
            "response_deadline": flag.response_deadline,
            "overdue_hours": round(flag.overdue_by.total_seconds() / 3600, 1),
        }
        for flag in sweep_disputes(_queue(), now)
    ]


def shipment_alerts(now: datetime | None = None) -> dict:
    in_flight = current_domain.repository_for(Shipment).in_flight()
    return {
        "overdue": [
            {
                "shipment_id": str(s.id),
                "tracking_number": s.tracking_number,
                "order_id": str(s.order_id),
                "status": s.status,
                "estimated_delivery": as_utc(s.estimated_delivery),
            }
            for s in overdue_shipments(in_flight, now)
        ],
        "repeated_failures": [
            {
                "shipment_id": str(s.id),
                "tracking_number": s.tracking_number,
                "order_id": str(s.order_id),
                "failed_delivery_attempts": s.failed_delivery_attempts,
                "failed_delivery_reason": s.failed_delivery_reason,
            }
            for s in repeated_failures(in_flight)
        ],
    }
