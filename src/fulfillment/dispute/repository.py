"""Repository for the Dispute aggregate."""

from fulfillment.dispute.dispute import ACTIVE_STATUSES, Dispute
from fulfillment.domain import fulfillment

DEFAULT_PAGE_SIZE = 20


@fulfillment.repository(part_of=Dispute)
class DisputeRepository:
    def find_by_number(self, dispute_number: str) -> Dispute | None:
        return self._dao.query.filter(dispute_number=dispute_number).all().first

    def number_taken(self, dispute_number: str) -> bool:
        return self.find_by_number(dispute_number) is not None

    def active_for_order(self, order_id: str) -> Dispute | None:
        return (
            self._dao.query.filter(
                order_id=str(order_id),
                status__in=[s.value for s in ACTIVE_STATUSES],
            )
            .all()
            .first
        )

    def page_for_party(
        self,
        party_field: str | None,
        party_id: str | None,
        status: str | None = None,
        dispute_type: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ):
        """One page of disputes, newest first. Returns ``(disputes, total)``.

        ``party_field`` is ``buyer_id`` or ``seller_id``; None lists every
        dispute (platform view).
        """
        criteria = {}
        if party_field:
            criteria[party_field] = str(party_id)
        if status:
            criteria["status"] = status
        if dispute_type:
            criteria["dispute_type"] = dispute_type

        query = self._dao.query.filter(**criteria) if criteria else self._dao.query
        result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return result.items, result.total
