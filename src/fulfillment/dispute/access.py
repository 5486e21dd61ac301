"""Party checks for dispute commands."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from fulfillment.access import ActorRole, parse_role
from fulfillment.dispute.dispute import Dispute
from fulfillment.errors import NotFound


def load_for_party(dispute_id, actor_id: str, actor_role: str) -> Dispute:
    """Load a dispute the caller is a party to.

    Admins see every dispute. A buyer or seller who is not a party gets the
    same answer as for a dispute that does not exist.
    """
    try:
        dispute = current_domain.repository_for(Dispute).get(dispute_id)
    except ObjectNotFoundError:
        raise NotFound({"dispute_id": ["Dispute not found"]}) from None

    role = parse_role(actor_role)
    if role == ActorRole.ADMIN:
        return dispute
    party = dispute.buyer_id if role == ActorRole.BUYER else dispute.seller_id
    if str(party) != str(actor_id):
        raise NotFound({"dispute_id": ["Dispute not found"]})
    return dispute
