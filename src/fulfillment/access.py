"""Caller identity and ownership checks shared by the command handlers.

Every mutating command carries the acting party (``actor_id`` and
``actor_role``) so handlers can enforce ownership inside the same unit of
work that loads the record.
"""

from enum import Enum

from protean.exceptions import ValidationError

from fulfillment.errors import Forbidden


class ActorRole(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


def parse_role(value: str) -> ActorRole:
    try:
        return ActorRole(value)
    except ValueError:
        raise ValidationError({"actor_role": [f"Unknown role: {value}"]}) from None


def require_role(actor_role: str, *allowed: ActorRole) -> ActorRole:
    """Return the parsed role, or fail with Forbidden if it is not allowed."""
    role = parse_role(actor_role)
    if role not in allowed:
        names = ", ".join(r.value for r in allowed)
        raise Forbidden({"actor_role": [f"Only {names} may perform this action"]})
    return role


def ensure_seller_or_admin(seller_id, actor_id: str, actor_role: str) -> None:
    """Tracking facts may be reported by the order's seller or a platform admin."""
    role = require_role(actor_role, ActorRole.SELLER, ActorRole.ADMIN)
    if role == ActorRole.SELLER and str(seller_id) != str(actor_id):
        raise Forbidden({"seller_id": ["Unauthorized to update this order"]})
