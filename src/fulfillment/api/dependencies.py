"""Caller identity for the HTTP API.

Authentication happens upstream; the gateway forwards the verified caller
as ``X-Actor-Id`` and ``X-Actor-Role`` headers.
"""

from dataclasses import dataclass

from fastapi import Header

from fulfillment.access import ActorRole
from fulfillment.errors import Unauthenticated


@dataclass(frozen=True)
class Actor:
    id: str
    role: str


def optional_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor | None:
    if not x_actor_id:
        return None
    role = (x_actor_role or "").lower()
    if role not in {r.value for r in ActorRole}:
        raise Unauthenticated({"actor": [f"Unknown role: {x_actor_role}"]})
    return Actor(id=x_actor_id, role=role)


def current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    actor = optional_actor(x_actor_id, x_actor_role)
    if actor is None:
        raise Unauthenticated({"actor": ["Authentication required"]})
    return actor
