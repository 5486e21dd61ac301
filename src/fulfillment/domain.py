"""Fulfillment bounded context — shipment tracking and dispute resolution.

Owns the two coupled state machines of a marketplace order: the shipment
tracking log (with its bridge onto the coarse Order lifecycle) and the
buyer/seller dispute negotiation with platform arbitration. Uses CQRS
because both workflows are short read-modify-write transactions.
"""

from protean.domain import Domain

from fulfillment.utils.logging import configure_logging

configure_logging()

# Domain Composition Root
fulfillment = Domain(name="fulfillment")
