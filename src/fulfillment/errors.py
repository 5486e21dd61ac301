"""Caller-facing error taxonomy for the fulfillment core.

Malformed input is reported with ``protean.exceptions.ValidationError`` and
unknown records with ``protean.exceptions.ObjectNotFoundError``, as everywhere
else in the domain. The classes below cover the outcomes Protean has no
exception for. Each carries a ``messages`` dict shaped like Protean's so the
API layer can render them uniformly.
"""


class FulfillmentError(Exception):
    """Base class for recoverable, caller-facing errors."""

    status_code = 400

    def __init__(self, messages: dict, **extra):
        super().__init__(messages)
        self.messages = messages
        self.extra = extra


class Unauthenticated(FulfillmentError):
    """No valid caller identity."""

    status_code = 401


class Forbidden(FulfillmentError):
    """The caller may not act on this record."""

    status_code = 403


class NotFound(FulfillmentError):
    """The record does not exist or does not belong to the caller."""

    status_code = 404


class Conflict(FulfillmentError):
    """A single-write invariant would be violated."""

    status_code = 409


class ActiveDisputeExists(Conflict):
    """An order already has a dispute in an active status.

    Reported as 400 so the caller receives the existing dispute id alongside
    the rejection.
    """

    status_code = 400

    def __init__(self, dispute_id: str):
        super().__init__(
            {"order_id": ["An active dispute already exists for this order"]},
            dispute_id=dispute_id,
        )
        self.dispute_id = dispute_id


class Unprocessable(FulfillmentError):
    """The operation is well-formed but illegal in the record's current state."""

    status_code = 422


class NumberGenerationError(RuntimeError):
    """No unique reference number could be drawn within the attempt bound."""
