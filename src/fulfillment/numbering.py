"""Unique reference numbers for orders, shipments and disputes.

Candidates combine the low eight digits of the millisecond clock with a
random suffix. A candidate is only handed out after the store confirms it
is free; the generator gives up loudly after a bounded number of attempts.
"""

import random
import time
from collections.abc import Callable

import structlog

from fulfillment.errors import NumberGenerationError

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 10


def _clock_digits() -> str:
    return str(int(time.time() * 1000))[-8:]


def order_number_candidate() -> str:
    return f"ORD-{_clock_digits()}-{random.randint(0, 9999):04d}"


def tracking_number_candidate() -> str:
    return f"TRK{_clock_digits()}{random.randint(0, 9999):04d}"


def dispute_number_candidate() -> str:
    return f"DSP-{_clock_digits()}-{random.randint(0, 999):03d}"


class NumberGenerator:
    """Draws candidates until one is not taken.

    Args:
        candidate: produces a fresh candidate on every call.
        is_taken: returns True when the store already holds the candidate.
        max_attempts: upper bound before failing with NumberGenerationError.
    """

    def __init__(
        self,
        candidate: Callable[[], str],
        is_taken: Callable[[str], bool],
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.candidate = candidate
        self.is_taken = is_taken
        self.max_attempts = max_attempts

    def next(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            number = self.candidate()
            if not self.is_taken(number):
                return number
            logger.debug("Reference number collision", number=number, attempt=attempt)

        logger.error("Reference number space exhausted", attempts=self.max_attempts)
        raise NumberGenerationError(f"Failed to generate a unique number after {self.max_attempts} attempts")
