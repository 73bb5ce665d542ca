# storefront/order_status.py
from __future__ import annotations

from typing import Optional

PROCESSING = "Processing"
IN_TRANSIT = "In transit"
CONFIRMED = "Confirmed"
CANCELLED = "Cancelled"
CANCELLATION_REQUESTED = "Cancellation Requested"

ALL_STATUSES = (PROCESSING, IN_TRANSIT, CONFIRMED, CANCELLED, CANCELLATION_REQUESTED)
ACTIVE_STATUSES = (PROCESSING, IN_TRANSIT)

# Admin-driven moves. Cancellation requests have their own accept/reject path.
ALLOWED_TRANSITIONS = {
    PROCESSING: [IN_TRANSIT, CONFIRMED, CANCELLED],
    IN_TRANSIT: [CONFIRMED, CANCELLED],
    CANCELLATION_REQUESTED: [CANCELLED],
    CONFIRMED: [],
    CANCELLED: [],
}


class InvalidStatusTransition(Exception):
    def __init__(self, current: Optional[str], target: str):
        self.current = current
        self.target = target
        super().__init__(f"cannot move order from {current!r} to {target!r}")


def check_transition(current: Optional[str], target: str) -> None:
    if target not in ALL_STATUSES:
        raise ValueError(f"unknown status: {target!r}")
    if target == CANCELLATION_REQUESTED:
        # only customers raise this, via request_cancellation()
        raise InvalidStatusTransition(current, target)
    if target not in ALLOWED_TRANSITIONS.get(current or PROCESSING, []):
        raise InvalidStatusTransition(current, target)


def can_request_cancellation(current: Optional[str]) -> bool:
    return (current or PROCESSING) in ACTIVE_STATUSES


def status_after_rejection(previous: Optional[str]) -> str:
    """Where an order goes back to when a cancellation request is rejected."""
    return previous if previous in ACTIVE_STATUSES else PROCESSING
