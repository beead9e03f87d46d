"""Order domain constants.

Defines status choices and the transition table of the order state
machine.  Automated actors (payment consumer, expiry sweeper) may only
move an order along ``ALLOWED_FROM``; the administrative override in
``OrderService.update_status`` is the single path allowed to ignore it.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    EXPIRED = "expired", "Expired"


# target status -> statuses an order may be in before moving to it
ALLOWED_FROM: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset(),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PENDING}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.PROCESSING}),
    OrderStatus.EXPIRED: frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING}),
}

VALID_TRANSITIONS: dict[str, set[str]] = {
    status: {target for target, sources in ALLOWED_FROM.items() if status in sources}
    for status in OrderStatus.values
}

TERMINAL_STATES: set[str] = {OrderStatus.COMPLETED, OrderStatus.EXPIRED}

# Statuses the expiry sweeper reclaims once they are older than the threshold.
ACTIVE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.PROCESSING}

# Forward position of each status; a lower rank after an override means
# the order moved backwards.
STATUS_RANK: dict[str, int] = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.COMPLETED: 2,
    OrderStatus.EXPIRED: 2,
}
