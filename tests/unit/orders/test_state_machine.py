"""Unit tests for the order status table and ``Order.can_transition_to``."""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    ACTIVE_STATES,
    ALLOWED_FROM,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit

ALLOWED_EDGES = {
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PROCESSING, OrderStatus.COMPLETED),
    (OrderStatus.PENDING, OrderStatus.EXPIRED),
    (OrderStatus.PROCESSING, OrderStatus.EXPIRED),
}

ALL_EDGES = [
    (source, target)
    for source in OrderStatus.values
    for target in OrderStatus.values
    if source != target
]


def test_status_values_are_lowercase():
    assert OrderStatus.values == ["pending", "processing", "completed", "expired"]


def test_every_status_has_an_allowed_from_entry():
    assert set(ALLOWED_FROM) == set(OrderStatus.values)


def test_nothing_moves_back_to_pending():
    assert ALLOWED_FROM[OrderStatus.PENDING] == frozenset()


def test_valid_transitions_mirror_allowed_from():
    edges = {
        (source, target)
        for source, targets in VALID_TRANSITIONS.items()
        for target in targets
    }
    assert edges == ALLOWED_EDGES


def test_terminal_and_active_states_partition_statuses():
    assert TERMINAL_STATES == {OrderStatus.COMPLETED, OrderStatus.EXPIRED}
    assert ACTIVE_STATES == {OrderStatus.PENDING, OrderStatus.PROCESSING}
    assert not TERMINAL_STATES & ACTIVE_STATES


@pytest.mark.parametrize(("source", "target"), ALL_EDGES)
def test_can_transition_to(source, target):
    order = Order(status=source)
    assert order.can_transition_to(target) is ((source, target) in ALLOWED_EDGES)


@pytest.mark.parametrize("status", OrderStatus.values)
def test_no_status_transitions_to_itself(status):
    assert not Order(status=status).can_transition_to(status)


def test_unknown_target_is_rejected():
    assert not Order(status=OrderStatus.PENDING).can_transition_to("shipped")


@pytest.mark.parametrize(
    ("status", "terminal"),
    [
        (OrderStatus.PENDING, False),
        (OrderStatus.PROCESSING, False),
        (OrderStatus.COMPLETED, True),
        (OrderStatus.EXPIRED, True),
    ],
)
def test_is_terminal(status, terminal):
    assert Order(status=status).is_terminal is terminal
