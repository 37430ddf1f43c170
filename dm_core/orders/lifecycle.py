"""
Order status workflow.

    pending  -> approved | dispensed | rejected
    approved -> dispensed | rejected
    dispensed, rejected: terminal

No side effects here; OrderService applies the change.
"""
from __future__ import annotations

from dm_core.orders.exceptions import InvalidTransition
from dm_core.orders.models import OrderStatus

TERMINAL_STATES = frozenset({OrderStatus.DISPENSED, OrderStatus.REJECTED})

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.APPROVED, OrderStatus.DISPENSED, OrderStatus.REJECTED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.DISPENSED, OrderStatus.REJECTED}),
    OrderStatus.DISPENSED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidTransition(f"Unknown order status '{value}'.", status=value)


def allowed_targets(from_status) -> frozenset:
    return ALLOWED_TRANSITIONS.get(parse_status(from_status), frozenset())


def is_terminal(status) -> bool:
    return parse_status(status) in TERMINAL_STATES


def can_transition(*, from_status, to_status) -> bool:
    if is_terminal(from_status):
        return False
    return parse_status(to_status) in allowed_targets(from_status)


def validate_transition(*, order, target_status) -> OrderStatus:
    target = parse_status(target_status)
    if not can_transition(from_status=order.status, to_status=target):
        raise InvalidTransition(
            f"Order {order.id} cannot move from '{order.status}' to '{target.value}'.",
            order_id=order.id,
            from_status=str(order.status),
            to_status=target.value,
        )
    return target
