"""Canonical order status vocabulary.

Synopsis:
One closed set of order states. Legacy French aliases are accepted at the
boundary and normalized here; only canonical values are persisted.

Glossary:
- Alias: Legacy spelling of a state (EN_COURS, LIVREE, ANNULEE).
- Terminal state: DELIVERED or CANCELLED; no standard transition leaves them.
"""

from __future__ import annotations

import enum


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_cancellation(self) -> bool:
        return self is OrderStatus.CANCELLED


LEGACY_ALIASES = {
    "EN_COURS": OrderStatus.PENDING,
    "LIVREE": OrderStatus.DELIVERED,
    "ANNULEE": OrderStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

STANDARD_TRANSITIONS = frozenset({
    (OrderStatus.PENDING, OrderStatus.READY),
    (OrderStatus.PENDING, OrderStatus.DELIVERED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.READY, OrderStatus.DELIVERED),
    (OrderStatus.READY, OrderStatus.CANCELLED),
})

ACCEPTED_VALUES = tuple(s.value for s in OrderStatus) + tuple(LEGACY_ALIASES)


def normalize_status(value) -> OrderStatus | None:
    """Map a canonical value or a legacy alias onto OrderStatus; None if unknown."""
    if isinstance(value, OrderStatus):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().upper()
    if key in LEGACY_ALIASES:
        return LEGACY_ALIASES[key]
    try:
        return OrderStatus(key)
    except ValueError:
        return None


def is_standard_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return (current, target) in STANDARD_TRANSITIONS
