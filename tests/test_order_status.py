import pytest

from fishmonger.models.order_status import (
    OrderStatus,
    is_standard_transition,
    normalize_status,
)


@pytest.mark.parametrize('raw, expected', [
    ('PENDING', OrderStatus.PENDING),
    ('EN_COURS', OrderStatus.PENDING),
    ('ready', OrderStatus.READY),
    (' LIVREE ', OrderStatus.DELIVERED),
    ('ANNULEE', OrderStatus.CANCELLED),
    (OrderStatus.CANCELLED, OrderStatus.CANCELLED),
])
def test_normalize_accepts_canonical_values_and_aliases(raw, expected):
    assert normalize_status(raw) is expected


@pytest.mark.parametrize('raw', ['SHIPPED', '', None, 3, 'PRETE'])
def test_normalize_rejects_unknown_values(raw):
    assert normalize_status(raw) is None


def test_standard_transitions():
    assert is_standard_transition(OrderStatus.PENDING, OrderStatus.READY)
    assert is_standard_transition(OrderStatus.READY, OrderStatus.CANCELLED)
    assert not is_standard_transition(OrderStatus.DELIVERED, OrderStatus.PENDING)
    assert not is_standard_transition(OrderStatus.CANCELLED, OrderStatus.READY)
    assert not is_standard_transition(OrderStatus.READY, OrderStatus.PENDING)


def test_terminal_states():
    assert {s for s in OrderStatus if s.is_terminal} == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    assert OrderStatus.CANCELLED.is_cancellation
    assert not OrderStatus.DELIVERED.is_cancellation
