from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..models import Order, OrderItem, OrderStatus
from ..models.order_status import LEGACY_ALIASES
from ..utils.timezone_utils import TimezoneUtils
from .errors import NotFoundError
from .unit_of_work import Transaction

logger = logging.getLogger(__name__)


class OrderRepository:
    """Persistence for orders and their lines. Stock is never touched here."""

    def insert_order(
        self,
        tx: Transaction,
        customer_id: str,
        lines: Sequence[Tuple[str, Decimal, Decimal]],
        total: Decimal,
        notes: Optional[str] = None,
    ) -> Order:
        """Insert the order header and its (product_id, quantity, price) lines in list order."""
        order = Order(
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            total=total,
            notes=notes,
            order_date=TimezoneUtils.utc_now(),
        )
        for position, (product_id, quantity, price) in enumerate(lines):
            order.items.append(OrderItem(product_id=product_id, quantity=quantity, price=price, position=position))
        tx.session.add(order)
        tx.session.flush()
        return order

    def get_order(self, tx: Transaction, order_id: str, *, for_update: bool = False) -> Order:
        stmt = select(Order).where(Order.id == order_id).options(selectinload(Order.items))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        order = tx.session.execute(stmt).scalars().first()
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def update_status(self, tx: Transaction, order: Order, status: OrderStatus, notes: Optional[str] = None) -> Order:
        order.status = status.value
        if notes is not None:
            order.notes = notes
        tx.session.flush()
        return order

    def mark_stock_restored(self, tx: Transaction, order: Order) -> None:
        order.stock_restored_at = TimezoneUtils.utc_now()
        tx.session.flush()

    def delete_order(self, tx: Transaction, order: Order) -> None:
        tx.session.delete(order)
        tx.session.flush()

    def list_orders(self, session: Session, statuses: Optional[Iterable[OrderStatus]] = None) -> List[Order]:
        """Most recent first. A status filter also matches legacy alias rows not yet normalized."""
        stmt = select(Order).options(selectinload(Order.items)).order_by(Order.order_date.desc())
        if statuses:
            values = set()
            for status in statuses:
                values.add(status.value)
                values.update(alias for alias, target in LEGACY_ALIASES.items() if target is status)
            stmt = stmt.where(Order.status.in_(sorted(values)))
        return session.execute(stmt).scalars().all()

    def load_order(self, session: Session, order_id: str) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id).options(selectinload(Order.items))
        return session.execute(stmt).scalars().first()

    def normalize_legacy_statuses(self, tx: Transaction) -> int:
        """Rewrite alias values to their canonical form; returns rows changed."""
        changed = 0
        stmt = select(Order).where(Order.status.in_(sorted(LEGACY_ALIASES)))
        for order in tx.session.execute(stmt).scalars():
            canonical = LEGACY_ALIASES[order.status]
            logger.info("Normalizing order %s status %s -> %s", order.id, order.status, canonical.value)
            order.status = canonical.value
            changed += 1
        return changed
