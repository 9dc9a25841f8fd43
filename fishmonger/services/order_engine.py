"""Order lifecycle and the stock it holds.

Synopsis:
Creates orders against the catalog, moves them through the status machine and
deletes them, keeping product stock consistent. Every operation is one unit of
work; the order-ready SMS is queued only after the status change committed.

Glossary:
- Restoration: Handing an order's quantities back to its products; happens at most once per order.
- Non-standard transition: Any move outside the five legal ones; written as asked and logged.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..models import Order, OrderStatus, normalize_status
from ..models.order_status import ACCEPTED_VALUES, is_standard_transition
from ..utils.error_messages import ErrorMessages as EM
from ..utils.quantities import ZERO, quantize_money, quantize_quantity
from .catalog_store import CatalogStore
from .errors import InsufficientStockError, NotFoundError, ValidationError
from .notifications import NotificationDispatcher, NotificationRequest, NotificationResult, build_order_ready_message
from .order_repository import OrderRepository
from .party_store import PartyStore
from .unit_of_work import SqlStore, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: Decimal


@dataclass
class TransitionResult:
    order: Order
    previous_status: Optional[OrderStatus]
    stock_restored: bool = False
    notification_queued: bool = False


@dataclass
class DeletionResult:
    order_id: str
    stock_restored: bool = False


# --- Line parsing ---
# Purpose: Turn raw request items into validated OrderLines.
def parse_order_lines(items: Any) -> List[OrderLine]:
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError(EM.ORDER_ITEMS_REQUIRED, field="items")

    lines: List[OrderLine] = []
    for index, item in enumerate(items):
        if isinstance(item, OrderLine):
            product_id, raw_quantity = item.product_id, item.quantity
        elif isinstance(item, Mapping):
            product_id = item.get("productId") or item.get("product_id")
            raw_quantity = item.get("quantity")
        else:
            raise ValidationError(EM.ORDER_ITEM_MALFORMED.format(index=index), field="items")

        if not product_id or raw_quantity is None:
            raise ValidationError(EM.ORDER_ITEM_MALFORMED.format(index=index), field="items")
        if not isinstance(product_id, str):
            raise ValidationError(EM.FIELD_NOT_IDENTIFIER.format(field="productId"), field="items")
        try:
            quantity = quantize_quantity(raw_quantity)
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(EM.ORDER_QUANTITY_POSITIVE.format(product_id=product_id), field="quantity")
        if quantity <= ZERO:
            raise ValidationError(EM.ORDER_QUANTITY_POSITIVE.format(product_id=product_id), field="quantity")
        lines.append(OrderLine(product_id=str(product_id), quantity=quantity))
    return lines


def parse_status(value: Any) -> OrderStatus:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(EM.ORDER_STATUS_REQUIRED, field="status")
    status = normalize_status(value)
    if status is None:
        raise ValidationError(
            EM.ORDER_STATUS_INVALID.format(status=value, allowed=", ".join(ACCEPTED_VALUES)),
            field="status",
        )
    return status


class OrderEngine:
    """Order operations over injected stores; built once per app in `build_order_engine`."""

    def __init__(
        self,
        store: SqlStore,
        catalog: CatalogStore,
        parties: PartyStore,
        orders: OrderRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.store = store
        self.catalog = catalog
        self.parties = parties
        self.orders = orders
        self.dispatcher = dispatcher

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_order(self, customer_id: str, items: Iterable[Any], notes: Optional[str] = None) -> Order:
        lines = parse_order_lines(items)
        if not customer_id:
            raise ValidationError(EM.FIELD_REQUIRED.format(field="customerId"), field="customerId")
        if not isinstance(customer_id, str):
            raise ValidationError(EM.FIELD_NOT_IDENTIFIER.format(field="customerId"), field="customerId")

        with self.store.transaction("create order") as tx:
            self.parties.get_customer(tx, customer_id)
            products = self.catalog.lock_products(tx, (line.product_id for line in lines))

            # Same product on several lines is checked against its summed quantity
            requested: Dict[str, Decimal] = OrderedDict()
            priced_lines = []
            gross = ZERO
            for line in lines:
                product = products.get(line.product_id)
                if product is None:
                    raise NotFoundError("Product", line.product_id)
                wanted = requested.get(product.id, ZERO) + line.quantity
                if product.stock < wanted:
                    raise InsufficientStockError(product.id, product.name, product.stock, wanted, product.unit)
                if product.price is None or product.price <= ZERO:
                    raise ValidationError(EM.ORDER_PRODUCT_UNPRICED.format(product=product.name), field="items")
                requested[product.id] = wanted
                priced_lines.append((product.id, line.quantity, product.price))
                gross += line.quantity * product.price

            total = quantize_money(gross)
            order = self.orders.insert_order(tx, customer_id, priced_lines, total, notes=_clean_notes(notes))

            for product_id in sorted(requested):
                self.catalog.adjust_stock(tx, product_id, -requested[product_id])

        logger.info("Created order %s for customer %s: %s line(s), total %s", order.id, customer_id, len(lines), total)
        return order

    def transition_status(self, order_id: str, status: Any, notes: Optional[str] = None) -> TransitionResult:
        target = parse_status(status)

        with self.store.transaction("update order status") as tx:
            order = self.orders.get_order(tx, order_id, for_update=True)
            current = order.status_enum

            if current is not target and (current is None or not is_standard_transition(current, target)):
                logger.warning(
                    "Non-standard status transition on order %s: %s -> %s",
                    order.id, order.status, target.value,
                )

            restored = False
            if target is OrderStatus.CANCELLED and current is not OrderStatus.CANCELLED:
                restored = self._restore_stock(tx, order)

            self.orders.update_status(tx, order, target, notes=_clean_notes(notes))

            queued = False
            if target is OrderStatus.READY and current is not OrderStatus.READY:
                queued = self._queue_ready_notification(tx, order)

        logger.info(
            "Order %s status %s -> %s (stock restored: %s, notification queued: %s)",
            order_id, current.value if current else None, target.value, restored, queued,
        )
        return TransitionResult(order=order, previous_status=current, stock_restored=restored, notification_queued=queued)

    def delete_order(self, order_id: str) -> DeletionResult:
        with self.store.transaction("delete order") as tx:
            order = self.orders.get_order(tx, order_id, for_update=True)
            restored = False
            if not order.is_cancelled:
                restored = self._restore_stock(tx, order)
            self.orders.delete_order(tx, order)

        logger.info("Deleted order %s (stock restored: %s)", order_id, restored)
        return DeletionResult(order_id=order_id, stock_restored=restored)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_order(self, order_id: str) -> Order:
        order = self.store.read("load order", lambda session: self.orders.load_order(session, order_id))
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def list_orders(self, status: Any = None) -> List[Order]:
        statuses = [parse_status(status)] if status not in (None, "") else None
        return self.store.read("list orders", lambda session: self.orders.list_orders(session, statuses))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def send_ready_notification(self, order_id: str) -> NotificationResult:
        """Send the order-ready SMS now, on the caller's thread."""
        order = self.get_order(order_id)
        request = _ready_request(order)
        if request is None:
            raise ValidationError(EM.CUSTOMER_NO_PHONE, field="phone")
        logger.info("Manual order-ready notification for order %s", order_id)
        return self.dispatcher.send_now(request)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _restore_stock(self, tx: Transaction, order: Order) -> bool:
        if order.stock_restored:
            logger.info("Stock for order %s was already restored; skipping", order.id)
            return False

        returned: Dict[str, Decimal] = {}
        for item in order.items:
            returned[item.product_id] = returned.get(item.product_id, ZERO) + item.quantity

        self.catalog.lock_products(tx, returned)
        for product_id in sorted(returned):
            self.catalog.adjust_stock(tx, product_id, returned[product_id])
        self.orders.mark_stock_restored(tx, order)
        return True

    def _queue_ready_notification(self, tx: Transaction, order: Order) -> bool:
        request = _ready_request(order)
        if request is None:
            logger.info("Order %s is ready but its customer has no phone; no SMS sent", order.id)
            return False
        tx.after_commit(lambda: self.dispatcher.dispatch(request))
        return True


def _ready_request(order: Order) -> Optional[NotificationRequest]:
    customer = order.customer
    if customer is None or not (customer.phone or "").strip():
        return None
    message = build_order_ready_message(
        customer.name,
        [(item.product.name, item.quantity, item.product.unit) for item in order.items],
    )
    return NotificationRequest(phone=customer.phone.strip(), message=message, order_id=order.id)


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    return str(notes)
