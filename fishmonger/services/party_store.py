from __future__ import annotations

import logging
from typing import Any, List, Mapping

from sqlalchemy import func, select

from ..models import Customer, Order
from ..utils.error_messages import ErrorMessages as EM
from .catalog_store import clean_contact_fields, ensure_unique_email
from .errors import ConflictError, NotFoundError
from .unit_of_work import SqlStore, Transaction

logger = logging.getLogger(__name__)


class PartyStore:
    """Customer records; a customer with any order on file is kept for history."""

    def __init__(self, store: SqlStore):
        self.store = store

    def get_customer(self, tx: Transaction, customer_id: str) -> Customer:
        customer = tx.session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def list_customers(self) -> List[Customer]:
        return self.store.read(
            "list customers",
            lambda session: session.execute(select(Customer).order_by(Customer.name.asc())).scalars().all(),
        )

    def find_customer(self, customer_id: str) -> Customer:
        customer = self.store.read("load customer", lambda session: session.get(Customer, customer_id))
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def create_customer(self, data: Mapping[str, Any]) -> Customer:
        values = clean_contact_fields(data, creating=True)
        with self.store.transaction("create customer") as tx:
            ensure_unique_email(tx, Customer, values.get("email"), resource="customer")
            customer = Customer(**values)
            tx.session.add(customer)
            tx.session.flush()
        logger.info("Created customer %s", customer.id)
        return customer

    def update_customer(self, customer_id: str, data: Mapping[str, Any]) -> Customer:
        values = clean_contact_fields(data, creating=False)
        with self.store.transaction("update customer") as tx:
            customer = self.get_customer(tx, customer_id)
            ensure_unique_email(tx, Customer, values.get("email"), resource="customer", exclude_id=customer_id)
            for key, value in values.items():
                setattr(customer, key, value)
        return customer

    def delete_customer(self, customer_id: str) -> None:
        # Any order counts, including delivered and cancelled ones
        with self.store.transaction("delete customer") as tx:
            customer = self.get_customer(tx, customer_id)
            order_count = tx.session.scalar(select(func.count(Order.id)).where(Order.customer_id == customer_id))
            if order_count:
                raise ConflictError(EM.CUSTOMER_HAS_ORDERS.format(count=order_count))
            tx.session.delete(customer)
        logger.info("Deleted customer %s", customer_id)
