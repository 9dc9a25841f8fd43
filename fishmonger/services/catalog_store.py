from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import func, select

from ..models import OrderItem, Product, Supplier
from ..utils.error_messages import ErrorMessages as EM
from ..utils.quantities import ZERO, quantize_money, quantize_quantity, to_decimal
from .errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from .unit_of_work import SqlStore, Transaction

logger = logging.getLogger(__name__)

_PRODUCT_FIELDS = ("name", "description", "price", "stock", "unit", "low_stock_threshold", "supplier_id")
_CONTACT_FIELDS = ("name", "email", "phone", "address")


class CatalogStore:
    """Products and suppliers. Stock moves through `adjust_stock` inside the caller's transaction."""

    def __init__(self, store: SqlStore):
        self.store = store

    # ------------------------------------------------------------------
    # Stock primitives used by the order engine
    # ------------------------------------------------------------------
    def get_product(self, tx: Transaction, product_id: str) -> Product:
        product = tx.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def lock_products(self, tx: Transaction, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Load and row-lock products in ascending id order so concurrent multi-item orders cannot deadlock."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        stmt = (
            select(Product)
            .where(Product.id.in_(ids))
            .order_by(Product.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {product.id: product for product in tx.session.execute(stmt).scalars()}

    def adjust_stock(self, tx: Transaction, product_id: str, delta: Decimal) -> None:
        """Apply a signed stock delta to the locked row; refuse if stock would go below zero.

        The new level is computed in Decimal and written as an absolute value.
        SQLite keeps NUMERIC columns as REAL, so `stock + delta` in SQL drifts.
        """
        delta = quantize_quantity(delta)
        if delta == ZERO:
            return
        product = self.lock_products(tx, [product_id]).get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        current = quantize_quantity(product.stock if product.stock is not None else ZERO)
        new_stock = quantize_quantity(current + delta)
        if new_stock < ZERO:
            raise InsufficientStockError(product.id, product.name, current, -delta, product.unit)
        product.stock = new_stock
        tx.session.flush()

    # ------------------------------------------------------------------
    # Product administration
    # ------------------------------------------------------------------
    def list_products(self) -> List[Product]:
        return self.store.read(
            "list products",
            lambda session: session.execute(select(Product).order_by(Product.name.asc())).scalars().all(),
        )

    def find_product(self, product_id: str) -> Product:
        product = self.store.read("load product", lambda session: session.get(Product, product_id))
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def create_product(self, data: Mapping[str, Any]) -> Product:
        values = self._clean_product_fields(data, creating=True)
        with self.store.transaction("create product") as tx:
            if values.get("supplier_id"):
                self._require_supplier(tx, values["supplier_id"])
            product = Product(**values)
            tx.session.add(product)
            tx.session.flush()
        logger.info("Created product %s (%s)", product.id, product.name)
        return product

    def update_product(self, product_id: str, data: Mapping[str, Any]) -> Product:
        """Administrative edit; a stock value here bypasses the order engine but must stay >= 0."""
        values = self._clean_product_fields(data, creating=False)
        with self.store.transaction("update product") as tx:
            product = self.get_product(tx, product_id)
            if values.get("supplier_id"):
                self._require_supplier(tx, values["supplier_id"])
            for key, value in values.items():
                setattr(product, key, value)
            if "stock" in values:
                logger.info("Administrative stock edit on %s: stock set to %s", product_id, values["stock"])
        return product

    def delete_product(self, product_id: str) -> None:
        with self.store.transaction("delete product") as tx:
            product = self.get_product(tx, product_id)
            references = tx.session.scalar(
                select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
            )
            if references:
                raise ConflictError(EM.PRODUCT_REFERENCED.format(product=product.name))
            tx.session.delete(product)
        logger.info("Deleted product %s", product_id)

    def low_stock_products(self, critical_ratio: float = 0.2) -> List[Dict[str, Any]]:
        """Products at or under their threshold, most depleted first."""
        ratio = to_decimal(critical_ratio)

        def _reader(session):
            stmt = (
                select(Product)
                .where(Product.stock <= Product.low_stock_threshold)
                .order_by(Product.stock.asc(), Product.name.asc())
            )
            return session.execute(stmt).scalars().all()

        results = []
        for product in self.store.read("list low-stock products", _reader):
            entry = product.to_dict()
            entry["stockStatus"] = "CRITICAL" if product.stock <= product.low_stock_threshold * ratio else "WARNING"
            results.append(entry)
        return results

    # ------------------------------------------------------------------
    # Supplier administration
    # ------------------------------------------------------------------
    def list_suppliers(self) -> List[Supplier]:
        return self.store.read(
            "list suppliers",
            lambda session: session.execute(select(Supplier).order_by(Supplier.name.asc())).scalars().all(),
        )

    def find_supplier(self, supplier_id: str) -> Supplier:
        supplier = self.store.read("load supplier", lambda session: session.get(Supplier, supplier_id))
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def create_supplier(self, data: Mapping[str, Any]) -> Supplier:
        values = clean_contact_fields(data, creating=True)
        with self.store.transaction("create supplier") as tx:
            ensure_unique_email(tx, Supplier, values.get("email"), resource="supplier")
            supplier = Supplier(**values)
            tx.session.add(supplier)
            tx.session.flush()
        return supplier

    def update_supplier(self, supplier_id: str, data: Mapping[str, Any]) -> Supplier:
        values = clean_contact_fields(data, creating=False)
        with self.store.transaction("update supplier") as tx:
            supplier = self._require_supplier(tx, supplier_id)
            ensure_unique_email(tx, Supplier, values.get("email"), resource="supplier", exclude_id=supplier_id)
            for key, value in values.items():
                setattr(supplier, key, value)
        return supplier

    def delete_supplier(self, supplier_id: str) -> None:
        """Only suppliers that own no products can be removed."""
        with self.store.transaction("delete supplier") as tx:
            supplier = self._require_supplier(tx, supplier_id)
            owned = tx.session.scalar(select(func.count(Product.id)).where(Product.supplier_id == supplier_id))
            if owned:
                raise ConflictError(EM.SUPPLIER_HAS_PRODUCTS.format(count=owned))
            tx.session.delete(supplier)
        logger.info("Deleted supplier %s", supplier_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_supplier(self, tx: Transaction, supplier_id: str) -> Supplier:
        supplier = tx.session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def _clean_product_fields(self, data: Mapping[str, Any], *, creating: bool) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for key in _PRODUCT_FIELDS:
            if key in data:
                values[key] = data[key]

        if creating:
            for required in ("name", "price"):
                if values.get(required) in (None, ""):
                    raise ValidationError(EM.FIELD_REQUIRED.format(field=required), field=required)

        if "name" in values:
            name = _clean_string(values["name"])
            if not name:
                raise ValidationError(EM.FIELD_REQUIRED.format(field="name"), field="name")
            values["name"] = name
        if "description" in values:
            values["description"] = _clean_string(values["description"])
        if "unit" in values:
            values["unit"] = _clean_string(values["unit"]) or "kg"
        if "supplier_id" in values:
            values["supplier_id"] = _clean_string(values["supplier_id"])

        if "price" in values:
            values["price"] = quantize_money(_non_negative(values["price"], "price"))
        for key in ("stock", "low_stock_threshold"):
            if key in values:
                values[key] = quantize_quantity(_non_negative(values[key], key))
        return values


def clean_contact_fields(data: Mapping[str, Any], *, creating: bool) -> Dict[str, Any]:
    """Shared by suppliers and customers: name, email, phone, address."""
    values = {key: _clean_string(data[key]) for key in _CONTACT_FIELDS if key in data}
    if (creating or "name" in values) and not values.get("name"):
        raise ValidationError(EM.FIELD_REQUIRED.format(field="name"), field="name")
    if values.get("email"):
        values["email"] = values["email"].lower()
    return values


def ensure_unique_email(tx: Transaction, model, email: Optional[str], *, resource: str, exclude_id: Optional[str] = None) -> None:
    if not email:
        return
    stmt = select(model.id).where(model.email == email)
    if exclude_id:
        stmt = stmt.where(model.id != exclude_id)
    if tx.session.execute(stmt).first() is not None:
        raise ConflictError(EM.EMAIL_TAKEN.format(email=email, resource=resource))


def _clean_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _non_negative(value: Any, field: str) -> Decimal:
    try:
        number = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(EM.FIELD_NOT_A_NUMBER.format(field=field), field=field)
    if number < ZERO:
        message = EM.PRODUCT_STOCK_NEGATIVE if field == "stock" else EM.FIELD_NEGATIVE.format(field=field)
        raise ValidationError(message, field=field)
    return number
