import uuid

from ..extensions import db
from ..utils.quantities import as_json_number, line_total
from ..utils.timezone_utils import TimezoneUtils
from .order_status import OrderStatus, normalize_status


class Order(db.Model):
    """Customer order. `total` is a snapshot taken at creation and never recomputed."""
    __tablename__ = 'order'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    order_date = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now,
                           nullable=False, index=True)
    customer_id = db.Column(db.String(32), db.ForeignKey('customer.id', ondelete='RESTRICT'),
                            nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=OrderStatus.PENDING.value, index=True)
    total = db.Column(db.Numeric(12, 2), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    # Set once when this order's quantities were handed back to the catalog
    stock_restored_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now,
                           onupdate=TimezoneUtils.utc_now, nullable=False)

    customer = db.relationship('Customer', back_populates='orders')
    items = db.relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.position',
    )

    __table_args__ = (
        db.CheckConstraint('total >= 0', name='ck_order_total_non_negative'),
    )

    @property
    def status_enum(self):
        """Canonical status, tolerant of legacy alias rows that predate normalization."""
        return normalize_status(self.status)

    @property
    def is_cancelled(self):
        status = self.status_enum
        return status is not None and status.is_cancellation

    @property
    def stock_restored(self):
        return self.stock_restored_at is not None

    def to_dict(self):
        status = self.status_enum
        return {
            'id': self.id,
            'orderDate': TimezoneUtils.to_iso(self.order_date),
            'status': status.value if status else self.status,
            'total': as_json_number(self.total),
            'notes': self.notes,
            'customer': self.customer.snapshot() if self.customer else None,
            'items': [item.to_dict() for item in self.items],
        }

    def __repr__(self):
        return f'<Order {self.id} {self.status} total={self.total}>'


class OrderItem(db.Model):
    """Immutable order line; keeps its own price so later catalog changes don't rewrite history."""
    __tablename__ = 'order_item'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    order_id = db.Column(db.String(32), db.ForeignKey('order.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    product_id = db.Column(db.String(32), db.ForeignKey('product.id', ondelete='RESTRICT'),
                           nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)

    order = db.relationship('Order', back_populates='items')
    product = db.relationship('Product')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_order_item_quantity_positive'),
        db.CheckConstraint('price > 0', name='ck_order_item_price_positive'),
    )

    @property
    def subtotal(self):
        return line_total(self.quantity, self.price)

    def to_dict(self):
        product = self.product
        return {
            'id': self.id,
            'productId': self.product_id,
            'productName': product.name if product else None,
            'productUnit': product.unit if product else None,
            'quantity': as_json_number(self.quantity),
            'price': as_json_number(self.price),
            'subtotal': as_json_number(self.subtotal),
        }

    def __repr__(self):
        return f'<OrderItem {self.product_id} x{self.quantity} @ {self.price}>'
