import uuid

from ..extensions import db
from ..utils.quantities import as_json_number
from ..utils.timezone_utils import TimezoneUtils


def _new_id():
    return uuid.uuid4().hex


class Supplier(db.Model):
    """Fish supplier; owns zero or more products (back-reference only)"""
    __tablename__ = 'supplier'

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now,
                           onupdate=TimezoneUtils.utc_now, nullable=False)

    products = db.relationship('Product', back_populates='supplier', lazy='dynamic')

    def to_dict(self, include_counts=False):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'createdAt': TimezoneUtils.to_iso(self.created_at),
        }
        if include_counts:
            data['productCount'] = self.products.count()
        return data

    def __repr__(self):
        return f'<Supplier {self.name}>'


class Product(db.Model):
    """Catalog entry. `stock` is only moved by the order engine or an admin edit."""
    __tablename__ = 'product'

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    stock = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default='kg')
    low_stock_threshold = db.Column(db.Numeric(12, 3), nullable=False, default=5)

    supplier_id = db.Column(db.String(32), db.ForeignKey('supplier.id', ondelete='SET NULL'),
                            nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now,
                           onupdate=TimezoneUtils.utc_now, nullable=False)

    supplier = db.relationship('Supplier', back_populates='products')

    __table_args__ = (
        db.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        db.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
        db.CheckConstraint('low_stock_threshold >= 0', name='ck_product_threshold_non_negative'),
    )

    @property
    def is_low_stock(self):
        return self.stock is not None and self.stock <= self.low_stock_threshold

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': as_json_number(self.price),
            'stock': as_json_number(self.stock),
            'unit': self.unit,
            'lowStockThreshold': as_json_number(self.low_stock_threshold),
            'supplier': {'id': self.supplier.id, 'name': self.supplier.name} if self.supplier else None,
        }

    def __repr__(self):
        return f'<Product {self.name}: {self.stock} {self.unit}>'
