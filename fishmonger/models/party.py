import uuid

from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class Customer(db.Model):
    """Retail customer. Order history is retained, so customers with orders are never deleted."""
    __tablename__ = 'customer'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now,
                           onupdate=TimezoneUtils.utc_now, nullable=False)

    orders = db.relationship('Order', back_populates='customer', lazy='dynamic')

    def snapshot(self):
        """Compact form embedded in order payloads."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
        }

    def to_dict(self, include_counts=False):
        data = self.snapshot()
        data['address'] = self.address
        data['createdAt'] = TimezoneUtils.to_iso(self.created_at)
        if include_counts:
            data['orderCount'] = self.orders.count()
        return data

    def __repr__(self):
        return f'<Customer {self.name}>'
