"""Models package - imports all models for the application"""
from ..extensions import db

# Import in dependency order for table creation
from .catalog import Supplier, Product
from .party import Customer
from .order import Order, OrderItem
from .order_status import OrderStatus, normalize_status
from .sms_log import SmsLog

__all__ = [
    'db',
    'Supplier',
    'Product',
    'Customer',
    'Order',
    'OrderItem',
    'OrderStatus',
    'normalize_status',
    'SmsLog',
]
