"""Service layer: record stores, the order engine and notifications."""

import logging

from ..extensions import db
from .catalog_store import CatalogStore
from .errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    OrderServiceError,
    StoreUnavailableError,
    ValidationError,
)
from .notifications import NotificationDispatcher, SmsGatewayNotifier
from .order_engine import OrderEngine
from .order_repository import OrderRepository
from .party_store import PartyStore
from .unit_of_work import SqlStore

logger = logging.getLogger(__name__)


def build_order_engine(app) -> OrderEngine:
    """Wire stores, repository and dispatcher for one application instance."""
    store = SqlStore(lambda: db.session(), read_retries=app.config.get("DB_READ_RETRIES", 1))
    dispatcher = NotificationDispatcher(
        app,
        SmsGatewayNotifier.from_config(app.config),
        asynchronous=app.config.get("NOTIFICATIONS_ASYNC", True),
        max_workers=app.config.get("NOTIFICATION_WORKERS", 2),
    )
    engine = OrderEngine(
        store=store,
        catalog=CatalogStore(store),
        parties=PartyStore(store),
        orders=OrderRepository(),
        dispatcher=dispatcher,
    )
    logger.debug(
        "Order engine ready (async notifications: %s, SMS enabled: %s)",
        dispatcher.asynchronous, dispatcher.notifier.enabled,
    )
    return engine


__all__ = [
    "build_order_engine",
    "CatalogStore",
    "ConflictError",
    "InsufficientStockError",
    "NotFoundError",
    "NotificationDispatcher",
    "OrderEngine",
    "OrderRepository",
    "OrderServiceError",
    "PartyStore",
    "SmsGatewayNotifier",
    "SqlStore",
    "StoreUnavailableError",
    "ValidationError",
]
