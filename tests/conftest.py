"""
Pytest configuration and shared fixtures for the fishmonger tests.
"""
import os
import tempfile
from decimal import Decimal

import pytest

from fishmonger import create_app
from fishmonger.extensions import db
from fishmonger.models import Customer, Product, Supplier


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    # A file database so threads see each other's commits
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'RATELIMIT_ENABLED': False,
        'NOTIFICATIONS_ASYNC': False,
        'SMS_ENABLED': False,
        'LOG_LEVEL': 'INFO',
    })

    with app.app_context():
        db.create_all()

    yield app

    app.extensions['order_engine'].dispatcher.shutdown()
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def engine(app_ctx):
    """The order engine wired by create_app."""
    return app_ctx.extensions['order_engine']


@pytest.fixture
def records(app_ctx):
    """One supplier, two products and two customers (one without a phone)."""
    supplier = Supplier(name='Marée Atlantique', email='contact@maree.example')
    salmon = Product(name='Saumon frais', price=Decimal('12.50'), stock=Decimal('10'),
                     unit='kg', low_stock_threshold=Decimal('3'), supplier=supplier)
    oysters = Product(name='Huîtres', price=Decimal('8.90'), stock=Decimal('12'),
                      unit='douzaine', low_stock_threshold=Decimal('5'), supplier=supplier)
    jean = Customer(name='Jean Dupont', email='jean@example.com', phone='06 12 34 56 78')
    walk_in = Customer(name='Client comptoir')
    db.session.add_all([supplier, salmon, oysters, jean, walk_in])
    db.session.commit()

    ids = {
        'supplier': supplier.id,
        'salmon': salmon.id,
        'oysters': oysters.id,
        'customer': jean.id,
        'customer_no_phone': walk_in.id,
    }
    db.session.remove()
    return ids


@pytest.fixture
def stock_of(app_ctx):
    """Read a product's stock straight from the database."""
    def _read(product_id):
        db.session.expire_all()
        return db.session.get(Product, product_id).stock
    return _read
