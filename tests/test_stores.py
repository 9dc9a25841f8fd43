from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from fishmonger.extensions import db
from fishmonger.models import Order, Product
from fishmonger.services.errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from fishmonger.services.unit_of_work import SqlStore
from fishmonger.utils.quantities import format_quantity, line_total, quantize_money


class FakeSession:
    def __init__(self, open_transaction=False, dirty=()):
        self.rollbacks = 0
        self.commits = 0
        self.connections = []
        self.info = {}
        self.new = ()
        self.dirty = list(dirty)
        self.deleted = ()
        self.open_transaction = open_transaction

    def in_transaction(self):
        return self.open_transaction

    def connection(self, execution_options=None):
        self.connections.append(execution_options)
        self.open_transaction = True

    def rollback(self):
        self.rollbacks += 1
        self.open_transaction = False

    def commit(self):
        self.commits += 1
        self.open_transaction = False


def _operational_error():
    return OperationalError('SELECT 1', {}, Exception('database is locked'))


class TestSqlStore:

    def test_read_retries_once_on_transient_error(self):
        session = FakeSession()
        attempts = []

        def reader(_session):
            attempts.append(1)
            if len(attempts) == 1:
                raise _operational_error()
            return 'rows'

        assert SqlStore(lambda: session).read('list orders', reader) == 'rows'
        assert len(attempts) == 2
        assert session.rollbacks == 1

    def test_read_gives_up_after_retry(self):
        def reader(_session):
            raise _operational_error()

        with pytest.raises(StoreUnavailableError) as excinfo:
            SqlStore(FakeSession).read('list orders', reader)
        assert excinfo.value.operation == 'list orders'

    def test_write_failure_is_not_retried(self):
        session = FakeSession()
        calls = []

        with pytest.raises(StoreUnavailableError):
            with SqlStore(lambda: session).transaction('create order'):
                calls.append(1)
                raise _operational_error()

        assert calls == [1]
        assert session.rollbacks == 1
        assert session.commits == 0

    def test_after_commit_hooks_skip_on_rollback(self):
        session = FakeSession()
        fired = []

        with pytest.raises(ConflictError):
            with SqlStore(lambda: session).transaction('delete customer') as tx:
                tx.after_commit(lambda: fired.append('sent'))
                raise ConflictError('still referenced')

        assert fired == []

    def test_after_commit_hooks_run_after_commit(self):
        session = FakeSession()
        seen = []

        with SqlStore(lambda: session).transaction('update order status') as tx:
            tx.after_commit(lambda: seen.append(session.commits))

        assert seen == [1]

    def test_failing_hook_does_not_escape(self):
        def explode():
            raise RuntimeError('gateway down')

        with SqlStore(FakeSession).transaction('update order status') as tx:
            tx.after_commit(explode)

    def test_write_after_read_begins_its_own_transaction(self):
        session = FakeSession(open_transaction=True)

        with SqlStore(lambda: session).transaction('create order'):
            assert session.commits == 1

        assert session.connections == [{'fishmonger_begin': 'immediate'}]
        assert session.commits == 2
        assert session.info == {}

    def test_write_refuses_to_absorb_foreign_changes(self):
        session = FakeSession(open_transaction=True, dirty=['stray product edit'])

        with pytest.raises(RuntimeError):
            with SqlStore(lambda: session).transaction('create order'):
                pass

        assert session.commits == 0
        assert session.rollbacks == 0
        assert session.connections == []


class TestCatalogStore:

    def test_adjust_stock_refuses_to_go_negative(self, engine, records, stock_of):
        with pytest.raises(InsufficientStockError):
            with engine.store.transaction('adjust') as tx:
                engine.catalog.adjust_stock(tx, records['salmon'], Decimal('-10.5'))
        assert stock_of(records['salmon']) == Decimal('10')

    def test_adjust_stock_both_directions(self, engine, records, stock_of):
        with engine.store.transaction('adjust') as tx:
            engine.catalog.adjust_stock(tx, records['salmon'], Decimal('-4'))
            engine.catalog.adjust_stock(tx, records['oysters'], Decimal('3'))
        assert stock_of(records['salmon']) == Decimal('6')
        assert stock_of(records['oysters']) == Decimal('15')

    def test_fractional_decrements_do_not_drift(self, engine, records, stock_of):
        with engine.store.transaction('adjust') as tx:
            engine.catalog.adjust_stock(tx, records['salmon'], Decimal('-9.7'))
        for _ in range(3):
            with engine.store.transaction('adjust') as tx:
                engine.catalog.adjust_stock(tx, records['salmon'], Decimal('-0.1'))
        assert stock_of(records['salmon']) == Decimal('0')

    def test_adjust_missing_product(self, engine, records):
        with pytest.raises(NotFoundError):
            with engine.store.transaction('adjust') as tx:
                engine.catalog.adjust_stock(tx, 'missing', Decimal('1'))

    def test_lock_products_returns_requested_rows(self, engine, records):
        with engine.store.transaction('lock') as tx:
            locked = engine.catalog.lock_products(tx, [records['oysters'], records['salmon'], records['salmon']])
            assert set(locked) == {records['salmon'], records['oysters']}

    def test_create_product_with_unknown_supplier(self, engine, records):
        with pytest.raises(NotFoundError):
            engine.catalog.create_product({'name': 'Sole', 'price': '28', 'supplier_id': 'ghost'})

    def test_create_product_defaults(self, engine, records):
        product = engine.catalog.create_product({'name': ' Cabillaud ', 'price': '16.899'})
        assert product.name == 'Cabillaud'
        assert product.price == Decimal('16.90')
        assert product.unit == 'kg'
        assert product.stock == Decimal('0')

    def test_unpriced_product_cannot_be_ordered(self, engine, records):
        free = engine.catalog.create_product({'name': 'Arêtes', 'price': 0, 'stock': 5})
        with pytest.raises(ValidationError):
            engine.create_order(records['customer'], [{'productId': free.id, 'quantity': 1}])
        assert db.session.query(Order).count() == 0


def test_money_rounds_half_up():
    assert quantize_money('2.345') == Decimal('2.35')
    assert line_total(Decimal('0.333'), Decimal('10.00')) == Decimal('3.33')
    assert format_quantity(Decimal('2.000')) == '2'
    assert format_quantity(Decimal('0.250')) == '0.25'


def test_product_low_stock_flag(app_ctx):
    product = Product(name='Sole', price=Decimal('28'), stock=Decimal('3'), low_stock_threshold=Decimal('3'))
    assert product.is_low_stock
