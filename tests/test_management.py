from sqlalchemy import func, select

from fishmonger.extensions import db
from fishmonger.models import Customer, Order, Product, Supplier


def _count(model):
    return db.session.scalar(select(func.count(model.id)))


def test_seed_demo_creates_catalog_and_orders(app, runner):
    result = runner.invoke(args=['seed-demo'])
    assert result.exit_code == 0, result.output

    with app.app_context():
        assert _count(Supplier) == 2
        assert _count(Product) == 8
        assert _count(Customer) == 4
        assert _count(Order) == 2
        salmon = db.session.execute(select(Product).where(Product.name == 'Saumon frais')).scalar_one()
        assert float(salmon.stock) == 13.5


def test_seed_demo_is_skipped_when_data_exists(app, runner):
    runner.invoke(args=['seed-demo'])
    result = runner.invoke(args=['seed-demo'])
    assert 'skipped' in result.output
    with app.app_context():
        assert _count(Supplier) == 2


def test_normalize_order_statuses(app, runner):
    runner.invoke(args=['seed-demo'])
    with app.app_context():
        for order in db.session.execute(select(Order)).scalars():
            order.status = 'LIVREE' if order.status == 'DELIVERED' else 'EN_COURS'
        db.session.commit()

    dry = runner.invoke(args=['normalize-order-statuses', '--dry-run'])
    assert '2 order(s)' in dry.output

    result = runner.invoke(args=['normalize-order-statuses'])
    assert result.exit_code == 0, result.output
    assert 'Normalized 2' in result.output
    with app.app_context():
        statuses = sorted(db.session.scalars(select(Order.status)))
        assert statuses == ['DELIVERED', 'PENDING']


def test_init_db_is_idempotent(runner):
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'created/verified' in result.output
