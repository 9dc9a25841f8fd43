"""
Management commands for database setup, demo data and maintenance
"""
import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import func, select

from .extensions import db
from .models import Supplier

DEMO_SUPPLIERS = [
    {'name': 'Marée Atlantique', 'email': 'contact@maree-atlantique.fr',
     'phone': '02 98 12 34 56', 'address': '12 Quai du Port, 29900 Concarneau'},
    {'name': 'Pêche Bretonne', 'email': 'info@peche-bretonne.fr',
     'phone': '02 98 98 76 54', 'address': '5 Rue des Pêcheurs, 29000 Quimper'},
]

# (name, description, price, stock, unit, low_stock_threshold, supplier index)
DEMO_PRODUCTS = [
    ('Saumon frais', 'Saumon de Norvège frais, qualité supérieure', '24.90', '15.5', 'kg', '5', 0),
    ('Bar entier', 'Bar de ligne, pêché en Atlantique', '18.50', '8.2', 'kg', '3', 0),
    ('Crevettes roses', 'Crevettes roses cuites', '32.00', '4.5', 'kg', '2', 1),
    ('Sole', 'Sole fraîche du jour', '28.00', '6.0', 'kg', '3', 0),
    ('Moules', 'Moules de bouchot de Bretagne', '4.50', '25.0', 'kg', '10', 1),
    ('Huîtres', 'Huîtres creuses n°3', '8.90', '12.0', 'douzaine', '5', 1),
    ('Thon rouge', 'Thon rouge de Méditerranée', '35.00', '3.5', 'kg', '2', 0),
    ('Cabillaud', 'Filet de cabillaud frais', '16.90', '10.0', 'kg', '4', 0),
]

DEMO_CUSTOMERS = [
    {'name': 'Jean Dupont', 'email': 'jean.dupont@example.com',
     'phone': '06 12 34 56 78', 'address': '15 Rue de la République, 29000 Quimper'},
    {'name': 'Marie Martin', 'email': 'marie.martin@example.com',
     'phone': '06 98 76 54 32', 'address': '8 Avenue de la Gare, 29200 Brest'},
    {'name': 'Restaurant Le Goéland', 'email': 'contact@legoeland.fr',
     'phone': '02 98 45 67 89', 'address': '3 Place du Port, 29900 Concarneau'},
    {'name': 'Sophie Bernard', 'email': 'sophie.bernard@example.com',
     'phone': '06 23 45 67 89', 'address': '22 Rue Victor Hugo, 29000 Quimper'},
]


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables (local development; use `flask db upgrade` elsewhere)"""
    db.create_all()
    print('✅ Database tables created/verified')


@click.command('seed-demo')
@with_appcontext
def seed_demo_command():
    """Seed suppliers, products, customers and two orders for local testing"""
    existing = db.session.scalar(select(func.count(Supplier.id)))
    if existing:
        print(f'ℹ️  {existing} supplier(s) already present; demo seed skipped.')
        return

    engine = current_app.extensions['order_engine']
    suppliers = [engine.catalog.create_supplier(data) for data in DEMO_SUPPLIERS]
    supplier_ids = [supplier.id for supplier in suppliers]
    print(f'✅ Created {len(supplier_ids)} suppliers')

    product_ids = []
    for name, description, price, stock, unit, threshold, supplier_index in DEMO_PRODUCTS:
        product = engine.catalog.create_product({
            'name': name,
            'description': description,
            'price': price,
            'stock': stock,
            'unit': unit,
            'low_stock_threshold': threshold,
            'supplier_id': supplier_ids[supplier_index],
        })
        product_ids.append(product.id)
    print(f'✅ Created {len(product_ids)} products')

    customer_ids = [engine.parties.create_customer(data).id for data in DEMO_CUSTOMERS]
    print(f'✅ Created {len(customer_ids)} customers')

    first = engine.create_order(
        customer_ids[0],
        [{'productId': product_ids[0], 'quantity': 2}, {'productId': product_ids[4], 'quantity': 1.5}],
        notes='Commande pour le weekend',
    )
    engine.transition_status(first.id, 'DELIVERED')
    engine.create_order(customer_ids[1], [{'productId': product_ids[5], 'quantity': 2}])
    print('✅ Created 2 demo orders')


@click.command('normalize-order-statuses')
@click.option('--dry-run', is_flag=True, help='Report legacy rows without rewriting them')
@with_appcontext
def normalize_order_statuses_command(dry_run):
    """Rewrite legacy status aliases (EN_COURS, LIVREE, ANNULEE) to canonical values"""
    engine = current_app.extensions['order_engine']
    with engine.store.transaction('normalize order statuses') as tx:
        changed = engine.orders.normalize_legacy_statuses(tx)
        if dry_run:
            tx.session.rollback()
    if dry_run:
        print(f'ℹ️  {changed} order(s) carry a legacy status (dry run, nothing written)')
    else:
        print(f'✅ Normalized {changed} order status value(s)')


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_demo_command)
    app.cli.add_command(normalize_order_statuses_command)
