"""Initial schema 0001 - suppliers, products, customers, orders and SMS log

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-01-05

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # 1) Suppliers (root for Product FK)
    op.create_table(
        'supplier',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_supplier_email'),
    )

    # 2) Products
    op.create_table(
        'product',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='kg'),
        sa.Column('low_stock_threshold', sa.Numeric(12, 3), nullable=False, server_default='5'),
        sa.Column('supplier_id', sa.String(length=32),
                  sa.ForeignKey('supplier.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
        sa.CheckConstraint('low_stock_threshold >= 0', name='ck_product_threshold_non_negative'),
    )
    op.create_index('ix_product_supplier_id', 'product', ['supplier_id'])

    # 3) Customers
    op.create_table(
        'customer',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_customer_email'),
    )

    # 4) Orders (customer FK restricts deletion)
    op.create_table(
        'order',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('customer_id', sa.String(length=32),
                  sa.ForeignKey('customer.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('stock_restored_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('total >= 0', name='ck_order_total_non_negative'),
    )
    op.create_index('ix_order_order_date', 'order', ['order_date'])
    op.create_index('ix_order_customer_id', 'order', ['customer_id'])
    op.create_index('ix_order_status', 'order', ['status'])

    # 5) Order lines
    op.create_table(
        'order_item',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('order_id', sa.String(length=32),
                  sa.ForeignKey('order.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(length=32),
                  sa.ForeignKey('product.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_item_quantity_positive'),
        sa.CheckConstraint('price > 0', name='ck_order_item_price_positive'),
    )
    op.create_index('ix_order_item_order_id', 'order_item', ['order_id'])
    op.create_index('ix_order_item_product_id', 'order_item', ['product_id'])

    # 6) SMS log (no FK: rows outlive deleted orders)
    op.create_table(
        'sms_log',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('telephone', sa.String(length=32), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('order_id', sa.String(length=32), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('error_message', sa.Text(), nullable=True),
    )
    op.create_index('ix_sms_log_order_id', 'sms_log', ['order_id'])
    op.create_index('ix_sms_log_sent_at', 'sms_log', ['sent_at'])


def downgrade():
    op.drop_index('ix_sms_log_sent_at', table_name='sms_log')
    op.drop_index('ix_sms_log_order_id', table_name='sms_log')
    op.drop_table('sms_log')
    op.drop_index('ix_order_item_product_id', table_name='order_item')
    op.drop_index('ix_order_item_order_id', table_name='order_item')
    op.drop_table('order_item')
    op.drop_index('ix_order_status', table_name='order')
    op.drop_index('ix_order_customer_id', table_name='order')
    op.drop_index('ix_order_order_date', table_name='order')
    op.drop_table('order')
    op.drop_table('customer')
    op.drop_index('ix_product_supplier_id', table_name='product')
    op.drop_table('product')
    op.drop_table('supplier')
