"""create_fulfillment_tables

Revision ID: 3b1f6c2d9a10
Revises:
Create Date: 2026-10-19 09:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f6c2d9a10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORDER_STATUS = sa.Enum(
    'NEW', 'PAID', 'PROCESSING', 'FINISHED_PROCESS', 'ON_DELIVERY', 'COMPLETED', 'CANCELLED',
    name='order_status', native_enum=False, length=30,
)
MPO_STATUS = sa.Enum('NEW', 'RECEIVED', 'CANCELLED', name='mpo_status', native_enum=False, length=20)


def upgrade() -> None:
    """Upgrade schema - Create stock, catalog BOM, order and procurement tables."""
    op.create_table(
        'materials',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=False),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='ck_materials_quantity_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table(
        'components',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('color_primary_use', sa.Float(), nullable=False),
        sa.Column('color_pattern_use', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'component_materials',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('component_id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['component_id'], ['components.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['material_id'], ['materials.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_component_materials_component', 'component_materials', ['component_id'])
    op.create_index('idx_component_materials_material', 'component_materials', ['material_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'product_components',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('component_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('primary_color', sa.Integer(), nullable=True),
        sa.Column('pattern_color', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['component_id'], ['components.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['primary_color'], ['materials.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['pattern_color'], ['materials.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_product_components_product', 'product_components', ['product_id'])
    op.create_index('idx_product_components_component', 'product_components', ['component_id'])

    op.create_table(
        'cart_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.String(length=100), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id', 'product_id')
    )
    op.create_index(op.f('ix_cart_items_customer_id'), 'cart_items', ['customer_id'])

    op.create_table(
        'customer_purchase_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.String(length=100), nullable=False),
        sa.Column('status', ORDER_STATUS, nullable=False),
        sa.Column('delivery_price', sa.Float(), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('phone_number', sa.String(length=30), nullable=True),
        sa.Column('payment_method', sa.String(length=30), nullable=True),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('est_delivery_date', sa.String(length=50), nullable=False),
        sa.Column('paid_date_time', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_cpo_customer', 'customer_purchase_orders', ['customer_id'])
    op.create_index('idx_cpo_status', 'customer_purchase_orders', ['status'])

    op.create_table(
        'order_lines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['customer_purchase_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_order_lines_order', 'order_lines', ['order_id'])

    op.create_table(
        'history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('cpo_id', sa.Integer(), nullable=False),
        sa.Column('status', ORDER_STATUS, nullable=False),
        sa.Column('date_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['cpo_id'], ['customer_purchase_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_history_cpo_status', 'history', ['cpo_id', 'status'])

    op.create_table(
        'material_requisitions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('create_date_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['material_id'], ['materials.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('material_id')
    )

    op.create_table(
        'material_purchase_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=False),
        sa.Column('status', MPO_STATUS, nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('create_date_time', sa.DateTime(), nullable=False),
        sa.Column('receive_date_time', sa.DateTime(), nullable=True),
        sa.Column('cancel_date_time', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_mpo_status', 'material_purchase_orders', ['status'])

    op.create_table(
        'mpo_order_lines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('mpo_id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['mpo_id'], ['material_purchase_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['material_id'], ['materials.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_mpo_lines_mpo', 'mpo_order_lines', ['mpo_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('cpo_id', sa.Integer(), nullable=True),
        sa.Column('mpo_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('payment_method', sa.String(length=30), nullable=True),
        sa.Column('create_date_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['cpo_id'], ['customer_purchase_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['mpo_id'], ['material_purchase_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mpo_id')
    )
    op.create_index('idx_transactions_cpo', 'transactions', ['cpo_id'])


def downgrade() -> None:
    """Downgrade schema - Drop every table in reverse dependency order."""
    op.drop_table('transactions')
    op.drop_table('mpo_order_lines')
    op.drop_table('material_purchase_orders')
    op.drop_table('material_requisitions')
    op.drop_table('history')
    op.drop_table('order_lines')
    op.drop_table('customer_purchase_orders')
    op.drop_table('cart_items')
    op.drop_table('product_components')
    op.drop_table('products')
    op.drop_table('component_materials')
    op.drop_table('components')
    op.drop_table('materials')
