"""Initial checkout schema

Revision ID: 0001
Revises:
Create Date: 2025-08-02 12:30:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create tours table
    op.create_table('tours',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('conf_code', sa.String(length=32), nullable=True),
        sa.Column('auto_confirm', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('full', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('cancelled', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('deleted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('riders_require_height', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_tour_price_non_negative'),
        sa.CheckConstraint('capacity IS NULL OR capacity >= 0', name='ck_tour_capacity_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tours_code'), 'tours', ['code'], unique=False)
    op.create_index(op.f('ix_tours_starts_at'), 'tours', ['starts_at'], unique=False)

    # Create tour_teams table
    op.create_table('tour_teams',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tour_id', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('guide', sa.String(length=128), nullable=False),
        sa.Column('sweep', sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tour_teams_tour_id'), 'tour_teams', ['tour_id'], unique=False)

    # Create orders table
    op.create_table('orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('mobile', sa.String(length=64), nullable=False),
        sa.Column('hotel', sa.String(length=255), nullable=False),
        sa.Column('misc', sa.Text(), nullable=False),
        sa.Column('total_minor_units', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('payment_recorded', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('confirmation_sent', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('placed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('total_minor_units >= 0', name='ck_order_total_non_negative'),
        sa.CheckConstraint('length(currency) = 3', name='ck_order_currency_length'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_orders_payment_recorded'), 'orders', ['payment_recorded'], unique=False)

    # Create order_items table
    op.create_table('order_items',
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('item_num', sa.Integer(), nullable=False),
        sa.Column('tour_id', sa.Integer(), nullable=False),
        sa.Column('riders', sa.Integer(), nullable=False),
        sa.CheckConstraint('riders > 0', name='ck_order_item_riders_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id']),
        sa.PrimaryKeyConstraint('order_id', 'item_num')
    )
    op.create_index(op.f('ix_order_items_tour_id'), 'order_items', ['tour_id'], unique=False)

    # Create order_riders table
    op.create_table('order_riders',
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('gender', sa.String(length=1), nullable=False),
        sa.Column('height', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('order_id', 'position')
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('order_riders')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('tour_teams')
    op.drop_table('tours')
