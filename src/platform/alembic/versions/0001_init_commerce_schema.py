"""init_commerce_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- user: Fans, artists and admins (profile incl. mail address for shipping)
- event: Ticketed events owned by an artist
- product: Merchandise with stock and optional per-buyer limit
- ticket_type: Ticket tiers of an event; capacity is the remaining seat count
- order: Orders with UUID primary key, money snapshot and lifecycle timestamps
- order_item: Line items with a price/name snapshot
- issued_ticket: One row per seat, carrying its own redemption token

Note: stock and capacity are guarded by CHECK (>= 0); the conditional
decrement in the inventory ledger never drives them negative.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables with final schema."""

    # ========== STEP 1: Accounts and catalog ==========

    # User table
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('real_name', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('postal_code', sa.String(length=16), nullable=True),
        sa.Column('prefecture', sa.String(length=64), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('address_line1', sa.String(length=255), nullable=True),
        sa.Column('address_line2', sa.String(length=255), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    # Event table
    op.create_table(
        'event',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('artist_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('venue_name', sa.String(length=255), nullable=True),
        sa.Column('event_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(['artist_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_event_artist_id'), 'event', ['artist_id'], unique=False)

    # Product table (merchandise)
    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('artist_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('limit_per_user', sa.Integer(), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        sa.ForeignKeyConstraint(['artist_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_product_artist_id'), 'product', ['artist_id'], unique=False)

    # Ticket type table
    op.create_table(
        'ticket_type',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('seating_mode', sa.String(length=20), nullable=False),
        sa.Column('issued_count', sa.Integer(), nullable=False),
        sa.CheckConstraint('capacity >= 0', name='ck_ticket_type_capacity_non_negative'),
        sa.ForeignKeyConstraint(['event_id'], ['event.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ticket_type_event_id'), 'ticket_type', ['event_id'], unique=False)

    # ========== STEP 2: Orders ==========

    # Order table (UUID7 primary key)
    op.create_table(
        'order',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('buyer_id', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Integer(), nullable=False),
        sa.Column('platform_fee', sa.Integer(), nullable=False),
        sa.Column('payout_amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('fulfillment_method', sa.String(length=20), nullable=False),
        sa.Column('shipping_address', sa.JSON(), nullable=True),
        sa.Column('payment_reference', sa.String(length=255), nullable=True),
        sa.Column('redemption_token', sa.String(length=64), nullable=True),
        sa.Column('tracking_number', sa.String(length=64), nullable=True),
        sa.Column('redeemed_by', sa.Integer(), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('redeemed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['buyer_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('redemption_token'),
    )
    op.create_index(op.f('ix_order_buyer_id'), 'order', ['buyer_id'], unique=False)
    op.create_index(
        op.f('ix_order_payment_reference'), 'order', ['payment_reference'], unique=False
    )
    # Reservation sweeper scans pending orders by age
    op.create_index('ix_order_status_created_at', 'order', ['status', 'created_at'], unique=False)

    # Order item table
    op.create_table(
        'order_item',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('ticket_type_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['order.id']),
        sa.ForeignKeyConstraint(['product_id'], ['product.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['ticket_type_id'], ['ticket_type.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_order_item_order_id'), 'order_item', ['order_id'], unique=False)
    op.create_index(op.f('ix_order_item_product_id'), 'order_item', ['product_id'], unique=False)
    op.create_index(
        op.f('ix_order_item_ticket_type_id'), 'order_item', ['ticket_type_id'], unique=False
    )

    # ========== STEP 3: Issued tickets ==========
    op.create_table(
        'issued_ticket',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('order_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('ticket_type_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('seat_label', sa.String(length=64), nullable=False),
        sa.Column('redemption_token', sa.String(length=64), nullable=False),
        sa.Column('ordinal', sa.Integer(), nullable=False),
        sa.Column('payment_reference', sa.String(length=255), nullable=True),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_by', sa.Integer(), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(['order_id'], ['order.id']),
        sa.ForeignKeyConstraint(['owner_id'], ['user.id']),
        sa.ForeignKeyConstraint(['ticket_type_id'], ['ticket_type.id']),
        sa.ForeignKeyConstraint(['event_id'], ['event.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('redemption_token'),
        # A replayed payment notification cannot issue the same seat twice
        sa.UniqueConstraint('order_id', 'ordinal', name='uq_issued_ticket_order_ordinal'),
        sa.UniqueConstraint(
            'payment_reference', 'ordinal', name='uq_issued_ticket_payment_reference_ordinal'
        ),
    )
    op.create_index(
        op.f('ix_issued_ticket_order_id'), 'issued_ticket', ['order_id'], unique=False
    )
    op.create_index(
        op.f('ix_issued_ticket_owner_id'), 'issued_ticket', ['owner_id'], unique=False
    )
    op.create_index(
        op.f('ix_issued_ticket_ticket_type_id'), 'issued_ticket', ['ticket_type_id'], unique=False
    )


def downgrade() -> None:
    """Drop all tables in reverse order of creation."""
    op.drop_table('issued_ticket')
    op.drop_table('order_item')
    op.drop_table('order')
    op.drop_table('ticket_type')
    op.drop_table('product')
    op.drop_table('event')
    op.drop_table('user')
