"""recitals_merchandise_inbox

Revision ID: c3d4e5f6a7b8
Revises: b2c3d4e5f6a7
Create Date: 2026-09-15 09:00:00.000000

발표회 좌석/티켓, 상품 판매, 메시지함 테이블 생성.
Create recital venue/seat/ticket, merchandise and inbox tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'c3d4e5f6a7b8'
down_revision: Union[str, None] = 'b2c3d4e5f6a7'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', UUID(as_uuid=True), primary_key=True)


def _fk(name: str, target: str, ondelete: str = 'CASCADE', nullable: bool = False) -> sa.Column:
    return sa.Column(name, UUID(as_uuid=True), sa.ForeignKey(f'{target}.id', ondelete=ondelete), nullable=nullable)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def upgrade() -> None:
    # === 발표회 (Recitals) ===
    op.create_table(
        'venues',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        _created_at(),
    )

    op.create_table(
        'venue_seats',
        _id(),
        _fk('venue_id', 'venues'),
        sa.Column('section', sa.String(50), nullable=False),
        sa.Column('row_name', sa.String(10), nullable=False),
        sa.Column('seat_number', sa.Integer(), nullable=False),
        sa.Column('seat_type', sa.String(20), server_default='regular', nullable=False),
        sa.Column('handicap_access', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('price_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_sellable', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.UniqueConstraint('venue_id', 'section', 'row_name', 'seat_number', name='uq_venue_seat_position'),
    )
    op.create_index('ix_venue_seats_venue_id', 'venue_seats', ['venue_id'])

    op.create_table(
        'recital_shows',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('venue_id', 'venues', 'SET NULL', nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('show_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('ticket_sale_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ticket_sale_end', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )

    # show_seats — 공연별 좌석 상태 (available, reserved, sold, blocked)
    op.create_table(
        'show_seats',
        _id(),
        _fk('show_id', 'recital_shows'),
        _fk('venue_seat_id', 'venue_seats'),
        sa.Column('section', sa.String(50), nullable=False),
        sa.Column('row_name', sa.String(10), nullable=False),
        sa.Column('seat_number', sa.Integer(), nullable=False),
        sa.Column('seat_type', sa.String(20), server_default='regular', nullable=False),
        sa.Column('handicap_access', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('price_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='available', nullable=False),
        sa.Column('reserved_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reserved_by', sa.String(128), nullable=True),
        sa.Column('reservation_id', UUID(as_uuid=True), nullable=True),
        sa.UniqueConstraint('show_id', 'venue_seat_id', name='uq_show_seat_venue_seat'),
    )
    op.create_index('ix_show_seats_show_id', 'show_seats', ['show_id'])

    op.create_table(
        'seat_reservations',
        _id(),
        _fk('show_id', 'recital_shows'),
        sa.Column('session_id', sa.String(128), nullable=False),
        _fk('user_id', 'users', 'SET NULL', nullable=True),
        sa.Column('reservation_token', sa.String(64), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('extension_count', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
    )
    op.create_index('ix_seat_reservations_session_id', 'seat_reservations', ['session_id'])

    op.create_table(
        'reservation_seats',
        _id(),
        _fk('reservation_id', 'seat_reservations'),
        _fk('show_seat_id', 'show_seats'),
    )
    op.create_index('ix_reservation_seats_reservation_id', 'reservation_seats', ['reservation_id'])

    op.create_table(
        'ticket_orders',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('order_number', sa.String(40), nullable=False, unique=True),
        _fk('show_id', 'recital_shows'),
        _fk('reservation_id', 'seat_reservations', 'SET NULL', nullable=True),
        _fk('user_id', 'users', 'SET NULL', nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('channel', sa.String(20), server_default='online', nullable=False),
        sa.Column('subtotal_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('discount_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_amount_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('payment_intent_id', sa.String(255), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refunded_amount_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_ticket_orders_show_id', 'ticket_orders', ['show_id'])

    op.create_table(
        'tickets',
        _id(),
        _fk('order_id', 'ticket_orders'),
        _fk('show_seat_id', 'show_seats'),
        sa.Column('ticket_code', sa.String(32), nullable=False, unique=True),
        sa.Column('status', sa.String(20), server_default='valid', nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index('ix_tickets_order_id', 'tickets', ['order_id'])

    # === 상품 (Merchandise) ===
    op.create_table(
        'products',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('base_price_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('image_url', sa.String(1024), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created_at(),
    )

    op.create_table(
        'product_variants',
        _id(),
        _fk('product_id', 'products'),
        sa.Column('sku', sa.String(64), nullable=False, unique=True),
        sa.Column('size', sa.String(20), nullable=True),
        sa.Column('color', sa.String(30), nullable=True),
        sa.Column('price_in_cents', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
    )
    op.create_index('ix_product_variants_product_id', 'product_variants', ['product_id'])

    op.create_table(
        'inventory',
        _id(),
        sa.Column(
            'variant_id', UUID(as_uuid=True),
            sa.ForeignKey('product_variants.id', ondelete='CASCADE'), nullable=False, unique=True,
        ),
        sa.Column('quantity_on_hand', sa.Integer(), server_default='0', nullable=False),
        sa.Column('quantity_reserved', sa.Integer(), server_default='0', nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), server_default='5', nullable=False),
        _updated_at(),
    )

    op.create_table(
        'merchandise_orders',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('order_number', sa.String(40), nullable=False, unique=True),
        _fk('user_id', 'users', 'SET NULL', nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('fulfillment_method', sa.String(20), server_default='pickup', nullable=False),
        sa.Column('shipping_address', sa.Text(), nullable=True),
        sa.Column('subtotal_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('payment_status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('payment_intent_id', sa.String(255), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'merchandise_order_items',
        _id(),
        _fk('order_id', 'merchandise_orders'),
        _fk('variant_id', 'product_variants', 'RESTRICT'),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_in_cents', sa.Integer(), nullable=False),
        sa.Column('line_total_in_cents', sa.Integer(), nullable=False),
    )
    op.create_index('ix_merchandise_order_items_order_id', 'merchandise_order_items', ['order_id'])

    # === 메시지함 (Inbox) ===
    op.create_table(
        'message_threads',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('subject', sa.String(500), nullable=False),
        _fk('created_by', 'users', 'SET NULL', nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        _created_at(),
    )

    op.create_table(
        'messages',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('thread_id', 'message_threads'),
        sa.Column('direction', sa.String(10), server_default='inbound', nullable=False),
        sa.Column('message_type', sa.String(20), server_default='general', nullable=False),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        _fk('sender_id', 'users', 'SET NULL', nullable=True),
        sa.Column('sender_name', sa.String(255), nullable=True),
        sa.Column('sender_email', sa.String(255), nullable=True),
        sa.Column('recipients', JSONB(), nullable=True),
        sa.Column('status', sa.String(20), server_default='new', nullable=False),
        sa.Column('priority', sa.String(10), server_default='normal', nullable=False),
        sa.Column('is_starred', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('tags', JSONB(), nullable=True),
        _fk('assigned_to', 'users', 'SET NULL', nullable=True),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        _fk('read_by', 'users', 'SET NULL', nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_messages_organization_id', 'messages', ['organization_id'])
    op.create_index('ix_messages_thread_id', 'messages', ['thread_id'])

    op.create_table(
        'message_attachments',
        _id(),
        _fk('message_id', 'messages'),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_url', sa.String(1024), nullable=False),
        sa.Column('content_type', sa.String(100), nullable=True),
        sa.Column('size_bytes', sa.Integer(), nullable=True),
        _fk('uploaded_by', 'users', 'SET NULL', nullable=True),
        _created_at(),
    )
    op.create_index('ix_message_attachments_message_id', 'message_attachments', ['message_id'])


def downgrade() -> None:
    for table in (
        'message_attachments', 'messages', 'message_threads',
        'merchandise_order_items', 'merchandise_orders', 'inventory', 'product_variants', 'products',
        'tickets', 'ticket_orders', 'reservation_seats', 'seat_reservations',
        'show_seats', 'recital_shows', 'venue_seats', 'venues',
    ):
        op.drop_table(table)
