"""Initial schema: catalog, inventory, bookings, users

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

Creates every table the application uses. Slot numbering relies on the
uq_inventory_slot unique constraint; do not drop it.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'hotels',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_hotel_name', 'hotels', ['name'])

    op.create_table(
        'room_types',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('max_occupancy', sa.Integer(), nullable=True),
        sa.Column('total_rooms', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_room_type_hotel', 'room_types', ['hotel_id', 'name'])

    op.create_table(
        'rooms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('room_type_id', sa.String(36), sa.ForeignKey('room_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('room_number', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        *_timestamps(),
        sa.UniqueConstraint('hotel_id', 'room_number', name='uq_room_hotel_number'),
    )
    op.create_index('ix_room_room_type', 'rooms', ['room_type_id'])

    op.create_table(
        'room_blocks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('room_id', sa.String(36), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('type', sa.String(10), nullable=False, server_default='OOO'),
        sa.Column('reason', sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('room_id', 'date', name='uq_room_block_room_date'),
    )

    op.create_table(
        'customers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('referral_name', sa.String(100), nullable=True),
        sa.Column('ref_agency', sa.String(100), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table(
        'roles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'app_users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('auth_id', sa.String(100), nullable=True, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, server_default='staff'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('confirmation_id', sa.String(20), nullable=False, unique=True),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('room_type_id', sa.String(36), sa.ForeignKey('room_types.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_id', sa.String(36), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('check_in', sa.Date(), nullable=False),
        sa.Column('check_out', sa.Date(), nullable=False),
        sa.Column('nights', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('referral_name', sa.String(100), nullable=True),
        sa.Column('ref_agency', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('created_by_id', sa.String(36), sa.ForeignKey('app_users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_by_id', sa.String(36), sa.ForeignKey('app_users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('nights >= 1', name='ck_booking_nights_positive'),
    )
    op.create_index('ix_booking_hotel_dates', 'bookings', ['hotel_id', 'check_in', 'check_out'])
    op.create_index('ix_booking_created_at', 'bookings', ['created_at'])

    op.create_table(
        'booking_rooms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('room_type_id', sa.String(36), sa.ForeignKey('room_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('room_id', sa.String(36), sa.ForeignKey('rooms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('quantity >= 1', name='ck_booking_room_quantity_positive'),
    )
    op.create_index('ix_booking_room_booking', 'booking_rooms', ['booking_id'])

    op.create_table(
        'room_type_inventory_slots',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('hotel_id', sa.String(36), sa.ForeignKey('hotels.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('room_type_id', sa.String(36), sa.ForeignKey('room_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('slot_no', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='RESTRICT'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('hotel_id', 'room_type_id', 'date', 'slot_no', name='uq_inventory_slot'),
    )
    op.create_index('ix_inventory_slot_hotel_date', 'room_type_inventory_slots', ['hotel_id', 'date'])
    op.create_index('ix_inventory_slot_booking', 'room_type_inventory_slots', ['booking_id'])


def downgrade() -> None:
    # Children first
    op.drop_table('room_type_inventory_slots')
    op.drop_table('booking_rooms')
    op.drop_table('bookings')
    op.drop_table('app_users')
    op.drop_table('roles')
    op.drop_table('customers')
    op.drop_table('room_blocks')
    op.drop_table('rooms')
    op.drop_table('room_types')
    op.drop_table('hotels')
