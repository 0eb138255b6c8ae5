"""create staff, services and appointments tables

Revision ID: 4b2f9c1d7e30
Revises:
Create Date: 2026-10-19 10:12:44.517203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b2f9c1d7e30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

appointment_status = sa.Enum(
    'pending', 'confirmed', 'completed', 'cancelled',
    name='appointmentstatus'
)


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Staff members
    op.create_table(
        'staff_members',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(100), nullable=True),
        sa.Column('specialty', sa.String(200), nullable=True),
        sa.Column('unavailable_days', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )

    # 2. Service catalog
    op.create_table(
        'services',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_customizable', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('duration_per_unit', sa.Integer(), nullable=True),
        sa.Column('price_per_unit', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_services_category', 'services', ['category'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 3. Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('access_token', sa.String(64), nullable=False),
        sa.Column('staff_id', sa.String(50), sa.ForeignKey('staff_members.id'), nullable=False),
        sa.Column('client_name', sa.String(100), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=False),
        sa.Column('client_phone', sa.String(20), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('service_ids', sa.JSON(), nullable=False),
        sa.Column('service_names', sa.JSON(), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('customizations', sa.JSON(), nullable=True),
        sa.Column('status', appointment_status, nullable=False),
        sa.Column('payment_reference', sa.String(255), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmation_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True)
    )
    op.create_index('ix_appointments_staff_date', 'appointments', ['staff_id', 'appointment_date'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_appointments_staff_date', table_name='appointments')
    op.drop_table('appointments')
    appointment_status.drop(op.get_bind(), checkfirst=True)

    op.drop_index('ix_services_is_active', table_name='services')
    op.drop_index('ix_services_category', table_name='services')
    op.drop_table('services')

    op.drop_table('staff_members')
