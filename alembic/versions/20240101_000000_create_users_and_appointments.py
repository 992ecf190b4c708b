"""create users and appointments tables

Revision ID: 20240101_000000
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20240101_000000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('organizer_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('participant_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_appointments_end_after_start'),
        sa.CheckConstraint('organizer_id <> participant_id', name='ck_appointments_distinct_users'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name='ck_appointments_status',
        ),
    )

    # Conflict scans filter by user and then by time
    op.create_index('ix_appointments_organizer_id_start_time', 'appointments', ['organizer_id', 'start_time'])
    op.create_index('ix_appointments_participant_id_start_time', 'appointments', ['participant_id', 'start_time'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_appointments_participant_id_start_time', table_name='appointments')
    op.drop_index('ix_appointments_organizer_id_start_time', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('users')
