"""create_registrations

Revision ID: s001_registrations
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 's001_registrations'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    The single registrations table. Check constraints mirror the intake
    validator; the unique constraint on email backs the upsert.
    """
    op.create_table(
        'registrations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('clan_nickname', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('ticket_type', sa.String(length=3), nullable=False),
        sa.Column('shirt', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('pizza', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('drinks', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('guests', sa.SmallInteger(), nullable=False, server_default=sa.text('0')),
        sa.Column('consent', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('bezahlt', sa.SmallInteger(), nullable=False, server_default=sa.text('0')),
        sa.Column('ip_address', postgresql.INET(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.UniqueConstraint('email', name='registrations_email_key'),
        sa.CheckConstraint("ticket_type IN ('U18', 'Ü18')", name='registrations_ticket_type_check'),
        sa.CheckConstraint('guests >= 0 AND guests <= 10', name='registrations_guests_check'),
        sa.CheckConstraint('LENGTH(clan_nickname) >= 2', name='registrations_clan_nickname_check'),
        sa.CheckConstraint('LENGTH(email) >= 5', name='registrations_email_check'),
    )
    op.create_index('idx_registrations_email', 'registrations', ['email'], unique=False)
    op.create_index('idx_registrations_created_at', 'registrations', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_registrations_created_at', table_name='registrations')
    op.drop_index('idx_registrations_email', table_name='registrations')
    op.drop_table('registrations')
