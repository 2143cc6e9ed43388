"""add profiles and reminder_instances tables

Revision ID: 001_add_reminder_instances
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_add_reminder_instances'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('last_period_end', sa.Date(), nullable=True),
        sa.Column('avg_cycle_days', sa.Integer(), nullable=True, server_default='28'),
        sa.Column('reminder_offset_days', sa.Integer(), nullable=True, server_default='7'),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('timezone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'reminder_instances',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('fired', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('snoozed_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('claimed_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_reminder_instances_user_id', 'reminder_instances', ['user_id'])
    op.create_index('ix_reminder_instances_scheduled_at', 'reminder_instances', ['scheduled_at'])
    op.create_index('ix_reminder_instances_fired_scheduled', 'reminder_instances', ['fired', 'scheduled_at'])
    op.create_index(
        'uq_reminder_instances_user_pending',
        'reminder_instances',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text('fired = false'),
        sqlite_where=sa.text('fired = 0'),
    )


def downgrade() -> None:
    op.drop_index('uq_reminder_instances_user_pending', table_name='reminder_instances')
    op.drop_index('ix_reminder_instances_fired_scheduled', table_name='reminder_instances')
    op.drop_index('ix_reminder_instances_scheduled_at', table_name='reminder_instances')
    op.drop_index('ix_reminder_instances_user_id', table_name='reminder_instances')
    op.drop_table('reminder_instances')
    op.drop_table('profiles')
