"""create_metering_tables

Revision ID: 3f9c2a7d41e8
Revises:
Create Date: 2026-10-19 10:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d41e8'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create subscriptions and usage_counters."""
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('subject_id', sa.String(255), nullable=False),
        sa.Column('plan', sa.String(50), server_default='FREE', nullable=False),
        sa.Column('customer_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_subscriptions')
    )
    op.create_index('ix_subscriptions_id', 'subscriptions', ['id'], unique=False)
    op.create_index('ix_subscriptions_subject_id', 'subscriptions', ['subject_id'], unique=True)
    op.create_index('ix_subscriptions_customer_id', 'subscriptions', ['customer_id'], unique=True)

    op.create_table(
        'usage_counters',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('subject_id', sa.String(255), nullable=False),
        sa.Column('metric', sa.String(50), nullable=False),
        sa.Column('period_key', sa.String(32), nullable=False),
        sa.Column('count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_usage_counters'),
        sa.UniqueConstraint('subject_id', 'metric', 'period_key', name='uq_usage_counters_subject_id_metric_period_key'),
        sa.CheckConstraint('count >= 0', name='ck_usage_counters_count_non_negative')
    )
    op.create_index('ix_usage_counters_id', 'usage_counters', ['id'], unique=False)
    op.create_index('ix_usage_counters_subject_id', 'usage_counters', ['subject_id'], unique=False)
    op.create_index('idx_usage_counters_subject_metric', 'usage_counters', ['subject_id', 'metric'], unique=False)


def downgrade() -> None:
    """Drop metering tables."""
    op.drop_index('idx_usage_counters_subject_metric', table_name='usage_counters')
    op.drop_index('ix_usage_counters_subject_id', table_name='usage_counters')
    op.drop_index('ix_usage_counters_id', table_name='usage_counters')
    op.drop_table('usage_counters')

    op.drop_index('ix_subscriptions_customer_id', table_name='subscriptions')
    op.drop_index('ix_subscriptions_subject_id', table_name='subscriptions')
    op.drop_index('ix_subscriptions_id', table_name='subscriptions')
    op.drop_table('subscriptions')
