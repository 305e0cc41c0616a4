"""add_automation_usage

Revision ID: 8c1d4e6f2a90
Revises: 3f9c2a7d41e8
Create Date: 2026-10-19 16:40:02.915531

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c1d4e6f2a90'
down_revision: Union[str, Sequence[str], None] = '3f9c2a7d41e8'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create automation_usage."""
    op.create_table(
        'automation_usage',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('subject_id', sa.String(255), nullable=False),
        sa.Column('automation_id', sa.String(255), nullable=False),
        sa.Column('metric', sa.String(50), nullable=False),
        sa.Column('period_key', sa.String(32), nullable=False),
        sa.Column('count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_automation_usage'),
        sa.UniqueConstraint('subject_id', 'automation_id', 'metric', 'period_key', name='uq_automation_usage_subject_id_automation_id_metric_period_key'),
        sa.CheckConstraint('count >= 0', name='ck_automation_usage_count_non_negative')
    )
    op.create_index('ix_automation_usage_id', 'automation_usage', ['id'], unique=False)
    op.create_index('ix_automation_usage_subject_id', 'automation_usage', ['subject_id'], unique=False)
    op.create_index('idx_automation_usage_subject_period', 'automation_usage', ['subject_id', 'period_key'], unique=False)


def downgrade() -> None:
    """Drop automation_usage."""
    op.drop_index('idx_automation_usage_subject_period', table_name='automation_usage')
    op.drop_index('ix_automation_usage_subject_id', table_name='automation_usage')
    op.drop_index('ix_automation_usage_id', table_name='automation_usage')
    op.drop_table('automation_usage')
