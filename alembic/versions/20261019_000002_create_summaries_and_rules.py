"""Create billing_summaries and commission_rules tables

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19

The unique constraint on (org_id, collector_id, billing_month) is what the
summary generator relies on to reject concurrent duplicate writes.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000002'
down_revision: Union[str, None] = '20261019_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=14, scale=2), nullable=False, server_default='0')


def _count(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def upgrade() -> None:
    """Create the billing_summaries and commission_rules tables."""
    op.create_table(
        'billing_summaries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('collector_id', sa.Integer(), nullable=False),
        sa.Column('billing_month', sa.Date(), nullable=False),
        _money('total_fixed_amount'),
        _money('total_metered_amount'),
        _money('total_other_amount'),
        _money('subtotal_amount'),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=4), nullable=False, server_default='0.1000'),
        _money('tax_amount'),
        _money('total_amount'),
        _count('total_items_count'),
        _count('fixed_items_count'),
        _count('metered_items_count'),
        _count('other_items_count'),
        sa.Column(
            'status',
            sa.Enum(
                'DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED', 'FINALIZED', 'CANCELLED',
                name='billing_summary_status',
                create_constraint=True
            ),
            nullable=False,
            server_default='DRAFT'
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rejected_reason', sa.String(length=500), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'org_id', 'collector_id', 'billing_month',
            name='uq_billing_summaries_org_collector_month'
        ),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_billing_summaries_org_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['collector_id'],
            ['collectors.id'],
            name='fk_billing_summaries_collector_id',
            ondelete='NO ACTION'
        ),
    )
    op.create_index('ix_billing_summaries_org_id', 'billing_summaries', ['org_id'])
    op.create_index('ix_billing_summaries_collector_id', 'billing_summaries', ['collector_id'])
    op.create_index('ix_billing_summaries_billing_month', 'billing_summaries', ['billing_month'])
    op.create_index('ix_billing_summaries_status', 'billing_summaries', ['status'])

    op.create_table(
        'commission_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('collector_id', sa.Integer(), nullable=True),
        sa.Column(
            'billing_type',
            sa.Enum('ALL', 'FIXED', 'METERED', 'OTHER', name='commission_billing_type', create_constraint=True),
            nullable=False,
            server_default='ALL'
        ),
        sa.Column(
            'commission_type',
            sa.Enum('PERCENTAGE', 'FIXED_AMOUNT', name='commission_type', create_constraint=True),
            nullable=False
        ),
        sa.Column('commission_value', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_commission_rules_org_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['collector_id'],
            ['collectors.id'],
            name='fk_commission_rules_collector_id',
            ondelete='NO ACTION'
        ),
    )
    op.create_index('ix_commission_rules_org_id', 'commission_rules', ['org_id'])
    op.create_index('ix_commission_rules_collector_id', 'commission_rules', ['collector_id'])


def downgrade() -> None:
    """Drop the billing_summaries and commission_rules tables."""
    op.drop_index('ix_commission_rules_collector_id', table_name='commission_rules')
    op.drop_index('ix_commission_rules_org_id', table_name='commission_rules')
    op.drop_table('commission_rules')
    op.drop_index('ix_billing_summaries_status', table_name='billing_summaries')
    op.drop_index('ix_billing_summaries_billing_month', table_name='billing_summaries')
    op.drop_index('ix_billing_summaries_collector_id', table_name='billing_summaries')
    op.drop_index('ix_billing_summaries_org_id', table_name='billing_summaries')
    op.drop_table('billing_summaries')
