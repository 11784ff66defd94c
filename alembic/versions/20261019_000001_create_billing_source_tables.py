"""Create organizations, collectors, billing_items and billing_settings tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

This migration creates the tables the monthly billing run reads from.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the billing source tables."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_organizations_code'),
    )

    op.create_table(
        'collectors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_collectors_org_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_collectors_org_id', 'collectors', ['org_id'])

    op.create_table(
        'billing_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('collector_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('billing_month', sa.Date(), nullable=False),
        sa.Column(
            'billing_type',
            sa.Enum('FIXED', 'METERED', 'OTHER', name='billing_type', create_constraint=True),
            nullable=False
        ),
        sa.Column('item_name', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column(
            'status',
            sa.Enum(
                'DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED', 'CANCELLED',
                name='billing_item_status',
                create_constraint=True
            ),
            nullable=False,
            server_default='DRAFT'
        ),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_billing_items_org_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['collector_id'],
            ['collectors.id'],
            name='fk_billing_items_collector_id',
            ondelete='NO ACTION'
        ),
    )

    # Indexes for the aggregation query (org, collector, month, status)
    op.create_index('ix_billing_items_org_id', 'billing_items', ['org_id'])
    op.create_index('ix_billing_items_collector_id', 'billing_items', ['collector_id'])
    op.create_index('ix_billing_items_store_id', 'billing_items', ['store_id'])
    op.create_index('ix_billing_items_billing_month', 'billing_items', ['billing_month'])
    op.create_index('ix_billing_items_status', 'billing_items', ['status'])

    op.create_table(
        'billing_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=4), nullable=True),
        sa.Column(
            'tax_rounding_mode',
            sa.Enum('FLOOR', 'CEIL', 'ROUND', name='tax_rounding_mode', create_constraint=True),
            nullable=False,
            server_default='FLOOR'
        ),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('org_id', name='uq_billing_settings_org_id'),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_billing_settings_org_id',
            ondelete='CASCADE'
        ),
    )


def downgrade() -> None:
    """Drop the billing source tables."""
    op.drop_table('billing_settings')
    op.drop_index('ix_billing_items_status', table_name='billing_items')
    op.drop_index('ix_billing_items_billing_month', table_name='billing_items')
    op.drop_index('ix_billing_items_store_id', table_name='billing_items')
    op.drop_index('ix_billing_items_collector_id', table_name='billing_items')
    op.drop_index('ix_billing_items_org_id', table_name='billing_items')
    op.drop_table('billing_items')
    op.drop_index('ix_collectors_org_id', table_name='collectors')
    op.drop_table('collectors')
    op.drop_table('organizations')
