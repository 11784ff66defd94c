"""Create tenant_invoices and tenant_invoice_items tables

Revision ID: 20261019_000003
Revises: 20261019_000002
Create Date: 2026-10-19

One invoice per (org_id, billing_month); items are unique per
(tenant_invoice_id, display_order).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000003'
down_revision: Union[str, None] = '20261019_000002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=14, scale=2), nullable=False, server_default='0')


def upgrade() -> None:
    """Create the tenant invoice tables."""
    op.create_table(
        'tenant_invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('billing_month', sa.Date(), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        _money('collectors_subtotal'),
        _money('collectors_tax'),
        _money('collectors_total'),
        _money('commission_subtotal'),
        _money('commission_tax'),
        _money('commission_total'),
        _money('grand_subtotal'),
        _money('grand_tax'),
        _money('grand_total'),
        sa.Column(
            'status',
            sa.Enum('DRAFT', 'SUBMITTED', 'FINALIZED', name='tenant_invoice_status', create_constraint=True),
            nullable=False,
            server_default='DRAFT'
        ),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('org_id', 'billing_month', name='uq_tenant_invoices_org_month'),
        sa.UniqueConstraint('invoice_number', name='uq_tenant_invoices_invoice_number'),
        sa.ForeignKeyConstraint(
            ['org_id'],
            ['organizations.id'],
            name='fk_tenant_invoices_org_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_tenant_invoices_org_id', 'tenant_invoices', ['org_id'])
    op.create_index('ix_tenant_invoices_billing_month', 'tenant_invoices', ['billing_month'])

    op.create_table(
        'tenant_invoice_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_invoice_id', sa.Integer(), nullable=False),
        sa.Column(
            'item_type',
            sa.Enum(
                'COLLECTOR_BILLING', 'COMMISSION', 'MANAGEMENT_FEE',
                name='tenant_invoice_item_type',
                create_constraint=True
            ),
            nullable=False
        ),
        sa.Column('billing_summary_id', sa.Integer(), nullable=True),
        sa.Column('collector_id', sa.Integer(), nullable=True),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        _money('base_amount'),
        _money('commission_amount'),
        _money('subtotal'),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        _money('tax_amount'),
        _money('total_amount'),
        sa.Column('is_auto_calculated', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'tenant_invoice_id', 'display_order',
            name='uq_tenant_invoice_items_invoice_order'
        ),
        sa.ForeignKeyConstraint(
            ['tenant_invoice_id'],
            ['tenant_invoices.id'],
            name='fk_tenant_invoice_items_invoice_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['billing_summary_id'],
            ['billing_summaries.id'],
            name='fk_tenant_invoice_items_summary_id',
            ondelete='NO ACTION'
        ),
        sa.ForeignKeyConstraint(
            ['collector_id'],
            ['collectors.id'],
            name='fk_tenant_invoice_items_collector_id',
            ondelete='NO ACTION'
        ),
    )
    op.create_index('ix_tenant_invoice_items_tenant_invoice_id', 'tenant_invoice_items', ['tenant_invoice_id'])


def downgrade() -> None:
    """Drop the tenant invoice tables."""
    op.drop_index('ix_tenant_invoice_items_tenant_invoice_id', table_name='tenant_invoice_items')
    op.drop_table('tenant_invoice_items')
    op.drop_index('ix_tenant_invoices_billing_month', table_name='tenant_invoices')
    op.drop_index('ix_tenant_invoices_org_id', table_name='tenant_invoices')
    op.drop_table('tenant_invoices')
