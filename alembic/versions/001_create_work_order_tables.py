"""Create work order, budget and reference tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reference, catalog, work order and budget tables."""
    # Reference tables
    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
    )

    op.create_table(
        'sites',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
    )

    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )

    # Materials catalog
    op.create_table(
        'materials',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(20), nullable=False, server_default='u'),
        sa.Column('cost_price', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('sale_price', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Work orders
    op.create_table(
        'work_orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(20), nullable=False, unique=True),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('execution_mode', sa.String(20), nullable=False, server_default='WITH_BUDGET'),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT', index=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('request_date', sa.Date(), nullable=False),
        sa.Column('estimated_start_date', sa.Date(), nullable=True),
        sa.Column('estimated_end_date', sa.Date(), nullable=True),
        sa.Column('actual_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False, index=True),
        sa.Column('site_id', sa.Integer(), sa.ForeignKey('sites.id'), nullable=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id'), nullable=True, unique=True),
        sa.Column('payment_terms', sa.Text(), nullable=True),
        sa.Column('validity_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('budgeted_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('spent_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('invoice_number', sa.String(50), nullable=True),
        sa.Column('invoice_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('lock_version', sa.Integer(), nullable=False, server_default='1'),
    )

    # Status history (append-only)
    op.create_table(
        'work_order_status_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('work_order_id', sa.Integer(),
                  sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('from_status', sa.String(20), nullable=False),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Comments
    op.create_table(
        'work_order_comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('work_order_id', sa.Integer(),
                  sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('author_id', sa.Integer(), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Attached files
    op.create_table(
        'work_order_files',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('work_order_id', sa.Integer(),
                  sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('kind', sa.String(30), nullable=False),
        sa.Column('original_name', sa.String(255), nullable=False),
        sa.Column('storage_key', sa.String(500), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(1000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Budget versions
    op.create_table(
        'budget_versions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('work_order_id', sa.Integer(),
                  sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('document_file_id', sa.Integer(),
                  sa.ForeignKey('work_order_files.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_unique_constraint(
        'uq_budget_versions_number',
        'budget_versions',
        ['work_order_id', 'number'],
    )

    # At most one current version per work order
    op.create_index(
        'uq_budget_versions_current',
        'budget_versions',
        ['work_order_id'],
        unique=True,
        postgresql_where=sa.text('is_current'),
    )

    # Budget line items
    op.create_table(
        'budget_line_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('version_id', sa.Integer(),
                  sa.ForeignKey('budget_versions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit', sa.String(20), nullable=False),
        sa.Column('unit_cost', sa.Numeric(14, 2), nullable=False),
        sa.Column('unit_price', sa.Numeric(14, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False),
        sa.Column('material_id', sa.Integer(),
                  sa.ForeignKey('materials.id', ondelete='SET NULL'), nullable=True),
    )


def downgrade() -> None:
    """Drop all tables in dependency order."""
    op.drop_table('budget_line_items')
    op.drop_index('uq_budget_versions_current', table_name='budget_versions')
    op.drop_table('budget_versions')
    op.drop_table('work_order_files')
    op.drop_table('work_order_comments')
    op.drop_table('work_order_status_history')
    op.drop_table('work_orders')
    op.drop_table('materials')
    op.drop_table('tickets')
    op.drop_table('sites')
    op.drop_table('clients')
