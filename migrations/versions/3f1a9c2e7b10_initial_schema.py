"""initial_schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-18 09:12:04.118305+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # 1. companies (no FKs)
    op.create_table('companies',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('slug', sa.String(length=50), nullable=False),
    sa.Column('currency', sa.String(length=3), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('slug')
    )
    op.create_index('idx_companies_slug', 'companies', ['slug'], unique=False)

    # 2. projects
    op.create_table('projects',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('company_id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('client', sa.String(length=200), nullable=False),
    sa.Column('location', sa.String(length=300), nullable=True),
    sa.Column('budget', sa.Numeric(precision=14, scale=2), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('start_date', sa.Date(), nullable=False),
    sa.Column('end_date', sa.Date(), nullable=True),
    sa.Column('created_by', sa.Uuid(), nullable=True),
    *_timestamps(),
    sa.CheckConstraint('budget >= 0', name='chk_project_budget'),
    sa.CheckConstraint(
        "status IN ('starting_soon', 'ongoing', 'paused', 'completed')",
        name='chk_project_status',
    ),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_projects_company', 'projects', ['company_id'], unique=False)

    # 3. phases / categories (parent ids are unconstrained: deletes never cascade)
    op.create_table('phases',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('company_id', sa.Uuid(), nullable=False),
    sa.Column('project_id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('budget', sa.Numeric(precision=14, scale=2), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_phases_company', 'phases', ['company_id'], unique=False)
    op.create_index('idx_phases_project', 'phases', ['project_id'], unique=False)

    op.create_table('categories',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('company_id', sa.Uuid(), nullable=False),
    sa.Column('phase_id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_categories_company', 'categories', ['company_id'], unique=False)
    op.create_index('idx_categories_phase', 'categories', ['phase_id'], unique=False)

    # 4. vendors / items
    op.create_table('vendors',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('company_id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('contact_person', sa.String(length=200), nullable=True),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('phone', sa.String(length=30), nullable=True),
    sa.Column('address', sa.Text(), nullable=True),
    sa.Column('rating', sa.Numeric(precision=3, scale=2), nullable=True),
    *_timestamps(),
    sa.CheckConstraint('rating IS NULL OR (rating >= 0 AND rating <= 5)', name='chk_vendor_rating'),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_vendors_company', 'vendors', ['company_id'], unique=False)
    op.create_index('idx_vendors_name', 'vendors', ['name'], unique=False)

    op.create_table('items',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('company_id', sa.Uuid(), nullable=False),
    sa.Column('category_id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('unit', sa.String(length=30), nullable=False),
    sa.Column('rate', sa.Numeric(precision=14, scale=2), nullable=False),
    sa.Column('default_vendor_id', sa.Uuid(), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_items_company', 'items', ['company_id'], unique=False)
    op.create_index('idx_items_category', 'items', ['category_id'], unique=False)

    # 5. purchases
    op.create_table('purchases',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('company_id', sa.Uuid(), nullable=False),
    sa.Column('item_id', sa.Uuid(), nullable=False),
    sa.Column('category_id', sa.Uuid(), nullable=False),
    sa.Column('phase_id', sa.Uuid(), nullable=False),
    sa.Column('project_id', sa.Uuid(), nullable=False),
    sa.Column('vendor_id', sa.Uuid(), nullable=True),
    sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
    sa.Column('price_per_unit', sa.Numeric(precision=14, scale=2), nullable=False),
    sa.Column('total_cost', sa.Numeric(precision=16, scale=2), nullable=True),
    sa.Column('purchase_date', sa.DateTime(), nullable=False),
    sa.Column('invoice_url', sa.Text(), nullable=True),
    sa.Column('created_by', sa.Uuid(), nullable=True),
    *_timestamps(),
    sa.CheckConstraint('quantity > 0', name='chk_purchase_quantity_positive'),
    sa.CheckConstraint('price_per_unit >= 0', name='chk_purchase_price'),
    sa.CheckConstraint('total_cost IS NULL OR total_cost >= 0', name='chk_purchase_total'),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_purchases_company', 'purchases', ['company_id'], unique=False)
    op.create_index('idx_purchases_phase', 'purchases', ['phase_id'], unique=False)
    op.create_index('idx_purchases_project', 'purchases', ['project_id'], unique=False)
    op.create_index('idx_purchases_vendor', 'purchases', ['vendor_id'], unique=False)
    op.create_index('idx_purchases_date', 'purchases', ['company_id', 'purchase_date'], unique=False)


def downgrade() -> None:
    op.drop_table('purchases')
    op.drop_table('items')
    op.drop_table('vendors')
    op.drop_table('categories')
    op.drop_table('phases')
    op.drop_table('projects')
    op.drop_index('idx_companies_slug', table_name='companies')
    op.drop_table('companies')
