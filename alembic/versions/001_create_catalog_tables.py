"""Create category, fit term and product link tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the taxonomy, fitment and ingestion tables."""
    # Category tree
    op.create_table(
        'categories',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('parent_id', postgresql.UUID(as_uuid=False),
                  sa.ForeignKey('categories.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('shopify_page_id', sa.String(255), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Make / Model / Trim / Chassis tree
    op.create_table(
        'fit_terms',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('type', sa.String(20), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=False),
                  sa.ForeignKey('fit_terms.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # NULL parents compare equal so root MAKEs stay unique (Postgres 15+)
    op.create_unique_constraint(
        'uq_fit_terms_type_name_parent',
        'fit_terms',
        ['type', 'name', 'parent_id'],
        postgresql_nulls_not_distinct=True,
    )

    # Product <-> category links
    op.create_table(
        'product_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_gid', sa.String(255), nullable=False, index=True),
        sa.Column('category_id', postgresql.UUID(as_uuid=False),
                  sa.ForeignKey('categories.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_unique_constraint(
        'uq_product_categories_pair',
        'product_categories',
        ['product_gid', 'category_id'],
    )

    # Product fitments
    op.create_table(
        'product_fitments',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('product_gid', sa.String(255), nullable=False, index=True),
        sa.Column('make', sa.String(255), nullable=False, index=True),
        sa.Column('model', sa.String(255), nullable=False, index=True),
        sa.Column('year_from', sa.Integer(), nullable=True),
        sa.Column('year_to', sa.Integer(), nullable=True),
        sa.Column('trim', sa.String(255), nullable=True),
        sa.Column('chassis', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_unique_constraint(
        'uq_product_fitments_tuple',
        'product_fitments',
        ['product_gid', 'make', 'model', 'year_from', 'year_to', 'trim', 'chassis'],
        postgresql_nulls_not_distinct=True,
    )

    # Ingestion lookups
    op.create_table(
        'product_skus',
        sa.Column('sku', sa.String(100), primary_key=True),
        sa.Column('product_gid', sa.String(255), nullable=False, index=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('imported_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_table(
        'category_mappings',
        sa.Column('source_path', sa.String(500), primary_key=True),
        sa.Column('category_id', postgresql.UUID(as_uuid=False),
                  sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
    )


def downgrade() -> None:
    """Drop the taxonomy, fitment and ingestion tables."""
    op.drop_table('category_mappings')
    op.drop_table('product_skus')
    op.drop_table('product_fitments')
    op.drop_table('product_categories')
    op.drop_table('fit_terms')
    op.drop_table('categories')
