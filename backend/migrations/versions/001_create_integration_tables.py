"""Create seller, provider_credential and catalog_item tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'seller',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'provider_credential',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('seller_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('provider_kind', sa.Text(), nullable=False),
        sa.Column('provider_type', sa.Text(), nullable=False),
        sa.Column('account_id', sa.Text(), nullable=True),
        sa.Column('origin', sa.Text(), nullable=True),
        sa.Column('secrets_encrypted', sa.Text(), nullable=False),
        sa.Column('options_json', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=False),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=False),
        sa.Column('activation_state', sa.Text(), server_default='active', nullable=False),
        sa.Column('activation_token', sa.Text(), nullable=True),
        sa.Column('last_verified_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_synced_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_sync_summary_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['seller_id'], ['seller.id'], ondelete='CASCADE'),
        sa.CheckConstraint("provider_kind IN ('messaging', 'catalog')", name='ck_provider_credential_kind'),
        sa.CheckConstraint("activation_state IN ('active', 'pending')", name='ck_provider_credential_activation'),
        sa.CheckConstraint(
            "activation_state = 'active' OR activation_token IS NOT NULL",
            name='ck_provider_credential_pending_token'
        ),
    )

    # One credential per seller and provider kind
    op.create_index(
        'uq_provider_credential_seller_kind',
        'provider_credential',
        ['seller_id', 'provider_kind'],
        unique=True
    )

    op.create_table(
        'catalog_item',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('seller_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
        sa.Column('category', sa.Text(), server_default='Other', nullable=False),
        sa.Column('image_urls', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        sa.Column('is_available', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('source', sa.Text(), server_default='native', nullable=False),
        sa.Column('external_ref', sa.Text(), nullable=True),
        sa.Column('external_provider', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        # Orders reference catalog items; sellers with items are never hard-deleted
        sa.ForeignKeyConstraint(['seller_id'], ['seller.id'], ondelete='RESTRICT'),
        sa.CheckConstraint("source IN ('native', 'external')", name='ck_catalog_item_source'),
        sa.CheckConstraint('price >= 0', name='ck_catalog_item_price_non_negative'),
        sa.CheckConstraint(
            "(source = 'external') = (external_ref IS NOT NULL)",
            name='ck_catalog_item_external_ref'
        ),
    )

    op.create_index('ix_catalog_item_seller_source', 'catalog_item', ['seller_id', 'source'])
    op.create_index(
        'uq_catalog_item_seller_external_ref',
        'catalog_item',
        ['seller_id', 'external_ref'],
        unique=True
    )


def downgrade():
    op.drop_index('uq_catalog_item_seller_external_ref', table_name='catalog_item')
    op.drop_index('ix_catalog_item_seller_source', table_name='catalog_item')
    op.drop_table('catalog_item')

    op.drop_index('uq_provider_credential_seller_kind', table_name='provider_credential')
    op.drop_table('provider_credential')

    op.drop_table('seller')
