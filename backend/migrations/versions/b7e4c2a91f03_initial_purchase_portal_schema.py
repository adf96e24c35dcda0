"""initial purchase portal schema

Revision ID: b7e4c2a91f03
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the three collections as tables:
- purchase_requests: submissions plus their response/reminder lifecycle
- products: catalog names offered on the request form
- staff_accounts: local profiles and roles for verified identities
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7e4c2a91f03'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # purchase_requests: one row per request; response_token is single-use
    # ============================================================================
    op.create_table(
        'purchase_requests',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('store_name', sa.String(length=255), nullable=False),
        sa.Column('employee_name', sa.String(length=255), nullable=False),
        sa.Column('order_date', sa.DateTime(), nullable=False),
        sa.Column('invoice_date', sa.DateTime(), nullable=False),
        sa.Column('product_model', sa.String(length=255), nullable=False),
        sa.Column('serial_number', sa.String(length=255), nullable=False),
        sa.Column('fob', sa.String(length=255), nullable=False),
        sa.Column('discount', sa.String(length=64), nullable=False),
        sa.Column('rebate', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('public_email', sa.String(length=255), nullable=False),
        sa.Column('admin_email', sa.String(length=255), nullable=False),
        sa.Column('admin_name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('response_token', sa.String(length=128), nullable=False),
        sa.Column('token_used', sa.Boolean(), nullable=False),
        sa.Column('response_type', sa.String(length=16), nullable=True),
        sa.Column('response_note', sa.Text(), nullable=True),
        sa.Column('response_timestamp', sa.DateTime(), nullable=True),
        sa.Column('reminder_count', sa.Integer(), nullable=False),
        sa.Column('last_reminder_sent', sa.DateTime(), nullable=True),
        sa.Column('email_sent_log', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_purchase_requests_status', 'purchase_requests', ['status'])
    op.create_index('ix_purchase_requests_response_token', 'purchase_requests', ['response_token'], unique=True)

    # ============================================================================
    # products: exact-match unique names
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    # ============================================================================
    # staff_accounts: keyed by identity provider uid
    # ============================================================================
    op.create_table(
        'staff_accounts',
        sa.Column('uid', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('photo_url', sa.String(length=1024), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('uid'),
    )
    op.create_index('ix_staff_accounts_role', 'staff_accounts', ['role'])


def downgrade():
    op.drop_index('ix_staff_accounts_role', table_name='staff_accounts')
    op.drop_table('staff_accounts')
    op.drop_table('products')
    op.drop_index('ix_purchase_requests_response_token', table_name='purchase_requests')
    op.drop_index('ix_purchase_requests_status', table_name='purchase_requests')
    op.drop_table('purchase_requests')
