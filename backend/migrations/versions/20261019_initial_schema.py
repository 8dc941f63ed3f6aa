"""Initial schema: catalog, sales, credit ledger, expenses, cash cuts, auth

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. products (catalog + signed stock, backorder flag)
2. sales and sale_lines (immutable sale snapshots)
3. customers (phone is the dedup key)
4. credit_accounts and credit_payments (installment ledger)
5. expenses
6. cash_cuts (one per business_date)
7. users and session_tokens
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. PRODUCTS
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('category', sa.String(length=32), nullable=True),
        sa.Column('cost_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('market_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sale_price_cents', sa.Integer(), nullable=False),
        sa.Column('wholesale_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_backorder', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_name', ['name'], unique=False)
        batch_op.create_index('ix_products_category', ['category'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_barcode'), ['barcode'], unique=False)

    # ==========================================================================
    # 2. SALES
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('seller_name', sa.String(length=255), nullable=False),
        sa.Column('tendered_cents', sa.Integer(), nullable=True),
        sa.Column('change_cents', sa.Integer(), nullable=True),
        sa.Column('installment_count', sa.Integer(), nullable=True),
        sa.Column('installment_amount_cents', sa.Integer(), nullable=True),
        sa.Column('debt_previous_cents', sa.Integer(), nullable=True),
        sa.Column('debt_remaining_cents', sa.Integer(), nullable=True),
        sa.Column('credit_account_id', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_created_method', ['created_at', 'payment_method'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_created_at'), ['created_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_payment_method'), ['payment_method'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_credit_account_id'), ['credit_account_id'], unique=False)

    op.create_table('sale_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('unit_cost_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('line_total_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_lines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sale_lines_sale_id'), ['sale_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sale_lines_product_id'), ['product_id'], unique=False)

    # ==========================================================================
    # 3. CUSTOMERS
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone', name='uq_customers_phone'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 4. CREDIT LEDGER
    # ==========================================================================
    op.create_table('credit_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=False),
        sa.Column('customer_address', sa.String(length=255), nullable=True),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('total_debt_cents', sa.Integer(), nullable=False),
        sa.Column('remaining_debt_cents', sa.Integer(), nullable=False),
        sa.Column('installment_count', sa.Integer(), nullable=False),
        sa.Column('installment_amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('origin_sale_id', sa.Integer(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('credit_accounts', schema=None) as batch_op:
        batch_op.create_index('ix_credit_accounts_status_created', ['status', 'created_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_credit_accounts_customer_id'), ['customer_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_credit_accounts_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_credit_accounts_created_at'), ['created_at'], unique=False)

    op.create_table('credit_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('credit_account_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('seller_name', sa.String(length=255), nullable=True),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['credit_account_id'], ['credit_accounts.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('credit_payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_credit_payments_credit_account_id'), ['credit_account_id'], unique=False)

    # ==========================================================================
    # 5. EXPENSES
    # ==========================================================================
    op.create_table('expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_expenses_created_at'), ['created_at'], unique=False)

    # ==========================================================================
    # 6. CASH CUTS
    # ==========================================================================
    op.create_table('cash_cuts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('opening_float_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cash_sales_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('card_sales_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_sales_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('withdrawals_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expected_cents', sa.Integer(), nullable=False),
        sa.Column('declared_cents', sa.Integer(), nullable=False),
        sa.Column('difference_cents', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_date', name='uq_cash_cuts_business_date'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 7. USERS AND SESSIONS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_session_tokens_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_is_revoked'), ['is_revoked'], unique=False)


def downgrade():
    op.drop_table('session_tokens')
    op.drop_table('users')
    op.drop_table('cash_cuts')
    op.drop_table('expenses')
    op.drop_table('credit_payments')
    op.drop_table('credit_accounts')
    op.drop_table('customers')
    op.drop_table('sale_lines')
    op.drop_table('sales')
    op.drop_table('products')
