"""Residences, account directory and ledger store tables

Revision ID: 20261019_0900_ledger_store
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '20261019_0900_ledger_store'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create AccountType enum
    account_type_enum = postgresql.ENUM(
        'ASSET', 'LIABILITY', 'EQUITY', 'INCOME', 'EXPENSE',
        name='accounttype',
        create_type=False
    )
    account_type_enum.create(op.get_bind(), checkfirst=True)

    # Create EntryStatus enum
    entry_status_enum = postgresql.ENUM(
        'DRAFT', 'POSTED', 'REVERSED', 'VOIDED',
        name='entrystatus',
        create_type=False
    )
    entry_status_enum.create(op.get_bind(), checkfirst=True)

    # =========================================================================
    # RESIDENCES TABLE
    # =========================================================================
    op.create_table(
        'residences',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_residences'),
        sa.UniqueConstraint('name', name='uq_residences_name'),
    )

    # =========================================================================
    # ACCOUNT DIRECTORY TABLE
    # =========================================================================
    op.create_table(
        'accounts',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('code', sa.String(30), nullable=False, comment='Account code (e.g., 1000, 1100, 2000)'),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type', postgresql.ENUM(name='accounttype', create_type=False), nullable=False),
        sa.Column('category', sa.String(100), nullable=True, comment='Display category, e.g. Current Assets, Maintenance'),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_accounts'),
        sa.ForeignKeyConstraint(
            ['parent_id'], ['accounts.id'],
            name='fk_accounts_parent_id_accounts', ondelete='SET NULL',
        ),
    )
    op.create_index('ix_accounts_code', 'accounts', ['code'], unique=True)
    op.create_index('ix_accounts_type_active', 'accounts', ['type', 'is_active'])

    # =========================================================================
    # TRANSACTION ENTRIES TABLE
    # =========================================================================
    op.create_table(
        'transaction_entries',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('transaction_id', sa.String(50), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('reference', sa.String(100), nullable=True),
        sa.Column('source', sa.String(50), nullable=False, comment='payment, expense_payment, rental_accrual, manual, ...'),
        sa.Column('source_id', sa.String(100), nullable=True),
        sa.Column('status', postgresql.ENUM(name='entrystatus', create_type=False), nullable=False),
        sa.Column('residence_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('total_debit', sa.Numeric(18, 2), nullable=False),
        sa.Column('total_credit', sa.Numeric(18, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_transaction_entries'),
        sa.ForeignKeyConstraint(
            ['residence_id'], ['residences.id'],
            name='fk_transaction_entries_residence_id_residences', ondelete='SET NULL',
        ),
        sa.CheckConstraint('total_debit = total_credit', name='ck_transaction_entries_balanced_entry'),
    )
    op.create_index('ix_transaction_entries_transaction_id', 'transaction_entries', ['transaction_id'], unique=True)
    op.create_index('ix_transaction_entries_date', 'transaction_entries', ['date'])
    op.create_index('ix_transaction_entries_source', 'transaction_entries', ['source'])
    op.create_index('ix_transaction_entries_residence_id', 'transaction_entries', ['residence_id'])
    op.create_index('ix_transaction_entries_status_date', 'transaction_entries', ['status', 'date'])

    # =========================================================================
    # TRANSACTION ENTRY LINES TABLE
    # =========================================================================
    op.create_table(
        'transaction_entry_lines',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('entry_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('line_number', sa.Integer, nullable=False),
        sa.Column('account_code', sa.String(30), nullable=False),
        sa.Column('account_name', sa.String(200), nullable=False),
        sa.Column('account_type', postgresql.ENUM(name='accounttype', create_type=False), nullable=False),
        sa.Column('debit', sa.Numeric(18, 2), nullable=False),
        sa.Column('credit', sa.Numeric(18, 2), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_transaction_entry_lines'),
        sa.ForeignKeyConstraint(
            ['entry_id'], ['transaction_entries.id'],
            name='fk_transaction_entry_lines_entry_id_transaction_entries', ondelete='CASCADE',
        ),
        sa.CheckConstraint('debit >= 0', name='ck_transaction_entry_lines_non_negative_debit'),
        sa.CheckConstraint('credit >= 0', name='ck_transaction_entry_lines_non_negative_credit'),
    )
    op.create_index('ix_transaction_entry_lines_entry_id', 'transaction_entry_lines', ['entry_id'])
    op.create_index('ix_transaction_entry_lines_account_code', 'transaction_entry_lines', ['account_code'])


def downgrade() -> None:
    op.drop_table('transaction_entry_lines')
    op.drop_table('transaction_entries')
    op.drop_table('accounts')
    op.drop_table('residences')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS entrystatus')
    op.execute('DROP TYPE IF EXISTS accounttype')
