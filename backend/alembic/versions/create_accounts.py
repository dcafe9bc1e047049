"""Create accounts table

Revision ID: create_accounts
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'create_accounts'
down_revision = None
branch_labels = None
depends_on = None

# Labels are the enum member names, as SQLAlchemy's Enum stores them
ACCOUNT_ROLES = ('CUSTOMER', 'SELLER', 'ADMIN', 'SYSTEM_ADMIN', 'OTHER')


def upgrade() -> None:
    account_role = sa.Enum(*ACCOUNT_ROLES, name='accountrole')

    op.create_table(
        'accounts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.Text(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('surname', sa.String(length=100), nullable=False),
        sa.Column('phone_number', sa.String(length=30), nullable=True),
        sa.Column('fiscal_code', sa.String(length=32), nullable=True),
        sa.Column('role', account_role, nullable=False, server_default='CUSTOMER'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('profile_picture', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index('ix_accounts_role', 'accounts', ['role'])
    # Case-insensitive uniqueness even for rows written outside the application
    op.execute("CREATE UNIQUE INDEX ix_accounts_email_lower ON accounts (lower(email))")


def downgrade() -> None:
    op.drop_index('ix_accounts_email_lower', table_name='accounts')
    op.drop_index('ix_accounts_role', table_name='accounts')
    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_table('accounts')
    sa.Enum(name='accountrole').drop(op.get_bind(), checkfirst=True)
