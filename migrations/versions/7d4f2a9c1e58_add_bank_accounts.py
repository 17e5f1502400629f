"""add bank accounts

Revision ID: 7d4f2a9c1e58
Revises: 3a1c9e7b2d10
Create Date: 2026-10-19 14:03:27.551940
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '7d4f2a9c1e58'
down_revision: Union[str, None] = '3a1c9e7b2d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'bank_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('biodata_id', sa.Integer(), sa.ForeignKey('biodata.id'), nullable=False),
        sa.Column('bank_name', sa.String(length=100), nullable=False),
        sa.Column('account_number', sa.String(length=20), nullable=False),
        sa.Column('account_name', sa.String(length=200), nullable=False),
        sa.Column('bvn', sa.String(length=11), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_bank_accounts_id', 'bank_accounts', ['id'])
    op.create_index('ix_bank_accounts_biodata_id', 'bank_accounts', ['biodata_id'], unique=True)
    op.create_index('ix_bank_accounts_created_at', 'bank_accounts', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_bank_accounts_created_at', table_name='bank_accounts')
    op.drop_index('ix_bank_accounts_biodata_id', table_name='bank_accounts')
    op.drop_index('ix_bank_accounts_id', table_name='bank_accounts')
    op.drop_table('bank_accounts')
