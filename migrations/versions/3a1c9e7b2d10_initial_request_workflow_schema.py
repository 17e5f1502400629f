"""initial request workflow schema

Revision ID: 3a1c9e7b2d10
Revises:
Create Date: 2026-10-19 09:12:44.118203
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '3a1c9e7b2d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REQUEST_TYPES = (
    'LOAN_APPLICATION', 'LOAN_DISBURSEMENT', 'ACCOUNT_CREATION', 'ACCOUNT_UPDATE',
    'ACCOUNT_CLOSURE', 'ACCOUNT_VERIFICATION', 'SAVINGS_WITHDRAWAL', 'BIODATA_UPDATE',
    'PERSONAL_SAVINGS_CREATION', 'PERSONAL_SAVINGS_WITHDRAWAL', 'BULK_UPLOAD', 'SYSTEM_ADJUSTMENT',
)
REQUEST_MODULES = ('ACCOUNT', 'LOAN', 'SAVINGS', 'SHARES', 'SYSTEM', 'USER', 'ADMIN')
REQUEST_STATUSES = ('PENDING', 'IN_REVIEW', 'REVIEWED', 'APPROVED', 'REJECTED', 'COMPLETED', 'CANCELLED')
REQUEST_PRIORITIES = ('LOW', 'MEDIUM', 'HIGH')
STEP_STATUSES = ('PENDING', 'IN_PROGRESS', 'APPROVED', 'REJECTED', 'SKIPPED')
LOAN_STATUSES = ('PENDING', 'APPROVED', 'DISBURSED', 'CLOSED')
SAVINGS_STATUSES = ('PENDING', 'ACTIVE', 'CLOSED')
NOTIFICATION_TYPES = ('REQUEST_UPDATE', 'APPROVAL_REQUIRED')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _timestamp_index(table: str):
    op.create_index(f'ix_{table}_created_at', table, ['created_at'])


def upgrade() -> None:
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('approval_level', sa.Integer(), nullable=False),
        sa.Column('can_approve', sa.Boolean(), nullable=False),
        sa.Column('module_access', sa.JSON(), nullable=False),
        sa.Column('is_system_role', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_roles_id', 'roles', ['id'])
    op.create_index('ix_roles_name', 'roles', ['name'], unique=True)
    _timestamp_index('roles')

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_member', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    _timestamp_index('users')

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_user_roles_id', 'user_roles', ['id'])
    _timestamp_index('user_roles')

    op.create_table(
        'biodata',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('erp_id', sa.String(length=50), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('email_address', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('residential_address', sa.String(length=500), nullable=True),
        sa.Column('next_of_kin', sa.String(length=200), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_biodata_id', 'biodata', ['id'])
    op.create_index('ix_biodata_erp_id', 'biodata', ['erp_id'], unique=True)
    _timestamp_index('biodata')

    op.create_table(
        'loans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('biodata_id', sa.Integer(), sa.ForeignKey('biodata.id'), nullable=False),
        sa.Column('principal_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('tenure_months', sa.Integer(), nullable=False),
        sa.Column('purpose', sa.String(length=500), nullable=True),
        sa.Column('status', sa.Enum(*LOAN_STATUSES, name='loanstatus'), nullable=False),
        sa.Column('disbursed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_loans_id', 'loans', ['id'])
    _timestamp_index('loans')

    op.create_table(
        'savings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('biodata_id', sa.Integer(), sa.ForeignKey('biodata.id'), nullable=False),
        sa.Column('balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('monthly_target', sa.Numeric(15, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_savings_id', 'savings', ['id'])
    _timestamp_index('savings')

    op.create_table(
        'personal_savings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('biodata_id', sa.Integer(), sa.ForeignKey('biodata.id'), nullable=False),
        sa.Column('plan_name', sa.String(length=200), nullable=False),
        sa.Column('target_amount', sa.Numeric(15, 2), nullable=True),
        sa.Column('balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('status', sa.Enum(*SAVINGS_STATUSES, name='savingsstatus'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_personal_savings_id', 'personal_savings', ['id'])
    _timestamp_index('personal_savings')

    op.create_table(
        'requests',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('type', sa.Enum(*REQUEST_TYPES, name='requesttype'), nullable=False),
        sa.Column('module', sa.Enum(*REQUEST_MODULES, name='requestmodule'), nullable=False),
        sa.Column('status', sa.Enum(*REQUEST_STATUSES, name='requeststatus'), nullable=False),
        sa.Column('priority', sa.Enum(*REQUEST_PRIORITIES, name='requestpriority'), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('initiator_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('assignee_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('next_approval_level', sa.Integer(), nullable=True),
        sa.Column('biodata_id', sa.Integer(), sa.ForeignKey('biodata.id'), nullable=True),
        sa.Column('loan_id', sa.Integer(), sa.ForeignKey('loans.id'), nullable=True),
        sa.Column('savings_id', sa.Integer(), sa.ForeignKey('savings.id'), nullable=True),
        sa.Column('personal_savings_id', sa.Integer(), sa.ForeignKey('personal_savings.id'), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_requests_type', 'requests', ['type'])
    op.create_index('ix_requests_status', 'requests', ['status'])
    op.create_index('ix_requests_initiator_id', 'requests', ['initiator_id'])
    op.create_index('ix_requests_biodata_id', 'requests', ['biodata_id'])
    _timestamp_index('requests')

    op.create_table(
        'request_approvals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_id', sa.String(length=36), sa.ForeignKey('requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum(*STEP_STATUSES, name='approvalstepstatus'), nullable=False),
        sa.Column('approver_role', sa.String(length=100), nullable=False),
        sa.Column('approver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('request_id', 'level', name='uq_request_approval_level'),
    )
    op.create_index('ix_request_approvals_id', 'request_approvals', ['id'])
    op.create_index('ix_request_approvals_request_id', 'request_approvals', ['request_id'])
    op.create_index('ix_request_approvals_approver_role', 'request_approvals', ['approver_role'])
    _timestamp_index('request_approvals')

    op.create_table(
        'approval_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_type', sa.Enum(*REQUEST_TYPES, name='requesttype', create_type=False), nullable=False, unique=True),
        sa.Column('is_enabled', sa.Boolean(), nullable=False),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_approval_settings_id', 'approval_settings', ['id'])
    _timestamp_index('approval_settings')

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notificationtype'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('request_id', sa.String(length=36), sa.ForeignKey('requests.id', ondelete='SET NULL'), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    _timestamp_index('notifications')


def downgrade() -> None:
    for table in (
        'notifications', 'approval_settings', 'request_approvals', 'requests',
        'personal_savings', 'savings', 'loans', 'biodata', 'user_roles', 'users', 'roles',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_name in (
        'notificationtype', 'approvalstepstatus', 'requestpriority', 'requeststatus',
        'requestmodule', 'requesttype', 'savingsstatus', 'loanstatus',
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
