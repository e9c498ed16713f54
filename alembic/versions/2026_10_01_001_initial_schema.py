"""Initial schema: tenants, users, subscriptions, payments, notifications

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-01

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None

# Enum columns store member names, matching SQLModel's mapping
tenant_status = sa.Enum('ACTIVE', 'INACTIVE', 'SUSPENDED', name='tenantstatus')
user_role = sa.Enum(
    'SUPER_ADMIN', 'ADMIN', 'USER', 'MANAGER', 'DATA_ENTRY',
    'ACCOUNTANT', 'GROWER', 'BUYER', 'VIEWER',
    name='userrole',
)
user_status = sa.Enum('ACTIVE', 'INACTIVE', 'BLOCKED', name='userstatus')
subscription_plan = sa.Enum('FREE', 'PRO', 'ENTERPRISE', name='subscriptionplan')
subscription_plan_type = sa.Enum('MONTHLY', 'YEARLY', 'ENTERPRISE', name='subscriptionplantype')
subscription_status = sa.Enum('ACTIVE', 'EXPIRED', 'CANCELLED', 'SUSPENDED', name='subscriptionstatus')
payment_status = sa.Enum('SUCCESS', 'FAILED', 'PENDING', name='subscriptionpaymentstatus')
notification_channel = sa.Enum('EMAIL', 'SMS', 'WHATSAPP', 'IN_APP', name='notificationchannel')
notification_status = sa.Enum('PENDING', 'SENT', 'FAILED', name='notificationstatus')


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', tenant_status, nullable=False, server_default='ACTIVE'),
        sa.Column('subscription_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_tenants_name', 'tenants', ['name'])
    op.create_index('ix_tenants_status', 'tenants', ['status'])
    op.create_index('ix_tenants_subscription_id', 'tenants', ['subscription_id'])

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=True),
        sa.Column('status', user_status, nullable=False),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('reset_password_token', sa.String(), nullable=True),
        sa.Column('reset_password_expires', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_status', 'users', ['status'])

    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('plan', subscription_plan, nullable=False),
        sa.Column('plan_type', subscription_plan_type, nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('status', subscription_status, nullable=False),
        sa.Column('auto_renew', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('grace_period_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_users', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('storage_gb', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('whatsapp_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('priority_support', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_subscriptions_tenant_id', 'subscriptions', ['tenant_id'])
    op.create_index('ix_subscriptions_end_date', 'subscriptions', ['end_date'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_auto_renew', 'subscriptions', ['auto_renew'])

    op.create_table(
        'subscription_payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('subscription_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subscriptions.id'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_date', sa.DateTime(), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False),
        sa.Column('transaction_id', sa.String(100), nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_subscription_payments_tenant_id', 'subscription_payments', ['tenant_id'])
    op.create_index('ix_subscription_payments_subscription_id', 'subscription_payments', ['subscription_id'])
    op.create_index('ix_subscription_payments_payment_date', 'subscription_payments', ['payment_date'])
    op.create_index('ix_subscription_payments_transaction_id', 'subscription_payments', ['transaction_id'])
    op.create_index('ix_subscription_payments_status', 'subscription_payments', ['status'])

    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('recipient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('recipient_type', sa.String(20), nullable=False, server_default='user'),
        sa.Column('channel', notification_channel, nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('status', notification_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notifications_tenant_id', 'notifications', ['tenant_id'])
    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'])
    op.create_index('ix_notifications_status', 'notifications', ['status'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('subscription_payments')
    op.drop_table('subscriptions')
    op.drop_table('users')
    op.drop_table('tenants')

    bind = op.get_bind()
    for enum in (
        notification_status, notification_channel, payment_status,
        subscription_status, subscription_plan_type, subscription_plan,
        user_status, user_role, tenant_status,
    ):
        enum.drop(bind, checkfirst=True)
