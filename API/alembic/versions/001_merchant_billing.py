"""Merchants, services and service subscriptions

Revision ID: 001_merchant_billing
Revises: (none)
Create Date: 2026-10-12
"""
from alembic import op
import sqlalchemy as sa

revision = '001_merchant_billing'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    from sqlalchemy import inspect
    bind = op.get_bind()
    inspector = inspect(bind)
    existing = inspector.get_table_names()

    if 'merchants' not in existing:
        op.create_table(
            'merchants',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('business_name', sa.String(300), nullable=False),
            sa.Column('email', sa.String(255), nullable=True),
            sa.Column('phone', sa.String(20), nullable=True),
            sa.Column('address', sa.Text(), nullable=True),
            sa.Column('onboarding_status', sa.String(20), default='PENDING', nullable=False),
            sa.Column('is_active', sa.Boolean(), default=True, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_merchants_onboarding_status', 'merchants', ['onboarding_status'])

    if 'services' not in existing:
        op.create_table(
            'services',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(200), nullable=False, unique=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('category', sa.String(100), nullable=True),
            sa.Column('price', sa.Numeric(20, 2), nullable=False),
            sa.Column('is_active', sa.Boolean(), default=True, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )

    if 'merchant_service_subscriptions' not in existing:
        op.create_table(
            'merchant_service_subscriptions',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('merchant_id', sa.Integer(), sa.ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False, index=True),
            sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False, index=True),
            sa.Column('status', sa.String(20), default='ACTIVE', nullable=False),
            sa.Column('start_date', sa.DateTime(), nullable=False),
            sa.Column('end_date', sa.DateTime(), nullable=True),
            sa.Column('price_at_subscription', sa.Numeric(20, 2), nullable=False),
            sa.Column('quantity', sa.Integer(), default=1, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint('quantity > 0', name='ck_mss_quantity_positive'),
            sa.CheckConstraint('price_at_subscription >= 0', name='ck_mss_price_non_negative'),
        )
        op.create_index(
            'ix_mss_status_window', 'merchant_service_subscriptions',
            ['status', 'start_date', 'end_date'],
        )


def downgrade() -> None:
    op.drop_table('merchant_service_subscriptions')
    op.drop_table('services')
    op.drop_table('merchants')
