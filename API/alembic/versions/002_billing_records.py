"""Add billing_records table with one daily fee per merchant per day

Revision ID: 002_billing_records
Revises: 001_merchant_billing
Create Date: 2026-10-12
"""
from alembic import op
import sqlalchemy as sa

revision = '002_billing_records'
down_revision = '001_merchant_billing'
branch_labels = None
depends_on = None


def upgrade() -> None:
    from sqlalchemy import inspect
    bind = op.get_bind()
    inspector = inspect(bind)
    existing = inspector.get_table_names()

    if 'billing_records' not in existing:
        op.create_table(
            'billing_records',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('merchant_id', sa.Integer(), sa.ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False, index=True),
            sa.Column('billing_type', sa.String(30), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('amount', sa.Numeric(20, 2), nullable=False),
            sa.Column('currency', sa.String(10), default='NGN', nullable=False),
            sa.Column('due_date', sa.DateTime(), nullable=False),
            sa.Column('billing_day', sa.Date(), nullable=True),
            sa.Column('status', sa.String(20), default='PENDING', nullable=False),
            sa.Column('paid_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('merchant_id', 'billing_type', 'billing_day', name='uq_billing_records_daily'),
            sa.CheckConstraint('amount >= 0', name='ck_billing_records_amount_non_negative'),
        )
        op.create_index(
            'ix_billing_records_merchant_due', 'billing_records',
            ['merchant_id', 'billing_type', 'due_date'],
        )
        op.create_index('ix_billing_records_status', 'billing_records', ['status'])


def downgrade() -> None:
    op.drop_table('billing_records')
