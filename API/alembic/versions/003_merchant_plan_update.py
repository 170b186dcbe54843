"""Add merchants.last_plan_update for the once-a-day plan change limit

Revision ID: 003_merchant_plan_update
Revises: 002_billing_records
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '003_merchant_plan_update'
down_revision = '002_billing_records'
branch_labels = None
depends_on = None


def upgrade() -> None:
    from sqlalchemy import inspect
    bind = op.get_bind()
    inspector = inspect(bind)
    existing = inspector.get_table_names()

    if 'merchants' in existing:
        cols = [c['name'] for c in inspector.get_columns('merchants')]
        if 'last_plan_update' not in cols:
            op.add_column('merchants', sa.Column('last_plan_update', sa.DateTime(), nullable=True))


def downgrade() -> None:
    op.drop_column('merchants', 'last_plan_update')
