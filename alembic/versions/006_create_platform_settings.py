"""006: create platform_settings and seed default groups

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE platform_settings (
            key         VARCHAR(50)     PRIMARY KEY,
            value       JSONB           NOT NULL DEFAULT '{}'::jsonb,
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        INSERT INTO platform_settings (key, value) VALUES
            ('platform', '{"commission_rate_bps": 1000}'),
            ('payment',  '{"min_withdrawal_amount": 1000, "max_withdrawal_amount": 0}'),
            ('order',    '{"order_expiration_hours": 24, "auto_cancel_pending_days": 7}')
        ON CONFLICT (key) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS platform_settings CASCADE;")
