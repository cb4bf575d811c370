"""004: create seller_accounts, seller_ledger_entries, platform_earnings

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE seller_accounts (
            user_id         VARCHAR(64)     PRIMARY KEY,
            ledger_balance  BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_seller_accounts_balance_gte_0 CHECK (ledger_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_seller_accounts_updated_at
            BEFORE UPDATE ON seller_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("""
        COMMENT ON TABLE seller_accounts IS
            'Running total of seller proceeds (cents); only ever incremented';
    """)

    op.execute("""
        CREATE TABLE seller_ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            reference_type  VARCHAR(20)     NOT NULL,
            reference_id    VARCHAR(64)     NOT NULL,
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_seller_ledger_entry UNIQUE (user_id, entry_type, reference_id),
            CONSTRAINT ck_seller_ledger_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_seller_ledger_entry_type CHECK (entry_type IN ('SELLER_PAYMENT'))
        );
    """)
    op.execute("CREATE INDEX idx_seller_ledger_user ON seller_ledger_entries (user_id, id DESC);")

    op.execute("""
        CREATE TABLE platform_earnings (
            id              VARCHAR(32)     PRIMARY KEY,
            order_id        VARCHAR(32)     NOT NULL REFERENCES orders(id),
            transaction_id  VARCHAR(32)     NOT NULL,
            amount          BIGINT          NOT NULL,
            commission_bps  INTEGER         NOT NULL,
            order_data      JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_platform_earnings_order UNIQUE (order_id),
            CONSTRAINT ck_platform_earnings_amount_gte_0 CHECK (amount >= 0),
            CONSTRAINT ck_platform_earnings_bps CHECK (commission_bps BETWEEN 0 AND 10000)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS platform_earnings CASCADE;")
    op.execute("DROP TABLE IF EXISTS seller_ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS seller_accounts CASCADE;")
