"""003: create orders, order_items, transactions

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id              VARCHAR(32)     PRIMARY KEY,
            buyer_id        VARCHAR(64)     NOT NULL,
            buyer_email     VARCHAR(255)    NOT NULL,
            total_amount    BIGINT          NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            cancel_reason   VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_total_gte_0 CHECK (total_amount >= 0),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('PENDING', 'PAID', 'CANCELLED', 'REFUNDED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, id DESC);")
    # Sweeper scans PENDING orders by age
    op.execute("""
        CREATE INDEX idx_orders_pending_created
        ON orders (created_at)
        WHERE status = 'PENDING';
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)

    op.execute("""
        CREATE TABLE order_items (
            id          BIGSERIAL       PRIMARY KEY,
            order_id    VARCHAR(32)     NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            item_id     VARCHAR(64)     NOT NULL REFERENCES items(id),
            seller_id   VARCHAR(64)     NOT NULL,
            title       VARCHAR(255)    NOT NULL,
            price       BIGINT          NOT NULL,
            quantity    INTEGER         NOT NULL DEFAULT 1,
            CONSTRAINT uq_order_items_order_item UNIQUE (order_id, item_id),
            CONSTRAINT ck_order_items_quantity CHECK (quantity = 1),
            CONSTRAINT ck_order_items_price_gt_0 CHECK (price > 0)
        );
    """)
    op.execute("CREATE INDEX idx_order_items_seller ON order_items (seller_id);")
    op.execute("CREATE INDEX idx_order_items_item ON order_items (item_id);")

    op.execute("""
        CREATE TABLE transactions (
            id          VARCHAR(32)     PRIMARY KEY,
            order_id    VARCHAR(32)     NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            amount      BIGINT          NOT NULL,
            status      VARCHAR(20)     NOT NULL DEFAULT 'INITIATED',
            metadata    JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_transactions_order UNIQUE (order_id),
            CONSTRAINT ck_transactions_status CHECK (
                status IN ('INITIATED', 'PROCESSING', 'COMPLETED', 'FAILED')
            )
        );
    """)
    # Payment callbacks look orders up by the reference they sent to the provider
    op.execute("CREATE INDEX idx_transactions_provider_ref ON transactions ((metadata->>'provider_reference'));")
    op.execute("CREATE INDEX idx_transactions_tx_ref ON transactions ((metadata->>'tx_ref'));")
    op.execute("CREATE INDEX idx_transactions_references ON transactions USING GIN ((metadata->'references'));")
    op.execute("""
        CREATE TRIGGER trg_transactions_updated_at
            BEFORE UPDATE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE order_items IS 'Immutable price snapshot at order creation, cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
    op.execute("DROP TABLE IF EXISTS order_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
