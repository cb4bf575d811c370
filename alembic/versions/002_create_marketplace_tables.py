"""002: create tables owned by collaborating services (users, items, disputes, cart)

The settlement core only reads these, except items.status (-> SOLD) and
cart_items (cleanup after payment).

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              VARCHAR(64)     PRIMARY KEY,
            email           VARCHAR(255)    NOT NULL,
            email_verified  BOOLEAN         NOT NULL DEFAULT FALSE,
            banned          BOOLEAN         NOT NULL DEFAULT FALSE,
            role            VARCHAR(20)     NOT NULL DEFAULT 'BUYER',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email UNIQUE (email),
            CONSTRAINT ck_users_role CHECK (role IN ('BUYER', 'SELLER', 'ADMIN'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)

    op.execute("""
        CREATE TABLE items (
            id              VARCHAR(64)     PRIMARY KEY,
            seller_id       VARCHAR(64)     NOT NULL REFERENCES users(id),
            title           VARCHAR(255)    NOT NULL,
            price           BIGINT          NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            payout_account  VARCHAR(255),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_items_price_gt_0 CHECK (price > 0),
            CONSTRAINT ck_items_status CHECK (
                status IN ('PENDING', 'APPROVED', 'REJECTED', 'SOLD', 'WITHDRAWN')
            )
        );
    """)
    op.execute("CREATE INDEX idx_items_seller ON items (seller_id, status);")
    op.execute("""
        CREATE INDEX idx_items_payout_account
        ON items (seller_id, payout_account)
        WHERE payout_account IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_items_updated_at
            BEFORE UPDATE ON items
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)

    op.execute("""
        CREATE TABLE disputes (
            id              BIGSERIAL       PRIMARY KEY,
            target_user_id  VARCHAR(64)     NOT NULL REFERENCES users(id),
            opened_by       VARCHAR(64)     NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'OPEN',
            reason          VARCHAR(1000),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_disputes_status CHECK (
                status IN ('OPEN', 'IN_PROGRESS', 'RESOLVED', 'CLOSED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_disputes_target ON disputes (target_user_id, status);")

    op.execute("""
        CREATE TABLE cart_items (
            user_id     VARCHAR(64)     NOT NULL,
            item_id     VARCHAR(64)     NOT NULL REFERENCES items(id) ON DELETE CASCADE,
            added_at    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (user_id, item_id)
        );
    """)
    op.execute("COMMENT ON TABLE items IS 'Unique listings; price in cents; payout_account is the seller payout destination';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cart_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS disputes CASCADE;")
    op.execute("DROP TABLE IF EXISTS items CASCADE;")
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
