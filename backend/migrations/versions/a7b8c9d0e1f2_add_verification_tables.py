"""Add users and cookies tables read by the verification gate.

Revision ID: a7b8c9d0e1f2
Revises: f1a2b3c4d5e6
Create Date: 2026-10-17
"""

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a7b8c9d0e1f2"
down_revision: str | None = "f1a2b3c4d5e6"
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL NOT NULL PRIMARY KEY,
            username VARCHAR(255) NOT NULL,
            domain VARCHAR(255) NOT NULL,
            banned BOOLEAN NOT NULL DEFAULT false,
            code VARCHAR(64),
            code_created_at TIMESTAMPTZ,
            CONSTRAINT uq_users_username_domain UNIQUE (username, domain)
        );
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_users_code ON users (code);
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS cookies (
            id SERIAL NOT NULL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            cookie VARCHAR(64) NOT NULL UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_cookies_user_id ON cookies (user_id);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cookies;")
    op.execute("DROP TABLE IF EXISTS users;")
